"""Keyed record stores for per-lead engine state (scores, stages, predictions)."""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple


class RecordStore(ABC):
    """Minimal get/put/list store the engine keeps its per-lead state in."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def put(self, key: str, value: Any):
        pass

    @abstractmethod
    def delete(self, key: str):
        pass

    @abstractmethod
    def items(self) -> List[Tuple[str, Any]]:
        pass

    def values(self) -> List[Any]:
        return [value for _, value in self.items()]

    def keys(self) -> List[str]:
        return [key for key, _ in self.items()]

    def __len__(self) -> int:
        return len(self.items())


class InMemoryStore(RecordStore):
    """Thread-safe dict-backed store."""

    def __init__(self):
        self._data: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: Any):
        with self._lock:
            self._data[key] = value

    def delete(self, key: str):
        with self._lock:
            self._data.pop(key, None)

    def items(self) -> List[Tuple[str, Any]]:
        with self._lock:
            return list(self._data.items())
