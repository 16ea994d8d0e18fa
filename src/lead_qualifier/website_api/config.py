"""Environment-based configuration for the scoring API service."""

import os
from pathlib import Path


class Settings:
    """API configuration loaded from environment variables."""

    def __init__(self):
        self.host = os.getenv("LQ_API_HOST", "0.0.0.0")
        self.port = int(os.getenv("LQ_API_PORT", "8000"))
        self.config_path = os.getenv(
            "LQ_CONFIG_PATH",
            str(Path.home() / ".lead-qualifier" / "scoring_config.json"),
        )
        self.roster_url = os.getenv("LQ_ROSTER_URL", "")
        self.interactions_url = os.getenv("LQ_INTERACTIONS_URL", "")
        self.collaborator_timeout = float(os.getenv("LQ_COLLABORATOR_TIMEOUT", "2.0"))
        self.history_limit = int(os.getenv("LQ_HISTORY_LIMIT", "50"))
        self.debug = os.getenv("LQ_ENGINE_ENV", "production") != "production"

        self.allowed_origins = [
            origin.strip()
            for origin in os.getenv(
                "LQ_ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173"
            ).split(",")
            if origin.strip()
        ]


_settings = None


def _get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


class _SettingsProxy:
    """Lazy proxy so settings aren't loaded until first access."""

    def __getattr__(self, name):
        return getattr(_get_settings(), name)


settings = _SettingsProxy()
