"""Heuristic lead predictions."""

from .predictions import (
    PredictionModel,
    Prediction,
    ContactWindow,
    ContactTimePrediction,
    AgentMatch,
    RevenueForecast,
    no_noise,
    random_noise,
)

__all__ = [
    'PredictionModel',
    'Prediction',
    'ContactWindow',
    'ContactTimePrediction',
    'AgentMatch',
    'RevenueForecast',
    'no_noise',
    'random_noise',
]
