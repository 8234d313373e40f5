"""Conversational intent backends."""

from .base import AbstractIntentBackend
from .dialogflow_backend import DialogflowBackend

__all__ = [
    "AbstractIntentBackend",
    "DialogflowBackend",
]
