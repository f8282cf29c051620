"""AI client management for the workout plan API."""
from .client_factory import AIClientFactory, CompletionParams

__all__ = [
    "AIClientFactory",
    "CompletionParams",
]
