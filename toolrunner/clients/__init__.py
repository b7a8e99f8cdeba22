"""Model clients."""

from toolrunner.clients.base import ModelClient

__all__ = ["ModelClient"]
