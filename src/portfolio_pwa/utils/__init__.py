"""Utilities module"""

from .errors import PortfolioPWAError, ConfigurationError, NetworkError, ValidationError
from .validation import SecurityValidator
from .logging_config import setup_logging

__all__ = [
    "PortfolioPWAError",
    "ConfigurationError",
    "NetworkError",
    "ValidationError",
    "SecurityValidator",
    "setup_logging",
]
