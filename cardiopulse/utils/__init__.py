"""
Utilities Package - Logging and Exception Handling
"""
from .logging import get_logger, setup_logging
from .exceptions import (
    CardioPulseError,
    InsufficientDataError,
    InvalidBaselineError,
    ConfigurationError,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "CardioPulseError",
    "InsufficientDataError",
    "InvalidBaselineError",
    "ConfigurationError",
]
