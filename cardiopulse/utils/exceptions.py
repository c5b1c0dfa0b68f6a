"""
Custom Exception Hierarchy

Error types raised by the cardiopulse core, each carrying a stable code
and structured details for API responses.
"""
from typing import Optional, Dict, Any


class CardioPulseError(Exception):
    """Base exception for all cardiopulse errors."""
    
    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class InsufficientDataError(CardioPulseError):
    """
    Fewer samples buffered than detection requires.

    Recoverable: the caller should keep acquiring and retry.
    """
    
    def __init__(
        self,
        sample_count: int,
        required: int,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=f"Need at least {required} samples for detection, have {sample_count}",
            code="INSUFFICIENT_DATA",
            details={"sample_count": sample_count, "required": required, **(details or {})}
        )
        self.sample_count = sample_count
        self.required = required


class InvalidBaselineError(CardioPulseError):
    """Baseline HRV is zero, negative or missing."""
    
    def __init__(
        self,
        baseline_hrv: Optional[float],
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=f"Baseline HRV must be a positive number, got {baseline_hrv!r}",
            code="INVALID_BASELINE",
            details={"baseline_hrv": baseline_hrv, **(details or {})}
        )
        self.baseline_hrv = baseline_hrv


class ConfigurationError(CardioPulseError):
    """Invalid settings handed to a component."""
    
    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            details=details
        )
