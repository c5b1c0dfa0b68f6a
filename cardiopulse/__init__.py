"""
cardiopulse - rPPG pulse detection, cardiovascular stress scoring and
HRV-based blood pressure estimation.
"""
from .config import Settings
from .pipeline import CardioPulsePipeline

__version__ = "0.1.0"

__all__ = ["Settings", "CardioPulsePipeline", "__version__"]
