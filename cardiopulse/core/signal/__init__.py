"""
Pulse Signal Module

Optical sample buffering and rPPG heart-rate / HRV detection.
"""
from .buffer import Sample, SignalBuffer
from .frame import sample_from_frame, roi_mean_intensity
from .processor import PulseSignalProcessor, DetectionResult, AcquisitionState

__all__ = [
    "Sample",
    "SignalBuffer",
    "sample_from_frame",
    "roi_mean_intensity",
    "PulseSignalProcessor",
    "DetectionResult",
    "AcquisitionState",
]
