"""
Blood Pressure Module

HRV-based BP estimation and ACC/AHA categorisation.
"""
from .estimator import (
    BPEstimate,
    BPConfidence,
    BPComparison,
    estimate_bp_from_hrv,
    compare_to_recent_average,
)
from .categories import BPCategory, BPCategoryName, BPRisk, get_bp_category

__all__ = [
    "BPEstimate",
    "BPConfidence",
    "BPComparison",
    "estimate_bp_from_hrv",
    "compare_to_recent_average",
    "BPCategory",
    "BPCategoryName",
    "BPRisk",
    "get_bp_category",
]
