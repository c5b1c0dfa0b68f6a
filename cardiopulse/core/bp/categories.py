"""
Blood pressure categories (ACC/AHA 2017).

    Category               Systolic         Diastolic     Risk
    normal                 < 120      and   < 80          low
    elevated               120-129    and   < 80          moderate
    hypertension_stage_1   130-139    or    80-89         moderate
    hypertension_stage_2   >= 140     or    >= 90         high
    hypertensive_crisis    > 180      or    > 120         high

Each value is bucketed on its own and the higher bucket wins.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class BPCategoryName(str, Enum):
    NORMAL   = "normal"
    ELEVATED = "elevated"
    STAGE_1  = "hypertension_stage_1"
    STAGE_2  = "hypertension_stage_2"
    CRISIS   = "hypertensive_crisis"


class BPRisk(str, Enum):
    LOW      = "low"
    MODERATE = "moderate"
    HIGH     = "high"


# Severity order, lowest first
_ORDER = [
    BPCategoryName.NORMAL,
    BPCategoryName.ELEVATED,
    BPCategoryName.STAGE_1,
    BPCategoryName.STAGE_2,
    BPCategoryName.CRISIS,
]

_RISK = {
    BPCategoryName.NORMAL:   BPRisk.LOW,
    BPCategoryName.ELEVATED: BPRisk.MODERATE,
    BPCategoryName.STAGE_1:  BPRisk.MODERATE,
    BPCategoryName.STAGE_2:  BPRisk.HIGH,
    BPCategoryName.CRISIS:   BPRisk.HIGH,
}

_LABELS = {
    BPCategoryName.NORMAL:   "Normal",
    BPCategoryName.ELEVATED: "Elevated",
    BPCategoryName.STAGE_1:  "High Blood Pressure (Stage 1)",
    BPCategoryName.STAGE_2:  "High Blood Pressure (Stage 2)",
    BPCategoryName.CRISIS:   "Hypertensive Crisis",
}

# Thresholds (mmHg)
SBP_ELEVATED = 120
SBP_STAGE_1  = 130
SBP_STAGE_2  = 140
SBP_CRISIS   = 180      # strictly above
DBP_STAGE_1  = 80
DBP_STAGE_2  = 90
DBP_CRISIS   = 120      # strictly above


@dataclass
class BPCategory:
    category: BPCategoryName
    risk: BPRisk

    @property
    def label(self) -> str:
        return _LABELS[self.category]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "label": self.label,
            "risk": self.risk.value,
        }


def _systolic_bucket(systolic: float) -> BPCategoryName:
    if systolic > SBP_CRISIS:
        return BPCategoryName.CRISIS
    if systolic >= SBP_STAGE_2:
        return BPCategoryName.STAGE_2
    if systolic >= SBP_STAGE_1:
        return BPCategoryName.STAGE_1
    if systolic >= SBP_ELEVATED:
        return BPCategoryName.ELEVATED
    return BPCategoryName.NORMAL


def _diastolic_bucket(diastolic: float) -> BPCategoryName:
    # Diastolic has no "elevated" band
    if diastolic > DBP_CRISIS:
        return BPCategoryName.CRISIS
    if diastolic >= DBP_STAGE_2:
        return BPCategoryName.STAGE_2
    if diastolic >= DBP_STAGE_1:
        return BPCategoryName.STAGE_1
    return BPCategoryName.NORMAL


def get_bp_category(systolic: float, diastolic: float) -> BPCategory:
    """Classify a reading by the higher of its systolic and diastolic buckets."""
    category = max(
        _systolic_bucket(systolic),
        _diastolic_bucket(diastolic),
        key=_ORDER.index,
    )
    return BPCategory(category=category, risk=_RISK[category])
