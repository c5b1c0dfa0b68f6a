"""
Blood Pressure Estimator

Cuffless BP proxy from HRV deviation plus demographics. This is a trend
indicator, not a measurement.

Model (mmHg):
    systolic  = 117 + 0.40·(age − 40) + sex_offset_sys − 0.20·ΔHRV%
    diastolic =  76 + 0.20·(min(age, 60) − 40) + sex_offset_dia − 0.12·ΔHRV%

Anchors and slopes:
    - 117/76 is the mean BP of 40-year-old women in NHANES 2015-2018.
    - Systolic rises ~4 mmHg per decade across adulthood; diastolic rises
      ~2 mmHg per decade and plateaus after 60 (Framingham).
    - Men sit ~4/2 mmHg higher than women at the same age; unspecified sex
      takes the midpoint.
    - Suppressed HRV tracks sympathetic load: a 10% drop below baseline
      maps to +2/+1.2 mmHg. ΔHRV% is clamped to ±60 so extreme readings
      cannot drive the estimate outside physiology.

At ΔHRV% = 0 the estimate equals the demographic anchor.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

from cardiopulse.core.scoring.baseline import POPULATION_BASELINE_HRV
from cardiopulse.utils import get_logger, InvalidBaselineError

logger = get_logger(__name__)

# ── Demographic anchor ────────────────────────────────────────────────────────
ANCHOR_SYSTOLIC   = 117.0
ANCHOR_DIASTOLIC  = 76.0
ANCHOR_AGE        = 40.0
DIASTOLIC_AGE_CAP = 60.0

AGE_SLOPE_SYSTOLIC  = 0.40
AGE_SLOPE_DIASTOLIC = 0.20

SEX_OFFSETS: Dict[str, Tuple[float, float]] = {
    "male":   (4.0, 2.0),
    "female": (0.0, 0.0),
}
UNSPECIFIED_SEX_OFFSET = (2.0, 1.0)

# ── HRV coupling ──────────────────────────────────────────────────────────────
HRV_SLOPE_SYSTOLIC  = 0.20      # mmHg per % HRV deviation
HRV_SLOPE_DIASTOLIC = 0.12
HRV_DELTA_LIMIT_PCT = 60.0

# ── Output bounds ─────────────────────────────────────────────────────────────
SYSTOLIC_RANGE   = (85, 200)
DIASTOLIC_RANGE  = (50, 130)
MIN_PULSE_PRESSURE = 20

# ── Confidence ────────────────────────────────────────────────────────────────
CALIBRATION_AGE_RANGE = (18, 80)
HIGH_CONFIDENCE_DELTA_PCT   = 20.0
MEDIUM_CONFIDENCE_DELTA_PCT = 40.0

COMPARISON_THRESHOLD_MMHG = 5.0


class BPConfidence(str, Enum):
    LOW    = "low"
    MEDIUM = "medium"
    HIGH   = "high"


@dataclass
class BPEstimate:
    systolic: int
    diastolic: int
    confidence: BPConfidence
    hrv_delta_percent: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "systolic": self.systolic,
            "diastolic": self.diastolic,
            "confidence": self.confidence.value,
            "hrv_delta_percent": round(self.hrv_delta_percent, 1),
        }


@dataclass
class BPComparison:
    """Today's estimate against the recent average."""
    average_systolic: float
    average_diastolic: float
    compared_to_average: str        # "elevated" | "lower" | "normal"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "average_systolic": round(self.average_systolic, 1),
            "average_diastolic": round(self.average_diastolic, 1),
            "compared_to_average": self.compared_to_average,
        }


def _sex_offset(biological_sex: Optional[str]) -> Tuple[float, float]:
    key = (biological_sex or "").strip().lower()
    return SEX_OFFSETS.get(key, UNSPECIFIED_SEX_OFFSET)


def _confidence(delta_pct: float, age: float, has_baseline: bool) -> BPConfidence:
    """
    Drops with distance from the calibration population.

    No personal baseline caps the level at LOW; an age outside 18-80 costs
    one level.
    """
    if not has_baseline:
        return BPConfidence.LOW

    magnitude = abs(delta_pct)
    if magnitude <= HIGH_CONFIDENCE_DELTA_PCT:
        level = 2
    elif magnitude <= MEDIUM_CONFIDENCE_DELTA_PCT:
        level = 1
    else:
        level = 0

    low_age, high_age = CALIBRATION_AGE_RANGE
    if not low_age <= age <= high_age:
        level = max(0, level - 1)

    return [BPConfidence.LOW, BPConfidence.MEDIUM, BPConfidence.HIGH][level]


def estimate_bp_from_hrv(
    hrv: float,
    baseline_hrv: Optional[float],
    age: float,
    biological_sex: Optional[str] = None
) -> BPEstimate:
    """
    Estimate systolic/diastolic pressure.

    Args:
        hrv: Latest HRV in ms
        baseline_hrv: Personal baseline HRV; None falls back to the
            population average with LOW confidence
        age: Age in years
        biological_sex: "male", "female" or anything else for unspecified

    Returns:
        BPEstimate with integer mmHg values

    Raises:
        InvalidBaselineError: baseline_hrv given but not positive
    """
    has_baseline = baseline_hrv is not None
    if baseline_hrv is None:
        baseline_hrv = POPULATION_BASELINE_HRV
    elif not baseline_hrv > 0:
        logger.warning(f"BP estimate rejected baseline HRV={baseline_hrv!r}")
        raise InvalidBaselineError(baseline_hrv)

    delta_pct = (hrv - baseline_hrv) / baseline_hrv * 100.0
    effective_delta = max(-HRV_DELTA_LIMIT_PCT, min(HRV_DELTA_LIMIT_PCT, delta_pct))

    sex_sys, sex_dia = _sex_offset(biological_sex)

    systolic = (
        ANCHOR_SYSTOLIC
        + AGE_SLOPE_SYSTOLIC * (age - ANCHOR_AGE)
        + sex_sys
        - HRV_SLOPE_SYSTOLIC * effective_delta
    )
    diastolic = (
        ANCHOR_DIASTOLIC
        + AGE_SLOPE_DIASTOLIC * (min(age, DIASTOLIC_AGE_CAP) - ANCHOR_AGE)
        + sex_dia
        - HRV_SLOPE_DIASTOLIC * effective_delta
    )

    systolic_mmhg = int(round(min(max(systolic, SYSTOLIC_RANGE[0]), SYSTOLIC_RANGE[1])))
    diastolic_mmhg = int(round(min(max(diastolic, DIASTOLIC_RANGE[0]), DIASTOLIC_RANGE[1])))
    diastolic_mmhg = min(diastolic_mmhg, systolic_mmhg - MIN_PULSE_PRESSURE)

    estimate = BPEstimate(
        systolic=systolic_mmhg,
        diastolic=diastolic_mmhg,
        confidence=_confidence(delta_pct, age, has_baseline),
        hrv_delta_percent=delta_pct,
    )
    logger.debug(
        f"BP estimate {estimate.systolic}/{estimate.diastolic} "
        f"(ΔHRV={delta_pct:.1f}%, confidence={estimate.confidence.value})"
    )
    return estimate


def compare_to_recent_average(
    systolic: float,
    diastolic: float,
    recent: Sequence[Tuple[float, float]]
) -> BPComparison:
    """
    Compare an estimate with recent (systolic, diastolic) readings.

    More than 5 mmHg systolic above the average is "elevated", more than
    5 below is "lower". With no history the estimate is its own average.
    """
    if not recent:
        return BPComparison(float(systolic), float(diastolic), "normal")

    average_systolic = sum(s for s, _ in recent) / len(recent)
    average_diastolic = sum(d for _, d in recent) / len(recent)

    difference = systolic - average_systolic
    if difference > COMPARISON_THRESHOLD_MMHG:
        status = "elevated"
    elif difference < -COMPARISON_THRESHOLD_MMHG:
        status = "lower"
    else:
        status = "normal"

    return BPComparison(average_systolic, average_diastolic, status)
