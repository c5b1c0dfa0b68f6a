"""
First-reading baseline.

The first measurement becomes the personal baseline. Until one exists the
population average HRV stands in.
"""
from .models import Baseline

POPULATION_BASELINE_HRV = 50.0      # ms, adult average

FIRST_READING_HRV_LOW  = 45.0
FIRST_READING_HRV_HIGH = 65.0

DEFAULT_SEDENTARY_HOURS = 5.0
DEFAULT_SLEEP_QUALITY   = 7.0


def classify_first_reading(hrv: float) -> str:
    """
    Place a first HRV reading relative to the population range.

    Returns:
        "low" below 45 ms, "high" above 65 ms, otherwise "normal"
    """
    if hrv < FIRST_READING_HRV_LOW:
        return "low"
    if hrv > FIRST_READING_HRV_HIGH:
        return "high"
    return "normal"


def baseline_from_first_reading(hrv: float) -> Baseline:
    return Baseline(
        hrv=hrv,
        sedentary_hours=DEFAULT_SEDENTARY_HOURS,
        sleep_quality=DEFAULT_SLEEP_QUALITY,
    )
