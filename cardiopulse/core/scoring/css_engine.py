"""
Cardiovascular Stress Score (CSS) Engine

Combines HRV deviation from baseline with lifestyle signals into a 0-100
composite, and decides whether a proactive alert should fire.

Components and fixed weights:
    HRV vs baseline     35%   50 at zero deviation, higher when HRV drops
    Sedentary hours     25%   12 h/day maps to 100
    Sleep quality       20%   inverted 0-10 scale
    Food impact         12%   caller-supplied 0-1 impact x10
    Screen stress        8%   caller-supplied index x10

Alert rule: score > 65 AND HRV fell on each of the last 5+ days.

Pure and deterministic: same readings and baseline give the same result.
"""
from __future__ import annotations

import math
from typing import List, Optional, Sequence

from cardiopulse.utils import get_logger, InvalidBaselineError
from .models import Baseline, CSSResult, DailyReading, HealthContext, Trend

logger = get_logger(__name__)

# ── Weights (sum to 1.0) ──────────────────────────────────────────────────────
WEIGHT_HRV       = 0.35
WEIGHT_SEDENTARY = 0.25
WEIGHT_SLEEP     = 0.20
WEIGHT_FOOD      = 0.12
WEIGHT_SCREEN    = 0.08

# ── Component scaling ─────────────────────────────────────────────────────────
HRV_NEUTRAL_SCORE     = 50.0
SEDENTARY_CEILING_H   = 12.0
SLEEP_SCALE_MAX       = 10.0
FOOD_SCALE            = 10.0
SCREEN_SCALE          = 10.0

# ── Trend / alert ─────────────────────────────────────────────────────────────
TREND_WINDOW          = 3       # readings per comparison window
TREND_THRESHOLD_PCT   = 5.0
ALERT_SCORE_THRESHOLD = 65
ALERT_WORSENING_DAYS  = 5


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def hrv_delta_percent(latest_hrv: float, baseline: Optional[Baseline]) -> float:
    """
    Percentage deviation of the latest HRV from baseline.

    Raises:
        InvalidBaselineError: baseline missing or baseline HRV not positive
    """
    baseline_hrv = None if baseline is None else baseline.hrv
    if baseline_hrv is None or not baseline_hrv > 0:
        logger.warning(f"Rejected baseline with HRV={baseline_hrv!r}")
        raise InvalidBaselineError(baseline_hrv)
    return (latest_hrv - baseline_hrv) / baseline_hrv * 100.0


def component_scores(latest: DailyReading, delta_percent: float) -> dict:
    """Each component on its own 0-100 scale, before weighting."""
    food = latest.food_impact * FOOD_SCALE if latest.food_impact is not None else 0.0
    screen = latest.screen_stress_index * SCREEN_SCALE if latest.screen_stress_index is not None else 0.0
    return {
        "hrv": _clamp(HRV_NEUTRAL_SCORE - delta_percent),
        "sedentary": _clamp(latest.sedentary_hours / SEDENTARY_CEILING_H * 100.0),
        "sleep": _clamp((1.0 - latest.sleep_quality / SLEEP_SCALE_MAX) * 100.0),
        "food": _clamp(food),
        "screen": _clamp(screen),
    }


def classify_trend(readings: Sequence[DailyReading]) -> Trend:
    """
    Mean HRV of the last 3 readings against the 3 before them.

    Below -5% is worsening, above +5% improving. Without a full pair of
    non-empty windows the trend stays stable.
    """
    recent = readings[-TREND_WINDOW:]
    prior = readings[-2 * TREND_WINDOW:-TREND_WINDOW]
    if not recent or not prior:
        return Trend.STABLE

    recent_avg = sum(r.hrv for r in recent) / len(recent)
    prior_avg = sum(r.hrv for r in prior) / len(prior)
    if prior_avg <= 0:
        return Trend.STABLE

    change = (recent_avg - prior_avg) / prior_avg * 100.0
    if change < -TREND_THRESHOLD_PCT:
        return Trend.WORSENING
    if change > TREND_THRESHOLD_PCT:
        return Trend.IMPROVING
    return Trend.STABLE


def count_worsening_days(readings: Sequence[DailyReading]) -> int:
    """
    Consecutive HRV decreases ending at the latest reading.

    Counts transitions, so five drops need six readings.
    """
    count = 0
    for i in range(len(readings) - 1, 0, -1):
        if readings[i].hrv < readings[i - 1].hrv:
            count += 1
        else:
            break
    return count


def should_alert(score: int, worsening_days: int) -> bool:
    return score > ALERT_SCORE_THRESHOLD and worsening_days >= ALERT_WORSENING_DAYS


def calculate_css(readings: Sequence[DailyReading], baseline: Optional[Baseline]) -> CSSResult:
    """
    Compute the CSS for the most recent reading.

    Args:
        readings: Daily readings, oldest first
        baseline: Personal baseline

    Returns:
        CSSResult; an empty history gives score 0, stable, no alert

    Raises:
        InvalidBaselineError: baseline HRV is zero, negative or missing
    """
    if not readings:
        return CSSResult(
            score=0,
            trend=Trend.STABLE,
            worsening_days=0,
            should_alert=False,
            hrv_delta_percent=0,
        )

    latest = readings[-1]
    delta = hrv_delta_percent(latest.hrv, baseline)
    parts = component_scores(latest, delta)

    score = round_half_up(
        parts["hrv"] * WEIGHT_HRV +
        parts["sedentary"] * WEIGHT_SEDENTARY +
        parts["sleep"] * WEIGHT_SLEEP +
        parts["food"] * WEIGHT_FOOD +
        parts["screen"] * WEIGHT_SCREEN
    )

    trend = classify_trend(readings)
    # Drops are only counted once a prior trend window exists
    worsening_days = count_worsening_days(readings) if len(readings) > TREND_WINDOW else 0
    alert = should_alert(score, worsening_days)

    if alert:
        logger.info(
            f"CSS alert: score={score} with {worsening_days} consecutive HRV drops "
            f"(latest {latest.date})"
        )
    else:
        logger.debug(f"CSS={score}, trend={trend.value}, worsening_days={worsening_days}")

    return CSSResult(
        score=score,
        trend=trend,
        worsening_days=worsening_days,
        should_alert=alert,
        hrv_delta_percent=round_half_up(delta),
    )


def get_health_context(
    readings: Sequence[DailyReading],
    baseline: Optional[Baseline]
) -> HealthContext:
    """
    Numeric context for narrative / alert generation.

    Missing baseline or empty history yields the neutral context
    (score 0, stable, HRV 0, sleep quality 5).
    """
    if baseline is None or not readings:
        return HealthContext()

    latest = readings[-1]
    css = calculate_css(readings, baseline)

    return HealthContext(
        css=css.score,
        trend=css.trend,
        hrv=latest.hrv,
        hrv_baseline=baseline.hrv,
        hrv_delta=css.hrv_delta_percent,
        sedentary_hours=latest.sedentary_hours,
        sleep_quality=latest.sleep_quality,
        worsening_days=css.worsening_days,
        screen_stress_index=latest.screen_stress_index or 0.0,
    )


def readings_from_dicts(rows: List[dict]) -> List[DailyReading]:
    """Convert store rows into DailyReadings, preserving order."""
    return [DailyReading.from_dict(row) for row in rows]
