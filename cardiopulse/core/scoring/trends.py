"""
CSS history views.

Per-day score series for charts, and the weekly lifestyle summary. Both are
derived from calculate_css and share its InvalidBaselineError contract.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .css_engine import calculate_css, round_half_up
from .models import Baseline, DailyReading, Trend

SLEEP_DISRUPTED_BELOW = 6.0


@dataclass
class TrendPoint:
    """CSS as it stood on one day, using only readings up to that day."""
    date: str
    css: int
    hrv: float
    sedentary_hours: float
    sleep_quality: float
    trend: Trend

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "css": self.css,
            "hrv": self.hrv,
            "sedentary_hours": self.sedentary_hours,
            "sleep_quality": self.sleep_quality,
            "trend": self.trend.value,
        }


@dataclass
class TrendSummary:
    best_day: TrendPoint        # lowest CSS
    worst_day: TrendPoint       # highest CSS
    average_css: int


@dataclass
class WeeklyStats:
    sleep_disrupted_nights: int
    average_sedentary_hours: float
    high_impact_meals: int
    css: int
    trend: Trend

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sleep_disrupted_nights": self.sleep_disrupted_nights,
            "average_sedentary_hours": self.average_sedentary_hours,
            "high_impact_meals": self.high_impact_meals,
            "css": self.css,
            "trend": self.trend.value,
        }


def css_trend_series(readings: Sequence[DailyReading], baseline: Baseline) -> List[TrendPoint]:
    """Score every prefix of the history, oldest first."""
    points = []
    for index, reading in enumerate(readings):
        css = calculate_css(readings[:index + 1], baseline)
        points.append(TrendPoint(
            date=reading.date,
            css=css.score,
            hrv=reading.hrv,
            sedentary_hours=reading.sedentary_hours,
            sleep_quality=reading.sleep_quality,
            trend=css.trend,
        ))
    return points


def summarize_trends(points: Sequence[TrendPoint]) -> Optional[TrendSummary]:
    """Best/worst day and mean CSS; None for an empty series. Ties keep the earliest day."""
    if not points:
        return None

    best = points[0]
    worst = points[0]
    for point in points[1:]:
        if point.css < best.css:
            best = point
        if point.css > worst.css:
            worst = point

    return TrendSummary(
        best_day=best,
        worst_day=worst,
        average_css=round_half_up(sum(p.css for p in points) / len(points)),
    )


def weekly_lifestyle_stats(
    readings: Sequence[DailyReading],
    baseline: Baseline,
    high_impact_meals: int = 0
) -> Optional[WeeklyStats]:
    """
    Lifestyle figures over the supplied window (normally the last 7 days).

    Args:
        readings: Readings in the window, oldest first
        baseline: Personal baseline
        high_impact_meals: Count of high-BP-impact meals, from the food log

    Returns:
        WeeklyStats, or None when the window is empty
    """
    if not readings:
        return None

    css = calculate_css(readings, baseline)
    average_sedentary = sum(r.sedentary_hours for r in readings) / len(readings)

    return WeeklyStats(
        sleep_disrupted_nights=sum(1 for r in readings if r.sleep_quality < SLEEP_DISRUPTED_BELOW),
        average_sedentary_hours=round_half_up(average_sedentary * 10) / 10,
        high_impact_meals=high_impact_meals,
        css=css.score,
        trend=css.trend,
    )
