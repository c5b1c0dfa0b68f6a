"""
Scoring Module

Cardiovascular Stress Score, health context and history views over
caller-supplied daily readings.
"""
from .models import DailyReading, Baseline, CSSResult, HealthContext, Trend
from .css_engine import calculate_css, get_health_context, readings_from_dicts
from .baseline import (
    POPULATION_BASELINE_HRV,
    classify_first_reading,
    baseline_from_first_reading,
)
from .trends import (
    TrendPoint,
    TrendSummary,
    WeeklyStats,
    css_trend_series,
    summarize_trends,
    weekly_lifestyle_stats,
)

__all__ = [
    "DailyReading",
    "Baseline",
    "CSSResult",
    "HealthContext",
    "Trend",
    "calculate_css",
    "get_health_context",
    "readings_from_dicts",
    "POPULATION_BASELINE_HRV",
    "classify_first_reading",
    "baseline_from_first_reading",
    "TrendPoint",
    "TrendSummary",
    "WeeklyStats",
    "css_trend_series",
    "summarize_trends",
    "weekly_lifestyle_stats",
]
