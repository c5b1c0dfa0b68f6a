"""
Scoring Data Contracts

Daily readings and baselines are owned by an external store; the engine
receives them read-only, oldest reading first.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Trend(str, Enum):
    """Direction of recent HRV relative to the preceding window."""
    IMPROVING = "improving"
    STABLE    = "stable"
    WORSENING = "worsening"


@dataclass
class DailyReading:
    """One day's HRV plus lifestyle signals."""
    date: str                                   # ISO date, e.g. "2026-03-14"
    hrv: float                                  # ms
    sedentary_hours: float = 0.0
    sleep_quality: float = 5.0                  # 0-10
    heart_rate: Optional[float] = None          # bpm
    screen_stress_index: Optional[float] = None
    food_impact: Optional[float] = None         # 0-1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailyReading":
        """Accepts both snake_case and the store's camelCase keys."""
        return cls(
            date=str(data["date"]),
            hrv=float(data["hrv"]),
            sedentary_hours=float(_pick(data, "sedentary_hours", "sedentaryHours", default=0.0)),
            sleep_quality=float(_pick(data, "sleep_quality", "sleepQuality", default=5.0)),
            heart_rate=_optional_float(_pick(data, "heart_rate", "heartRate")),
            screen_stress_index=_optional_float(_pick(data, "screen_stress_index", "screenStressIndex")),
            food_impact=_optional_float(_pick(data, "food_impact", "foodImpact")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "hrv": self.hrv,
            "heart_rate": self.heart_rate,
            "sedentary_hours": self.sedentary_hours,
            "sleep_quality": self.sleep_quality,
            "screen_stress_index": self.screen_stress_index,
            "food_impact": self.food_impact,
        }


@dataclass
class Baseline:
    """Personal reference values, normally taken from the first reading."""
    hrv: float
    sedentary_hours: float = 5.0
    sleep_quality: float = 7.0
    screen_stress_index: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Baseline":
        return cls(
            hrv=float(data["hrv"]),
            sedentary_hours=float(_pick(data, "sedentary_hours", "sedentaryHours", default=5.0)),
            sleep_quality=float(_pick(data, "sleep_quality", "sleepQuality", default=7.0)),
            screen_stress_index=_optional_float(_pick(data, "screen_stress_index", "screenStressIndex")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hrv": self.hrv,
            "sedentary_hours": self.sedentary_hours,
            "sleep_quality": self.sleep_quality,
            "screen_stress_index": self.screen_stress_index,
        }


@dataclass
class CSSResult:
    """Composite Cardiovascular Stress Score for the latest reading."""
    score: int                      # 0-100
    trend: Trend
    worsening_days: int
    should_alert: bool
    hrv_delta_percent: int          # latest HRV vs baseline, rounded

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "trend": self.trend.value,
            "worsening_days": self.worsening_days,
            "should_alert": self.should_alert,
            "hrv_delta_percent": self.hrv_delta_percent,
        }


@dataclass
class HealthContext:
    """
    Flattened numeric context handed to narrative and alert generation.

    Only the structural fields live here; wording is produced elsewhere.
    """
    css: int = 0
    trend: Trend = Trend.STABLE
    hrv: float = 0.0
    hrv_baseline: float = 0.0
    hrv_delta: int = 0
    sedentary_hours: float = 0.0
    sleep_quality: float = 5.0
    worsening_days: int = 0
    screen_stress_index: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "css": self.css,
            "trend": self.trend.value,
            "hrv": self.hrv,
            "hrv_baseline": self.hrv_baseline,
            "hrv_delta": self.hrv_delta,
            "sedentary_hours": self.sedentary_hours,
            "sleep_quality": self.sleep_quality,
            "worsening_days": self.worsening_days,
            "screen_stress_index": self.screen_stress_index,
        }


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return default


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)
