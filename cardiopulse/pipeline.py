"""
Application-boundary wiring.

Build one CardioPulsePipeline at startup and hand it to whatever needs the
core; it owns the Settings instance and creates processors from it.

Usage:
    from cardiopulse.pipeline import CardioPulsePipeline

    pipeline = CardioPulsePipeline.from_env()
    processor = pipeline.new_processor()
    processor.start()
    ...                                  # capture adapter calls ingest()
    detection = processor.detect()
    bp, category = pipeline.estimate_bp(detection.hrv_ms, baseline.hrv, 52, "female")
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from pydantic import ValidationError

from cardiopulse.config import Settings
from cardiopulse.core.bp import BPCategory, BPEstimate, estimate_bp_from_hrv, get_bp_category
from cardiopulse.core.scoring import (
    Baseline,
    CSSResult,
    DailyReading,
    HealthContext,
    calculate_css,
    get_health_context,
)
from cardiopulse.core.signal import PulseSignalProcessor
from cardiopulse.utils import get_logger, ConfigurationError

logger = get_logger(__name__)


class CardioPulsePipeline:
    """Holds configuration and exposes every core operation."""

    def __init__(self, settings: Settings):
        if not isinstance(settings, Settings):
            raise ConfigurationError(
                f"Expected a Settings instance, got {type(settings).__name__}"
            )
        self.settings = settings
        logger.info(
            f"CardioPulsePipeline initialized: rate={settings.sample_rate_hz}Hz, "
            f"passband={settings.band_low_hz}-{settings.band_high_hz}Hz"
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> "CardioPulsePipeline":
        """
        Load Settings from the environment, applying keyword overrides.

        Raises:
            ConfigurationError: the resulting settings fail validation
        """
        try:
            settings = Settings(**overrides)
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid cardiopulse settings",
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e
        return cls(settings)

    def new_processor(
        self,
        on_signal_update: Optional[Callable[[float], None]] = None
    ) -> PulseSignalProcessor:
        """A fresh processor per capture session."""
        return PulseSignalProcessor(settings=self.settings, on_signal_update=on_signal_update)

    def score(self, readings: Sequence[DailyReading], baseline: Optional[Baseline]) -> CSSResult:
        return calculate_css(readings, baseline)

    def health_context(
        self,
        readings: Sequence[DailyReading],
        baseline: Optional[Baseline]
    ) -> HealthContext:
        return get_health_context(readings, baseline)

    def estimate_bp(
        self,
        hrv: float,
        baseline_hrv: Optional[float],
        age: float,
        biological_sex: Optional[str] = None
    ) -> Tuple[BPEstimate, BPCategory]:
        """Estimate BP and classify it in one step."""
        estimate = estimate_bp_from_hrv(hrv, baseline_hrv, age, biological_sex)
        return estimate, get_bp_category(estimate.systolic, estimate.diastolic)

    def summary(
        self,
        readings: Sequence[DailyReading],
        baseline: Baseline,
        age: float,
        biological_sex: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        CSS, context and BP for the latest reading, serialised.

        Raises:
            InvalidBaselineError: baseline HRV is not positive
        """
        css = self.score(readings, baseline)
        context = self.health_context(readings, baseline)
        result: Dict[str, Any] = {
            "css": css.to_dict(),
            "health_context": context.to_dict(),
        }
        if readings:
            estimate, category = self.estimate_bp(readings[-1].hrv, baseline.hrv, age, biological_sex)
            result["bp_estimate"] = {**estimate.to_dict(), **category.to_dict()}
        return result
