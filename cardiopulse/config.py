"""
Runtime configuration for the cardiopulse core.

Values come from the environment (prefix ``CARDIOPULSE_``) or an optional
``.env`` file. Components take a ``Settings`` instance explicitly; build one
at the application boundary and pass it down.
"""
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Acquisition, detection and logging parameters."""

    model_config = SettingsConfigDict(
        env_prefix="CARDIOPULSE_",
        env_file=".env",
        extra="ignore",
    )

    # ── Acquisition window ──────────────────────────────────────────────
    sample_rate_hz: float = Field(default=30.0, gt=0.0)
    min_samples: int = Field(default=90, gt=1)          # ~3 s at 30 fps
    max_samples: int = Field(default=300, gt=1)         # ~10 s at 30 fps
    use_timestamps_for_rate: bool = True

    # ── Signal quality / confidence ─────────────────────────────────────
    quality_window: int = Field(default=30, gt=1)       # ~1 s at 30 fps
    quality_min_samples: int = Field(default=10, ge=1)
    quality_reference_std: float = Field(default=5.0, gt=0.0)
    confidence_reference_std: float = Field(default=10.0, gt=0.0)
    low_confidence_threshold: float = Field(default=0.2, ge=0.0, le=1.0)

    # ── Cardiac passband (0.7–4.0 Hz = 42–240 bpm) ──────────────────────
    band_low_hz: float = Field(default=0.7, gt=0.0)
    band_high_hz: float = Field(default=4.0, gt=0.0)

    # ── Fallbacks ───────────────────────────────────────────────────────
    default_heart_rate_bpm: float = Field(default=72.0, gt=0.0)
    default_hrv_ms: float = Field(default=50.0, gt=0.0)

    log_level: str = "INFO"
    log_file: Optional[str] = None

    @model_validator(mode="after")
    def check_consistency(self) -> "Settings":
        if self.min_samples > self.max_samples:
            raise ValueError("min_samples must not exceed max_samples")
        if self.band_low_hz >= self.band_high_hz:
            raise ValueError("band_low_hz must be below band_high_hz")
        if self.band_high_hz >= self.sample_rate_hz / 2:
            raise ValueError("band_high_hz must be below the Nyquist frequency")
        return self
