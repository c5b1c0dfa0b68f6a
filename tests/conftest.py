"""
Pytest Configuration and Fixtures

Shared fixtures for the pulse, scoring and BP tests.
"""
import pytest
import numpy as np
from pathlib import Path
import sys
from typing import Callable, List, Sequence

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cardiopulse.config import Settings
from cardiopulse.core.scoring import Baseline, DailyReading
from cardiopulse.core.signal import Sample


def make_samples(
    n: int = 300,
    freq_hz: float = 1.2,
    fs: float = 30.0,
    amplitude: float = 5.0,
    offset: float = 100.0,
    drift_per_sample: float = 0.0,
    timestamp_fs: float = None
) -> List[Sample]:
    """Sinusoidal intensity stream with optional linear drift."""
    ts_fs = timestamp_fs or fs
    idx = np.arange(n)
    t = idx / fs
    values = offset + amplitude * np.sin(2 * np.pi * freq_hz * t) + drift_per_sample * idx
    return [
        Sample(timestamp_ms=i * 1000.0 / ts_fs, intensity=float(v))
        for i, v in zip(idx, values)
    ]


def make_readings(hrvs: Sequence[float], **fields) -> List[DailyReading]:
    """One DailyReading per HRV value on consecutive dates."""
    return [
        DailyReading(date=f"2026-03-{i + 1:02d}", hrv=hrv, **fields)
        for i, hrv in enumerate(hrvs)
    ]


@pytest.fixture
def settings() -> Settings:
    """Default settings, isolated from any local .env."""
    return Settings(_env_file=None)


@pytest.fixture
def sample_factory() -> Callable[..., List[Sample]]:
    return make_samples


@pytest.fixture
def readings_factory() -> Callable[..., List[DailyReading]]:
    return make_readings


@pytest.fixture
def baseline() -> Baseline:
    return Baseline(hrv=60.0, sedentary_hours=5.0, sleep_quality=7.0)
