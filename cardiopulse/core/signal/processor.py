"""
Pulse Signal Processor

Turns a stream of optical intensity samples into:
- Heart rate (dominant frequency inside the cardiac passband)
- HRV (RMSSD-style statistic rescaled to 20-100 ms)
- Detection confidence and live signal strength

A capture adapter pushes samples through ``ingest`` at the device frame rate;
a polling consumer calls ``signal_quality`` and ``detect``. Both sides may run
on different threads.
"""
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

import numpy as np
from scipy import fft as scipy_fft
from scipy import signal as scipy_signal

from cardiopulse.config import Settings
from cardiopulse.utils import get_logger, InsufficientDataError
from .buffer import Sample, SignalBuffer
from .frame import sample_from_frame

logger = get_logger(__name__)

HRV_FLOOR_MS = 20.0
HRV_CEILING_MS = 100.0
HRV_SCALE = 80.0

# Timestamp-derived rates outside this multiple of the nominal rate are ignored
RATE_TOLERANCE = (0.5, 2.0)


class AcquisitionState(str, Enum):
    """Processor lifecycle."""
    IDLE = "idle"
    ACQUIRING = "acquiring"
    READY = "ready"


@dataclass
class DetectionResult:
    """Outcome of one detection pass over the buffered window."""
    hrv_ms: int
    heart_rate_bpm: int
    confidence: float           # 0-1, from filtered signal variance
    signal_strength: float      # 0-1, from raw recent variance
    sample_count: int = 0
    sample_rate_hz: float = 0.0
    low_confidence_threshold: float = 0.2

    @property
    def is_low_confidence(self) -> bool:
        """True when the caller should discard and re-measure."""
        return self.confidence < self.low_confidence_threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hrv_ms": self.hrv_ms,
            "heart_rate_bpm": self.heart_rate_bpm,
            "confidence": round(self.confidence, 3),
            "signal_strength": round(self.signal_strength, 3),
            "sample_count": self.sample_count,
            "sample_rate_hz": round(self.sample_rate_hz, 2),
            "low_confidence": self.is_low_confidence,
        }


class PulseSignalProcessor:
    """
    Buffered rPPG detector.

    A new processor accepts samples straight away (Acquiring) and is Ready
    once the buffer holds ``min_samples``. ``stop`` discards the buffer and
    goes Idle; samples pushed while Idle are dropped, so frames that arrive
    after ``stop`` cannot leak into the next measurement. ``start`` begins a
    fresh acquisition.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        on_signal_update: Optional[Callable[[float], None]] = None
    ):
        """
        Initialize processor.

        Args:
            settings: Detection parameters; defaults are used when omitted
            on_signal_update: Called with the current signal strength after
                every accepted sample
        """
        self.settings = settings or Settings()
        self.on_signal_update = on_signal_update

        self._buffer = SignalBuffer(capacity=self.settings.max_samples)
        self._lock = threading.Lock()
        self._detect_lock = threading.Lock()
        self._stopped = False
        self._frame_count = 0

    # ── Lifecycle ───────────────────────────────────────────────────────

    def start(self) -> None:
        """Begin a fresh acquisition."""
        with self._lock:
            self._buffer.clear()
            self._frame_count = 0
            self._stopped = False
        logger.info(
            f"Acquisition started: rate={self.settings.sample_rate_hz}Hz, "
            f"window={self.settings.min_samples}-{self.settings.max_samples} samples"
        )

    def stop(self) -> None:
        """End acquisition and discard the in-flight buffer."""
        with self._lock:
            discarded = len(self._buffer)
            self._buffer.clear()
            self._stopped = True
        logger.info(f"Acquisition stopped, {discarded} buffered samples discarded")

    @property
    def state(self) -> AcquisitionState:
        with self._lock:
            if self._stopped:
                return AcquisitionState.IDLE
            if len(self._buffer) >= self.settings.min_samples:
                return AcquisitionState.READY
            return AcquisitionState.ACQUIRING

    @property
    def frame_count(self) -> int:
        """Samples accepted since construction or the last ``start``."""
        with self._lock:
            return self._frame_count

    @property
    def buffered_samples(self) -> int:
        with self._lock:
            return len(self._buffer)

    # ── Producer side ───────────────────────────────────────────────────

    def ingest(self, sample: Sample) -> None:
        """Append one sample to the bounded window; dropped after ``stop``."""
        with self._lock:
            if self._stopped:
                return
            self._buffer.append(sample)
            self._frame_count += 1

        if self.on_signal_update is not None:
            self.on_signal_update(self.signal_quality())

    def ingest_frame(self, frame: np.ndarray, timestamp_ms: float, bgr: bool = False) -> None:
        """Reduce a camera frame to its ROI intensity and ingest it."""
        self.ingest(sample_from_frame(frame, timestamp_ms, bgr=bgr))

    # ── Consumer side ───────────────────────────────────────────────────

    def signal_quality(self) -> float:
        """
        Live signal strength from raw intensity variance.

        A flat stream means poor contact or no perfusion; a visible pulse
        shows up as variance in the last ~1 s.

        Returns:
            0-1 strength; exactly 0 below ``quality_min_samples``
        """
        with self._lock:
            if len(self._buffer) < self.settings.quality_min_samples:
                return 0.0
            recent = self._buffer.intensities(last=self.settings.quality_window)
        return self._strength(recent)

    def _strength(self, recent: np.ndarray) -> float:
        std = float(np.std(recent))
        return float(min(1.0, std / self.settings.quality_reference_std))

    def detect(self) -> DetectionResult:
        """
        Estimate heart rate, HRV and confidence from the buffered window.

        Returns:
            DetectionResult

        Raises:
            InsufficientDataError: fewer than ``min_samples`` buffered
        """
        with self._detect_lock:
            with self._lock:
                n = len(self._buffer)
                if n < self.settings.min_samples:
                    raise InsufficientDataError(sample_count=n, required=self.settings.min_samples)
                values = self._buffer.intensities()
                timestamps = self._buffer.timestamps()

            # Strength comes from the same snapshot the detection uses
            if n < self.settings.quality_min_samples:
                strength = 0.0
            else:
                strength = self._strength(values[-self.settings.quality_window:])

            fs = self.effective_sample_rate(timestamps)
            filtered = self.band_limit(values, fs)

            heart_rate = self.dominant_frequency_bpm(filtered, fs)
            hrv = self.compute_hrv(filtered)
            confidence = self.compute_confidence(filtered)

            result = DetectionResult(
                hrv_ms=int(round(hrv)),
                heart_rate_bpm=int(round(heart_rate)),
                confidence=confidence,
                signal_strength=strength,
                sample_count=n,
                sample_rate_hz=fs,
                low_confidence_threshold=self.settings.low_confidence_threshold,
            )

        if result.is_low_confidence:
            logger.warning(
                f"Low-confidence detection ({confidence:.2f}): "
                f"HR={result.heart_rate_bpm}bpm, HRV={result.hrv_ms}ms"
            )
        else:
            logger.info(
                f"Detection: HR={result.heart_rate_bpm}bpm, HRV={result.hrv_ms}ms, "
                f"confidence={confidence:.2f} over {n} samples @ {fs:.1f}Hz"
            )
        return result

    # ── Signal processing steps ─────────────────────────────────────────

    def effective_sample_rate(self, timestamps: np.ndarray) -> float:
        """
        Sampling rate implied by the sample timestamps.

        Falls back to the nominal rate when timestamps are disabled,
        missing, non-increasing or non-finite, and with a warning when the
        derived rate strays outside 0.5x-2x nominal or cannot hold the
        passband (for example timestamps in seconds instead of ms).
        """
        nominal = self.settings.sample_rate_hz
        if not self.settings.use_timestamps_for_rate or len(timestamps) < 2:
            return nominal

        intervals = np.diff(timestamps)
        median_ms = float(np.median(intervals))
        if not np.isfinite(median_ms) or median_ms <= 0:
            return nominal

        derived = 1000.0 / median_ms
        low, high = RATE_TOLERANCE
        if not low * nominal <= derived <= high * nominal or self.settings.band_high_hz >= derived / 2:
            logger.warning(
                f"Ignoring timestamp-derived rate {derived:.1f}Hz "
                f"(nominal {nominal}Hz); check timestamp units"
            )
            return nominal
        return derived

    def band_limit(self, values: np.ndarray, fs: float) -> np.ndarray:
        """
        Restrict the signal to the cardiac passband.

        The slow component (DC offset, lighting drift) is a centred moving
        average whose half-width is one period of the low cutoff; it is
        subtracted, then a zero-phase Butterworth low-pass removes content
        above the high cutoff.

        Args:
            values: Raw intensity array
            fs: Sampling frequency in Hz

        Returns:
            Band-limited array of the same length
        """
        values = np.asarray(values, dtype=float)
        n = len(values)
        if n < 3:
            return values - values.mean() if n else values

        half_width = max(1, int(fs / self.settings.band_low_hz))
        half_width = min(half_width, (n - 1) // 2)
        kernel = np.ones(2 * half_width + 1)

        # Edge windows are truncated, so divide by the actual sample count
        sums = np.convolve(values, kernel, mode="same")
        counts = np.convolve(np.ones(n), kernel, mode="same")
        detrended = values - sums / counts

        nyquist = fs / 2
        if self.settings.band_high_hz >= nyquist:
            logger.debug(f"Low-pass skipped: {self.settings.band_high_hz}Hz >= Nyquist {nyquist:.1f}Hz")
            return detrended

        sos = scipy_signal.butter(4, self.settings.band_high_hz, btype="low", fs=fs, output="sos")
        padlen = min(3 * (2 * len(sos) + 1), n - 1)
        return np.asarray(scipy_signal.sosfiltfilt(sos, detrended, padlen=padlen))

    def dominant_frequency_bpm(self, filtered: np.ndarray, fs: float) -> float:
        """
        Strongest spectral peak inside the passband, in bpm.

        Only bins in [band_low_hz, band_high_hz] are considered; ties go to
        the lowest frequency. With no positive-magnitude bin the default
        heart rate is returned.
        """
        n = len(filtered)
        if n < 2:
            return self.settings.default_heart_rate_bpm

        freqs = scipy_fft.rfftfreq(n, d=1.0 / fs)
        magnitude = np.abs(scipy_fft.rfft(filtered))

        cardiac_mask = (freqs >= self.settings.band_low_hz) & (freqs <= self.settings.band_high_hz)
        if not np.any(cardiac_mask):
            return self.settings.default_heart_rate_bpm

        cardiac_freqs = freqs[cardiac_mask]
        cardiac_power = magnitude[cardiac_mask]
        peak_idx = int(np.argmax(cardiac_power))
        if cardiac_power[peak_idx] <= 0:
            return self.settings.default_heart_rate_bpm

        return float(cardiac_freqs[peak_idx] * 60.0)

    def compute_hrv(self, filtered: np.ndarray) -> float:
        """
        RMSSD-style variability, rescaled into 20-100 ms.

        Spread (standard deviation) of the absolute successive differences
        of the filtered waveform, mapped linearly by 20 + 80·x and clamped.
        """
        if len(filtered) < 2:
            return self.settings.default_hrv_ms

        differences = np.abs(np.diff(filtered))
        rmssd = float(np.sqrt(np.var(differences)))
        return float(np.clip(HRV_FLOOR_MS + rmssd * HRV_SCALE, HRV_FLOOR_MS, HRV_CEILING_MS))

    def compute_confidence(self, filtered: np.ndarray) -> float:
        """Normalised standard deviation of the filtered signal, 0-1."""
        if len(filtered) == 0:
            return 0.0
        std = float(np.std(filtered))
        return float(np.clip(std / self.settings.confidence_reference_std, 0.0, 1.0))
