"""
Unit Tests for Pulse Signal Module

Tests for the sample buffer, frame adapter, and the PulseSignalProcessor
lifecycle, quality, detection and threading behaviour.
"""
import threading

import pytest
import numpy as np

from cardiopulse.config import Settings
from cardiopulse.core.signal import (
    Sample,
    SignalBuffer,
    PulseSignalProcessor,
    DetectionResult,
    AcquisitionState,
    sample_from_frame,
    roi_mean_intensity,
)
from cardiopulse.utils import InsufficientDataError


def _started(settings, samples=()):
    processor = PulseSignalProcessor(settings=settings)
    processor.start()
    for s in samples:
        processor.ingest(s)
    return processor


class TestSignalBuffer:
    """Tests for SignalBuffer."""

    def test_append_and_len(self):
        """Test basic appends."""
        buf = SignalBuffer(capacity=5)
        buf.append(Sample(0.0, 1.0))
        buf.append(Sample(33.3, 2.0))

        assert len(buf) == 2
        assert np.array_equal(buf.intensities(), [1.0, 2.0])

    def test_evicts_oldest(self):
        """Test ring semantics at capacity."""
        buf = SignalBuffer(capacity=3)
        buf.extend(Sample(float(i), float(i)) for i in range(5))

        assert len(buf) == 3
        assert list(buf.intensities()) == [2.0, 3.0, 4.0]
        assert list(buf.timestamps()) == [2.0, 3.0, 4.0]

    def test_recent_window(self):
        """Test slicing the most recent samples."""
        buf = SignalBuffer(capacity=10)
        buf.extend(Sample(float(i), float(i)) for i in range(10))

        assert list(buf.intensities(last=3)) == [7.0, 8.0, 9.0]
        assert len(buf.intensities(last=50)) == 10

    def test_clear(self):
        buf = SignalBuffer(capacity=3)
        buf.append(Sample(0.0, 1.0))
        buf.clear()
        assert len(buf) == 0
        assert buf.snapshot() == []

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            SignalBuffer(capacity=0)


class TestFrameAdapter:
    """Tests for frame → sample reduction."""

    def test_center_roi_red_channel(self):
        """Only the central ROI of the red channel counts."""
        frame = np.zeros((100, 100, 3), dtype=np.uint8)
        frame[25:75, 25:75, 0] = 200
        frame[:, :, 1] = 255

        assert roi_mean_intensity(frame) == pytest.approx(200.0)

    def test_bgr_order(self):
        """OpenCV frames carry red in the last channel."""
        frame = np.zeros((40, 40, 3), dtype=np.uint8)
        frame[:, :, 2] = 150

        assert roi_mean_intensity(frame, bgr=True) == pytest.approx(150.0)
        assert roi_mean_intensity(frame, bgr=False) == pytest.approx(0.0)

    def test_sample_from_frame(self):
        frame = np.full((20, 20, 3), 90, dtype=np.uint8)
        sample = sample_from_frame(frame, 1234)

        assert sample.timestamp_ms == 1234.0
        assert sample.intensity == pytest.approx(90.0)

    def test_grayscale_frame(self):
        frame = np.full((10, 10), 42.0)
        assert roi_mean_intensity(frame) == pytest.approx(42.0)

    def test_invalid_frame(self):
        with pytest.raises(ValueError):
            roi_mean_intensity(np.array([1.0, 2.0]))


class TestProcessorLifecycle:
    """Tests for start/stop and state transitions."""

    def test_initial_state_acquiring(self, settings):
        """A new processor accepts samples without start()."""
        processor = PulseSignalProcessor(settings=settings)
        assert processor.state == AcquisitionState.ACQUIRING
        assert processor.buffered_samples == 0

    def test_ingest_then_detect_without_start(self, settings, sample_factory):
        """A full window pushed through ingest() alone is detectable."""
        processor = PulseSignalProcessor(settings=settings)
        for s in sample_factory(n=settings.max_samples, freq_hz=1.2):
            processor.ingest(s)

        assert processor.buffered_samples == settings.max_samples
        assert processor.state == AcquisitionState.READY
        assert abs(processor.detect().heart_rate_bpm - 72) <= 5

    def test_ingest_after_stop_is_dropped(self, settings, sample_factory):
        """Samples after stop() never reach the buffer."""
        processor = _started(settings, sample_factory(n=20))
        processor.stop()
        for s in sample_factory(n=20):
            processor.ingest(s)

        assert processor.buffered_samples == 0
        assert processor.state == AcquisitionState.IDLE

    def test_start_after_stop_accepts_again(self, settings, sample_factory):
        processor = _started(settings)
        processor.stop()
        processor.start()
        for s in sample_factory(n=5):
            processor.ingest(s)

        assert processor.buffered_samples == 5
        assert processor.frame_count == 5

    def test_acquiring_then_ready(self, settings, sample_factory):
        """State moves to READY at min_samples."""
        samples = sample_factory(n=settings.min_samples)
        processor = _started(settings, samples[:-1])
        assert processor.state == AcquisitionState.ACQUIRING

        processor.ingest(samples[-1])
        assert processor.state == AcquisitionState.READY

    def test_stop_discards_buffer(self, settings, sample_factory):
        """Stopping returns to IDLE without keeping samples."""
        processor = _started(settings, sample_factory(n=120))
        processor.stop()

        assert processor.state == AcquisitionState.IDLE
        assert processor.buffered_samples == 0
        with pytest.raises(InsufficientDataError):
            processor.detect()

    def test_restart_resets_counters(self, settings, sample_factory):
        processor = _started(settings, sample_factory(n=50))
        processor.start()

        assert processor.buffered_samples == 0
        assert processor.frame_count == 0

    def test_buffer_bounded(self, settings, sample_factory):
        """Buffer never exceeds max_samples; frame_count keeps counting."""
        processor = _started(settings, sample_factory(n=350))

        assert processor.buffered_samples == settings.max_samples
        assert processor.frame_count == 350

    def test_signal_update_callback(self, settings, sample_factory):
        """Callback fires once per accepted sample."""
        strengths = []
        processor = PulseSignalProcessor(settings=settings, on_signal_update=strengths.append)
        processor.start()
        for s in sample_factory(n=15):
            processor.ingest(s)

        assert len(strengths) == 15
        assert strengths[0] == 0.0
        assert all(0.0 <= v <= 1.0 for v in strengths)


class TestSignalQuality:
    """Tests for live signal strength."""

    def test_zero_below_minimum(self, settings, sample_factory):
        """Fewer than 10 samples gives exactly 0."""
        processor = _started(settings, sample_factory(n=9, amplitude=50.0))
        assert processor.signal_quality() == 0.0

    def test_flat_signal_is_zero(self, settings, sample_factory):
        processor = _started(settings, sample_factory(n=60, amplitude=0.0))
        assert processor.signal_quality() == 0.0

    def test_pulse_signal_positive(self, settings, sample_factory):
        processor = _started(settings, sample_factory(n=60, amplitude=2.0))
        quality = processor.signal_quality()
        assert 0.0 < quality < 1.0

    def test_strong_signal_saturates(self, settings, sample_factory):
        processor = _started(settings, sample_factory(n=60, amplitude=40.0))
        assert processor.signal_quality() == 1.0


class TestDetection:
    """Tests for heart rate, HRV and confidence extraction."""

    def test_insufficient_data(self, settings, sample_factory):
        """50 samples is below MIN_SAMPLES=90."""
        processor = _started(settings, sample_factory(n=50))

        with pytest.raises(InsufficientDataError) as exc_info:
            processor.detect()

        assert exc_info.value.code == "INSUFFICIENT_DATA"
        assert exc_info.value.details == {"sample_count": 50, "required": 90}

    def test_72_bpm_at_1_2_hz(self, settings, sample_factory):
        """A 1.2 Hz oscillation at 30 Hz reads as ~72 bpm."""
        processor = _started(settings, sample_factory(n=settings.max_samples, freq_hz=1.2))
        result = processor.detect()

        assert isinstance(result, DetectionResult)
        assert abs(result.heart_rate_bpm - 72) <= 5
        assert result.sample_count == 300
        assert result.sample_rate_hz == pytest.approx(30.0)

    @pytest.mark.parametrize("freq_hz,expected_bpm", [(1.0, 60), (1.5, 90), (2.0, 120)])
    def test_other_rates(self, settings, sample_factory, freq_hz, expected_bpm):
        processor = _started(settings, sample_factory(n=300, freq_hz=freq_hz))
        assert abs(processor.detect().heart_rate_bpm - expected_bpm) <= 5

    def test_detect_at_min_samples(self, settings, sample_factory):
        """Detection works as soon as the buffer is READY."""
        processor = _started(settings, sample_factory(n=settings.min_samples, freq_hz=1.5))
        result = processor.detect()

        assert 42 <= result.heart_rate_bpm <= 240
        assert 20 <= result.hrv_ms <= 100

    def test_robust_to_linear_drift(self, settings, sample_factory):
        """Lighting drift does not pull the peak out of the cardiac band."""
        samples = sample_factory(n=300, freq_hz=1.5, amplitude=4.0, drift_per_sample=0.05)
        result = _started(settings, samples).detect()

        assert abs(result.heart_rate_bpm - 90) <= 5

    def test_flat_signal_defaults(self, settings, sample_factory):
        """No spectral content falls back to 72 bpm with zero confidence."""
        result = _started(settings, sample_factory(n=300, amplitude=0.0)).detect()

        assert result.heart_rate_bpm == 72
        assert result.hrv_ms == 20
        assert result.confidence == 0.0
        assert result.is_low_confidence

    def test_value_ranges(self, settings, sample_factory):
        result = _started(settings, sample_factory(n=300, amplitude=30.0)).detect()

        assert 20 <= result.hrv_ms <= 100
        assert 0.0 <= result.confidence <= 1.0
        assert 0.0 <= result.signal_strength <= 1.0

    def test_confidence_tracks_amplitude(self, settings, sample_factory):
        weak = _started(settings, sample_factory(n=300, amplitude=0.5)).detect()
        strong = _started(settings, sample_factory(n=300, amplitude=8.0)).detect()

        assert weak.confidence < strong.confidence
        assert weak.is_low_confidence
        assert not strong.is_low_confidence

    def test_detect_is_repeatable(self, settings, sample_factory):
        """Detection does not consume the buffer."""
        processor = _started(settings, sample_factory(n=200))
        first = processor.detect()
        second = processor.detect()

        assert first == second
        assert processor.buffered_samples == 200

    def test_result_to_dict(self, settings, sample_factory):
        result = _started(settings, sample_factory(n=300)).detect()
        data = result.to_dict()

        assert data["heart_rate_bpm"] == result.heart_rate_bpm
        assert data["hrv_ms"] == result.hrv_ms
        assert data["low_confidence"] == result.is_low_confidence

    def test_strength_matches_detected_window(self, settings, sample_factory):
        """Reported strength describes the same buffer the detection used."""
        processor = _started(settings, sample_factory(n=200, amplitude=2.0))
        result = processor.detect()

        assert result.signal_strength == pytest.approx(processor.signal_quality())
        assert 0.0 < result.signal_strength < 1.0


class TestSampleRate:
    """Tests for timestamp-derived sampling rate."""

    def test_rate_from_timestamps(self, settings, sample_factory):
        """20 fps timestamps put a 1 Hz pulse at 60 bpm."""
        samples = sample_factory(n=300, freq_hz=1.0, fs=20.0)
        result = _started(settings, samples).detect()

        assert result.sample_rate_hz == pytest.approx(20.0)
        assert abs(result.heart_rate_bpm - 60) <= 5

    def test_nominal_rate_when_disabled(self, sample_factory):
        """Ignoring timestamps assumes the nominal 30 Hz."""
        settings = Settings(_env_file=None, use_timestamps_for_rate=False)
        samples = sample_factory(n=300, freq_hz=1.0, fs=20.0)
        result = _started(settings, samples).detect()

        assert result.sample_rate_hz == 30.0
        assert abs(result.heart_rate_bpm - 90) <= 5

    def test_bad_timestamps_fall_back(self, settings):
        processor = PulseSignalProcessor(settings=settings)

        assert processor.effective_sample_rate(np.zeros(10)) == 30.0
        assert processor.effective_sample_rate(np.array([5.0])) == 30.0
        assert processor.effective_sample_rate(np.array([0.0, 50.0, 100.0])) == pytest.approx(20.0)

    def test_seconds_timestamps_fall_back(self, settings, sample_factory):
        """Timestamps in seconds imply 30 kHz; the nominal 30 Hz is used instead."""
        samples = sample_factory(n=300, freq_hz=1.5, timestamp_fs=30000.0)
        result = _started(settings, samples).detect()

        assert result.sample_rate_hz == 30.0
        assert abs(result.heart_rate_bpm - 90) <= 5
        assert not result.is_low_confidence

    @pytest.mark.parametrize("interval_ms", [200.0, 10.0, 1.0])
    def test_implausible_rates_rejected(self, settings, interval_ms):
        """5 Hz cannot hold the passband; 100 Hz and 1 kHz stray too far from nominal."""
        processor = PulseSignalProcessor(settings=settings)
        timestamps = np.arange(10) * interval_ms

        assert processor.effective_sample_rate(timestamps) == 30.0

    def test_rate_within_tolerance_accepted(self, settings):
        processor = PulseSignalProcessor(settings=settings)
        assert processor.effective_sample_rate(np.arange(10) * 25.0) == pytest.approx(40.0)


class TestSignalSteps:
    """Tests for the individual processing steps."""

    def test_band_limit_removes_offset(self, settings, sample_factory):
        processor = PulseSignalProcessor(settings=settings)
        values = np.array([s.intensity for s in sample_factory(n=300, offset=180.0)])
        filtered = processor.band_limit(values, 30.0)

        assert len(filtered) == 300
        assert abs(float(np.mean(filtered))) < 1.0

    def test_band_limit_short_input(self, settings):
        processor = PulseSignalProcessor(settings=settings)
        assert len(processor.band_limit(np.array([1.0, 2.0]), 30.0)) == 2
        assert len(processor.band_limit(np.array([]), 30.0)) == 0

    def test_hrv_default_for_short_signal(self, settings):
        processor = PulseSignalProcessor(settings=settings)
        assert processor.compute_hrv(np.array([1.0])) == 50.0

    def test_hrv_clamped(self, settings):
        processor = PulseSignalProcessor(settings=settings)
        noisy = np.random.default_rng(0).normal(0, 50, 300)

        assert processor.compute_hrv(noisy) == 100.0
        assert processor.compute_hrv(np.zeros(300)) == 20.0

    def test_dominant_frequency_ignores_out_of_band(self, settings):
        """A strong 6 Hz tone is outside the passband and ignored."""
        processor = PulseSignalProcessor(settings=settings)
        t = np.arange(300) / 30.0
        sig = 20 * np.sin(2 * np.pi * 6.0 * t) + 2 * np.sin(2 * np.pi * 1.3 * t)

        assert processor.dominant_frequency_bpm(sig, 30.0) == pytest.approx(78.0)


class TestConcurrency:
    """Producer and consumer on separate threads."""

    def test_concurrent_ingest_and_detect(self, settings, sample_factory):
        processor = _started(settings, sample_factory(n=settings.min_samples))
        samples = sample_factory(n=2000)
        errors = []

        def produce():
            for s in samples:
                processor.ingest(s)

        def consume():
            try:
                for _ in range(20):
                    result = processor.detect()
                    assert 20 <= result.hrv_ms <= 100
                    processor.signal_quality()
            except Exception as e:  # surfaced below
                errors.append(e)

        threads = [threading.Thread(target=produce)] + [threading.Thread(target=consume) for _ in range(3)]
        for th in threads:
            th.start()
        for th in threads:
            th.join()

        assert errors == []
        assert processor.buffered_samples == settings.max_samples
