"""
End-to-End Demo

Runs the core on synthetic data:
1. Mock fingertip PPG stream at 30 fps (72 bpm)
2. Pulse detection
3. A week of daily readings → CSS, trend, alert decision
4. BP estimate and category

Run: python -m cardiopulse
"""
import numpy as np

from cardiopulse.core.scoring import Baseline, DailyReading, css_trend_series, summarize_trends
from cardiopulse.core.signal import Sample
from cardiopulse.pipeline import CardioPulsePipeline
from cardiopulse.utils import setup_logging


def generate_mock_ppg_samples(duration_sec=10, fps=30, heart_rate=72, seed=7):
    """Red-channel intensity around 180 with a small pulse and sensor noise."""
    rng = np.random.default_rng(seed)
    n = int(duration_sec * fps)
    t = np.arange(n) / fps
    ppg = 180 + 4 * np.sin(2 * np.pi * (heart_rate / 60) * t) + 0.3 * rng.standard_normal(n)
    return [Sample(timestamp_ms=ti * 1000.0, intensity=float(v)) for ti, v in zip(t, ppg)]


def generate_mock_week():
    hrvs = [62, 60, 57, 55, 52, 49, 46]
    return [
        DailyReading(
            date=f"2026-03-{10 + i:02d}",
            hrv=hrv,
            sedentary_hours=9 + i * 0.5,
            sleep_quality=6 - i * 0.5,
            screen_stress_index=6,
            food_impact=0.7,
        )
        for i, hrv in enumerate(hrvs)
    ]


def main():
    pipeline = CardioPulsePipeline.from_env()
    setup_logging(pipeline.settings)

    print("=" * 60)
    print("CARDIOPULSE - END-TO-END DEMO")
    print("=" * 60)

    print("\n[1/3] Pulse detection...")
    processor = pipeline.new_processor()
    processor.start()
    for sample in generate_mock_ppg_samples():
        processor.ingest(sample)
    detection = processor.detect()
    processor.stop()
    print(f"   HR: {detection.heart_rate_bpm} bpm")
    print(f"   HRV: {detection.hrv_ms} ms")
    print(f"   Confidence: {detection.confidence:.2f} (signal {detection.signal_strength:.2f})")

    print("\n[2/3] Cardiovascular stress score...")
    readings = generate_mock_week()
    baseline = Baseline(hrv=62, sedentary_hours=6, sleep_quality=7)
    css = pipeline.score(readings, baseline)
    print(f"   Score: {css.score}/100, trend {css.trend.value}")
    print(f"   Worsening days: {css.worsening_days}, alert: {css.should_alert}")
    summary = summarize_trends(css_trend_series(readings, baseline))
    print(f"   Week: best {summary.best_day.date} ({summary.best_day.css}), "
          f"worst {summary.worst_day.date} ({summary.worst_day.css}), avg {summary.average_css}")

    print("\n[3/3] Blood pressure estimate...")
    estimate, category = pipeline.estimate_bp(readings[-1].hrv, baseline.hrv, age=52, biological_sex="female")
    print(f"   {estimate.systolic}/{estimate.diastolic} mmHg ({estimate.confidence.value} confidence)")
    print(f"   Category: {category.label} - {category.risk.value} risk")
    print("\n   This is an estimation based on HRV trends, not a direct measurement.")


if __name__ == "__main__":
    main()
