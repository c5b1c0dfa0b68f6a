"""
Frame → Sample adapter.

Fingertip-over-torch capture: the finger covers the centre of the frame and
the red channel carries the pulse, since haemoglobin absorbs red light most
strongly. Each frame collapses to the mean red value of the central ROI.
"""
from typing import Tuple

import numpy as np

from .buffer import Sample

# ROI box as fractions: (row_start, row_end, col_start, col_end)
CENTER_ROI: Tuple[float, float, float, float] = (0.25, 0.75, 0.25, 0.75)


def roi_mean_intensity(
    frame: np.ndarray,
    roi: Tuple[float, float, float, float] = CENTER_ROI,
    bgr: bool = False
) -> float:
    """
    Mean red-channel value of a rectangular ROI.

    Args:
        frame: HxWx3 (or HxWx4) image array, or HxW single-channel
        roi: Fractional ROI box (row_start, row_end, col_start, col_end)
        bgr: True for OpenCV channel order

    Returns:
        Mean intensity of the ROI
    """
    frame = np.asarray(frame)
    if frame.ndim < 2 or frame.shape[0] == 0 or frame.shape[1] == 0:
        raise ValueError(f"Expected an image array, got shape {frame.shape}")

    h, w = frame.shape[:2]
    r0, r1, c0, c1 = roi
    patch = frame[int(h * r0):max(int(h * r1), int(h * r0) + 1),
                  int(w * c0):max(int(w * c1), int(w * c0) + 1)]

    if patch.ndim == 3:
        channel = 2 if bgr else 0
        patch = patch[:, :, channel]
    return float(np.mean(patch))


def sample_from_frame(frame: np.ndarray, timestamp_ms: float, bgr: bool = False) -> Sample:
    """Build one Sample from a captured frame."""
    return Sample(timestamp_ms=float(timestamp_ms), intensity=roi_mean_intensity(frame, bgr=bgr))
