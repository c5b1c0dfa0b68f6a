"""
Bounded sample window for optical pulse acquisition.

One Sample is produced per captured frame. The buffer keeps only the most
recent ``capacity`` samples; older ones are evicted on append.
"""
from collections import deque
from dataclasses import dataclass
from itertools import islice
from typing import Deque, Iterable, List

import numpy as np


@dataclass(frozen=True)
class Sample:
    """
    One optical reading.

    Attributes:
        timestamp_ms: Capture time in milliseconds
        intensity: Mean channel intensity of the region of interest
    """
    timestamp_ms: float
    intensity: float


class SignalBuffer:
    """
    Fixed-capacity, insertion-ordered ring of Samples.

    Not synchronised; the owning processor serialises access.
    """

    def __init__(self, capacity: int = 300):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._samples: Deque[Sample] = deque(maxlen=capacity)

    def append(self, sample: Sample) -> None:
        self._samples.append(sample)

    def extend(self, samples: Iterable[Sample]) -> None:
        self._samples.extend(samples)

    def clear(self) -> None:
        self._samples.clear()

    def __len__(self) -> int:
        return len(self._samples)

    def snapshot(self) -> List[Sample]:
        """Copy of the buffered samples, oldest first."""
        return list(self._samples)

    def intensities(self, last: int = 0) -> np.ndarray:
        """
        Intensity values as a float array.

        Args:
            last: If positive, only the most recent ``last`` samples

        Returns:
            1-D array, oldest first
        """
        samples = self._samples
        if last > 0 and last < len(samples):
            start = len(samples) - last
            values = [s.intensity for s in islice(samples, start, None)]
        else:
            values = [s.intensity for s in samples]
        return np.asarray(values, dtype=float)

    def timestamps(self) -> np.ndarray:
        return np.asarray([s.timestamp_ms for s in self._samples], dtype=float)
