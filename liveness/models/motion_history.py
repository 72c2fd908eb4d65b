"""
Bounded history of head displacement samples
"""
import math
from collections import deque
from typing import Deque, Iterator


class MotionHistory:
    """
    Fixed-capacity FIFO of scalar displacements with a running mean.

    Appending to a full history evicts the oldest sample. Append, evict and
    mean are all O(1); the sum is maintained incrementally.
    """

    def __init__(self, capacity: int = 10):
        if capacity < 1:
            raise ValueError(f"Motion history capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._samples: Deque[float] = deque(maxlen=capacity)
        self._total = 0.0

    def append(self, displacement: float) -> None:
        if not math.isfinite(displacement):
            raise ValueError(f"Displacement must be finite, got {displacement}")
        if len(self._samples) == self.capacity:
            self._total -= self._samples[0]
        self._samples.append(displacement)
        self._total += displacement

    def mean(self) -> float:
        """Arithmetic mean of the buffered samples, 0.0 when empty"""
        if not self._samples:
            return 0.0
        return self._total / len(self._samples)

    def clear(self) -> None:
        self._samples.clear()
        self._total = 0.0

    @property
    def is_full(self) -> bool:
        return len(self._samples) == self.capacity

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[float]:
        return iter(self._samples)

    def __repr__(self) -> str:
        return f"MotionHistory(capacity={self.capacity}, samples={list(self._samples)})"
