"""Onset picking from the per-frame onset-strength curve."""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
from scipy.ndimage import maximum_filter1d, median_filter

from ..core.config import OnsetConfig


@dataclass(frozen=True)
class OnsetEvent:
    """A likely note start."""

    frame: int
    time: float  # Seconds
    strength: float


class OnsetPicker:
    """Pick onsets as local maxima above an adaptive threshold.

    The threshold follows the local median of the strength curve plus a
    margin, and never drops below an absolute floor.
    """

    def __init__(
        self,
        onset_threshold: float = 0.2,
        onset_delta: float = 0.1,
        onset_window: int = 7,
        min_onset_gap: float = 0.05,
    ):
        """
        Initialize OnsetPicker.

        Args:
            onset_threshold: Absolute floor of the threshold
            onset_delta: Margin above the local median
            onset_window: Frames in the centred median window
            min_onset_gap: Minimum time between onsets in seconds
        """
        self.onset_threshold = onset_threshold
        self.onset_delta = onset_delta
        self.onset_window = onset_window
        self.min_onset_gap = min_onset_gap

    @classmethod
    def from_config(cls, config: OnsetConfig) -> "OnsetPicker":
        return cls(
            onset_threshold=config.onset_threshold,
            onset_delta=config.onset_delta,
            onset_window=config.onset_window,
            min_onset_gap=config.min_onset_gap,
        )

    def thresholds(self, strengths: np.ndarray) -> np.ndarray:
        """Adaptive threshold for every frame."""
        strengths = np.asarray(strengths, dtype=np.float64)
        if len(strengths) == 0:
            return strengths
        # Outside the buffer counts as silence
        local = median_filter(strengths, size=self.onset_window, mode="constant", cval=0.0)
        return np.maximum(self.onset_threshold, local + self.onset_delta)

    def pick(
        self,
        strengths: Sequence[float],
        times: Sequence[float],
    ) -> List[OnsetEvent]:
        """
        Pick onset events.

        Args:
            strengths: Onset strength per frame
            times: Frame times in seconds

        Returns:
            Onset events in time order
        """
        strengths = np.asarray(strengths, dtype=np.float64)
        times = np.asarray(times, dtype=np.float64)
        if len(strengths) == 0:
            return []

        thresholds = self.thresholds(strengths)
        neighbourhood = maximum_filter1d(strengths, size=3, mode="constant", cval=0.0)
        candidates = np.flatnonzero((strengths >= neighbourhood) & (strengths > thresholds))

        events = []
        last_time = -np.inf
        for i in candidates:
            if times[i] - last_time < self.min_onset_gap:
                continue
            events.append(
                OnsetEvent(frame=int(i), time=float(times[i]), strength=float(strengths[i]))
            )
            last_time = times[i]

        return events
