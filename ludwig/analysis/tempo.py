"""Tempo and meter estimation from onset events."""

import logging
from dataclasses import dataclass, field
from typing import Sequence, Tuple

import numpy as np
from scipy.ndimage import gaussian_filter1d
from scipy.signal import find_peaks

from ..core.config import TempoConfig
from ..core.constants import DEFAULT_TEMPO, DEFAULT_TIME_SIGNATURE
from .onsets import OnsetEvent
from .pitch import parabolic_peak

logger = logging.getLogger(__name__)

# Peaks within this fraction of the best one count as ties
TIE_TOLERANCE = 0.01


@dataclass
class TempoInfo:
    """Container for tempo analysis results."""

    bpm: float
    time_signature: Tuple[int, int] = DEFAULT_TIME_SIGNATURE
    confidence: float = 0.0
    beat_times: np.ndarray = field(default_factory=lambda: np.zeros(0))  # Seconds

    @property
    def beat_duration(self) -> float:
        return 60.0 / self.bpm


class TempoAnalyzer:
    """Detect tempo and time signature from onset events.

    The onset events are turned into a smoothed onset-strength curve whose
    autocorrelation is searched for the strongest periodicity inside the
    tempo range. This is the inter-onset-interval histogram of all onset
    pairs, weighted by strength.
    """

    def __init__(
        self,
        tempo_min: float = 40.0,
        tempo_max: float = 250.0,
        default_tempo: float = DEFAULT_TEMPO,
        min_onsets: int = 3,
        subharmonic_ratio: float = 0.8,
        meter_margin: float = 0.25,
    ):
        """
        Initialize TempoAnalyzer.

        Args:
            tempo_min: Slowest tempo (BPM)
            tempo_max: Fastest tempo (BPM)
            default_tempo: Fallback tempo and prior for breaking ties
            min_onsets: Onsets required for an estimate
            subharmonic_ratio: Relative height at which a faster pulse wins
            meter_margin: Contrast margin 3/4 needs over 4/4
        """
        self.tempo_min = tempo_min
        self.tempo_max = tempo_max
        self.default_tempo = default_tempo
        self.min_onsets = min_onsets
        self.subharmonic_ratio = subharmonic_ratio
        self.meter_margin = meter_margin

    @classmethod
    def from_config(cls, config: TempoConfig) -> "TempoAnalyzer":
        return cls(
            tempo_min=config.tempo_min,
            tempo_max=config.tempo_max,
            default_tempo=config.default_tempo,
            min_onsets=config.min_onsets,
            subharmonic_ratio=config.subharmonic_ratio,
            meter_margin=config.meter_margin,
        )

    def analyze(
        self,
        onsets: Sequence[OnsetEvent],
        frame_rate: float,
        n_frames: int,
    ) -> TempoInfo:
        """
        Perform full tempo analysis.

        Args:
            onsets: Onset events
            frame_rate: Frames per second of the onset curve
            n_frames: Length of the onset curve in frames

        Returns:
            TempoInfo; the default tempo with zero confidence when the
            onsets carry no usable periodicity
        """
        bpm, confidence = self.detect(onsets, frame_rate, n_frames)
        if confidence == 0.0:
            return TempoInfo(bpm=bpm)

        beat_times = self.beat_grid(onsets, bpm)
        time_signature = self.estimate_meter(onsets, bpm)

        return TempoInfo(
            bpm=bpm,
            time_signature=time_signature,
            confidence=confidence,
            beat_times=beat_times,
        )

    def detect(
        self,
        onsets: Sequence[OnsetEvent],
        frame_rate: float,
        n_frames: int,
    ) -> Tuple[float, float]:
        """
        Detect tempo.

        Returns:
            Tuple of (tempo in BPM, confidence 0-1)
        """
        if len(onsets) < self.min_onsets:
            logger.debug("%d onsets, using default tempo", len(onsets))
            return self.default_tempo, 0.0

        acf = self.onset_autocorrelation(onsets, n_frames)

        lag_lo = max(1, int(np.floor(60.0 * frame_rate / self.tempo_max)))
        lag_hi = min(n_frames - 2, int(np.ceil(60.0 * frame_rate / self.tempo_min)))
        if lag_hi - lag_lo < 2 or acf[0] <= 0:
            return self.default_tempo, 0.0

        peaks, _ = find_peaks(acf[lag_lo - 1:lag_hi + 2])
        peaks = peaks + lag_lo - 1
        peaks = peaks[(peaks >= lag_lo) & (peaks <= lag_hi)]
        if len(peaks) == 0:
            return self.default_tempo, 0.0

        lag = self._select_lag(acf, peaks, frame_rate)
        if acf[lag] <= 0:
            return self.default_tempo, 0.0

        refined, height = parabolic_peak(acf, lag)
        bpm = self._fold(60.0 * frame_rate / refined)
        confidence = float(np.clip(height / acf[0], 0.0, 1.0))

        logger.debug("tempo %.1f BPM from lag %.2f (confidence %.2f)", bpm, refined, confidence)
        return round(bpm, 1), confidence

    def onset_autocorrelation(self, onsets: Sequence[OnsetEvent], n_frames: int) -> np.ndarray:
        """Autocorrelation of the smoothed onset-strength curve, lags 0..n_frames-1."""
        curve = np.zeros(n_frames)
        for onset in onsets:
            curve[onset.frame] += onset.strength
        curve = gaussian_filter1d(curve, sigma=1.0, mode="constant")

        fft_size = 1 << int(np.ceil(np.log2(max(2, 2 * n_frames))))
        spectrum = np.fft.rfft(curve, fft_size)
        return np.fft.irfft(np.abs(spectrum) ** 2, fft_size)[:n_frames]

    def _select_lag(self, acf: np.ndarray, peaks: np.ndarray, frame_rate: float) -> int:
        heights = acf[peaks]
        best_height = heights.max()

        # Ties go to the tempo closest to the prior
        tied = peaks[heights >= best_height * (1.0 - TIE_TOLERANCE)]
        best = int(min(tied, key=lambda p: abs(60.0 * frame_rate / p - self.default_tempo)))

        # A strong peak at a whole fraction of the lag is the actual beat
        for p in sorted(peaks):
            if p >= best:
                break
            if acf[p] < self.subharmonic_ratio * acf[best]:
                continue
            multiple = int(round(best / p))
            if multiple >= 2 and abs(best - multiple * p) <= max(1.0, 0.05 * best):
                return int(p)

        return best

    def _fold(self, bpm: float) -> float:
        while bpm > self.tempo_max and bpm / 2 >= self.tempo_min:
            bpm /= 2
        while bpm < self.tempo_min and bpm * 2 <= self.tempo_max:
            bpm *= 2
        return bpm

    def beat_grid(self, onsets: Sequence[OnsetEvent], bpm: float) -> np.ndarray:
        """Beat times spanning the onsets, phased on the first onset."""
        if not onsets:
            return np.zeros(0)
        period = 60.0 / bpm
        first = onsets[0].time
        last = onsets[-1].time
        count = int(np.floor((last - first) / period + 0.5)) + 1
        return first + period * np.arange(count)

    def beat_strengths(self, onsets: Sequence[OnsetEvent], bpm: float) -> np.ndarray:
        """Strongest onset within a quarter beat of every beat."""
        beats = self.beat_grid(onsets, bpm)
        if len(beats) == 0:
            return beats

        tolerance = 0.25 * 60.0 / bpm
        times = np.array([o.time for o in onsets])
        strengths = np.array([o.strength for o in onsets])

        result = np.zeros(len(beats))
        for i, beat in enumerate(beats):
            near = np.abs(times - beat) <= tolerance
            if np.any(near):
                result[i] = strengths[near].max()
        return result

    def estimate_meter(self, onsets: Sequence[OnsetEvent], bpm: float) -> Tuple[int, int]:
        """
        Choose between 4/4 and 3/4 from the accent pattern.

        Best effort: 3/4 is reported only when grouping beats by three gives a
        clearly stronger accent contrast than grouping by four.
        """
        strengths = self.beat_strengths(onsets, bpm)
        if len(strengths) < 12 or strengths.mean() <= 0:
            return DEFAULT_TIME_SIGNATURE

        triple = self._accent_contrast(strengths, 3)
        duple = self._accent_contrast(strengths, 4)
        logger.debug("accent contrast: 3/4=%.2f 4/4=%.2f", triple, duple)

        if triple > self.meter_margin and triple >= duple + self.meter_margin:
            return (3, 4)
        return DEFAULT_TIME_SIGNATURE

    @staticmethod
    def _accent_contrast(strengths: np.ndarray, beats_per_bar: int) -> float:
        means = np.array([strengths[i::beats_per_bar].mean() for i in range(beats_per_bar)])
        strongest = int(np.argmax(means))
        others = np.delete(means, strongest).mean()
        return float((means[strongest] - others) / strengths.mean())

