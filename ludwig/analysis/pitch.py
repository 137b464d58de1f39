"""Per-frame pitch and onset-strength estimation."""

from dataclasses import dataclass
from typing import Optional, Tuple

import librosa
import numpy as np
from scipy.signal import find_peaks, get_window

from ..core.config import AnalysisConfig
from ..core.constants import MIDI_MAX, MIDI_MIN
from ..core.errors import AnalysisError, InvalidInput
from .frames import Frame


@dataclass(frozen=True)
class FrameEstimate:
    """Pitch and onset estimate for a single frame."""

    index: int
    time: float  # Frame centre in seconds
    frequency: Optional[float]  # Fundamental in Hz, None when unvoiced
    confidence: float  # 0.0 - 1.0
    onset_strength: float  # 0.0 - 1.0
    rms: float = 0.0

    @property
    def voiced(self) -> bool:
        return self.frequency is not None

    @property
    def midi(self) -> Optional[float]:
        """Continuous MIDI pitch, None when unvoiced."""
        if self.frequency is None:
            return None
        return float(librosa.hz_to_midi(self.frequency))


class FrameAnalyzer:
    """Estimate fundamental frequency and onset strength of one frame.

    Pitch uses the normalized square difference function (McLeod), computed
    from the power spectrum of the zero-padded frame. Onset strength is the
    positive spectral flux against the previous frame, normalized by the
    frame's total spectral magnitude.
    """

    def __init__(
        self,
        sr: int,
        frame_length: int = 2048,
        fmin: float = 27.5,
        fmax: float = 4200.0,
        noise_floor: float = 1e-3,
        voicing_threshold: float = 0.7,
        peak_ratio: float = 0.9,
    ):
        """
        Initialize FrameAnalyzer.

        Args:
            sr: Sample rate
            frame_length: Expected samples per frame
            fmin: Lowest fundamental (Hz)
            fmax: Highest fundamental (Hz)
            noise_floor: RMS below which a frame counts as silence
            voicing_threshold: Minimum NSDF peak height for a voiced frame
            peak_ratio: Chosen peak must reach this fraction of the highest peak
        """
        self.sr = sr
        self.frame_length = frame_length
        self.fmin = fmin
        self.fmax = fmax
        self.noise_floor = noise_floor
        self.voicing_threshold = voicing_threshold
        self.peak_ratio = peak_ratio

        # Lags below half the frame keep at least half the samples overlapping
        self.min_lag = max(2, int(np.floor(sr / fmax)))
        self.max_lag = min(int(np.ceil(sr / fmin)), frame_length // 2)
        if self.min_lag >= self.max_lag:
            raise InvalidInput(
                f"no usable pitch lags for sr={sr}, frame_length={frame_length}, "
                f"range {fmin}-{fmax} Hz"
            )

        self.window = get_window("hann", frame_length)
        self.fft_size = 2 * frame_length

    @classmethod
    def from_config(cls, sr: int, config: AnalysisConfig) -> "FrameAnalyzer":
        return cls(
            sr=sr,
            frame_length=config.frame_length,
            fmin=config.fmin,
            fmax=config.fmax,
            noise_floor=config.noise_floor,
            voicing_threshold=config.voicing_threshold,
            peak_ratio=config.peak_ratio,
        )

    def analyze(self, frame: Frame, previous: Optional[Frame] = None) -> FrameEstimate:
        """
        Estimate pitch and onset strength.

        Args:
            frame: Frame to analyse
            previous: The frame before it, None for the first frame

        Returns:
            FrameEstimate (unvoiced with zero onset for silent frames)

        Raises:
            AnalysisError: If the frame data is malformed
        """
        samples = self._check(frame.samples, frame.index)
        rms = float(np.sqrt(np.mean(samples**2)))

        if rms < self.noise_floor:
            return FrameEstimate(
                index=frame.index,
                time=frame.time,
                frequency=None,
                confidence=0.0,
                onset_strength=0.0,
                rms=rms,
            )

        prior = None
        if previous is not None:
            prior = self._check(previous.samples, previous.index)

        frequency, confidence = self.estimate_pitch(samples)
        onset = self.onset_strength(samples, prior)

        return FrameEstimate(
            index=frame.index,
            time=frame.time,
            frequency=frequency,
            confidence=confidence,
            onset_strength=onset,
            rms=rms,
        )

    def _check(self, samples: np.ndarray, index: int) -> np.ndarray:
        samples = np.asarray(samples, dtype=np.float64)
        if samples.ndim != 1 or len(samples) != self.frame_length:
            raise AnalysisError(
                f"frame {index}: expected {self.frame_length} samples, got shape {samples.shape}"
            )
        if not np.all(np.isfinite(samples)):
            raise AnalysisError(f"frame {index}: non-finite sample values")
        return samples

    def nsdf(self, samples: np.ndarray) -> np.ndarray:
        """
        Normalized square difference function up to max_lag + 1.

        n(tau) = 2 r(tau) / m(tau), with r the autocorrelation obtained from
        the power spectrum and m the energy of the overlapping parts.
        """
        n = len(samples)
        spectrum = np.fft.rfft(samples, self.fft_size)
        acf = np.fft.irfft(np.abs(spectrum) ** 2, self.fft_size)[: self.max_lag + 2]

        cumulative = np.concatenate(([0.0], np.cumsum(samples**2)))
        lags = np.arange(len(acf))
        energy = cumulative[n - lags] + (cumulative[n] - cumulative[lags])

        return np.divide(
            2.0 * acf,
            energy,
            out=np.zeros_like(acf),
            where=energy > 0,
        )

    def estimate_pitch(self, samples: np.ndarray) -> Tuple[Optional[float], float]:
        """
        Estimate the fundamental of a frame.

        Returns:
            Tuple of (frequency in Hz or None when unvoiced, confidence)
        """
        curve = self.nsdf(samples)

        # Skip the lobe around lag zero
        negative = np.flatnonzero(curve[1:] < 0)
        if len(negative) == 0:
            return None, 0.0
        search_start = max(int(negative[0]) + 1, self.min_lag - 1)

        peaks, _ = find_peaks(curve[search_start:])
        peaks = peaks + search_start
        peaks = peaks[(peaks >= self.min_lag) & (peaks <= self.max_lag)]
        if len(peaks) == 0:
            return None, 0.0

        heights = curve[peaks]
        best = heights.max()
        if best <= 0:
            return None, 0.0

        # First peak close to the highest one avoids octave-down errors
        chosen = int(peaks[np.argmax(heights >= self.peak_ratio * best)])
        lag, height = parabolic_peak(curve, chosen)

        confidence = float(np.clip(height, 0.0, 1.0))
        frequency = self.sr / lag
        if confidence < self.voicing_threshold or not self.fmin <= frequency <= self.fmax:
            return None, confidence
        return float(frequency), confidence

    def magnitude(self, samples: np.ndarray) -> np.ndarray:
        """Magnitude spectrum of the Hann-windowed frame."""
        return np.abs(np.fft.rfft(samples * self.window))

    def onset_strength(
        self,
        samples: np.ndarray,
        previous: Optional[np.ndarray] = None,
    ) -> float:
        """
        Positive spectral flux against the previous frame.

        The first frame of a buffer is compared against silence.

        Returns:
            Onset strength in [0, 1]
        """
        current = self.magnitude(samples)
        total = current.sum()
        if total <= 0:
            return 0.0

        if previous is None:
            prior = np.zeros_like(current)
        else:
            prior = self.magnitude(previous)

        flux = np.maximum(current - prior, 0.0).sum()
        return float(np.clip(flux / total, 0.0, 1.0))


def parabolic_peak(curve: np.ndarray, index: int) -> Tuple[float, float]:
    """Sub-sample position and height of the peak at ``index``."""
    if index <= 0 or index >= len(curve) - 1:
        return float(index), float(curve[index])

    a, b, c = curve[index - 1], curve[index], curve[index + 1]
    denom = a - 2 * b + c
    if denom == 0:
        return float(index), float(b)

    offset = 0.5 * (a - c) / denom
    return float(index + offset), float(b - 0.25 * (a - c) * offset)


def f0_to_midi(frequency: Optional[float]) -> Optional[int]:
    """Round a fundamental to the nearest MIDI pitch, clamped to 0-127."""
    if frequency is None or frequency <= 0:
        return None
    midi = int(np.round(librosa.hz_to_midi(frequency)))
    return max(MIDI_MIN, min(MIDI_MAX, midi))
