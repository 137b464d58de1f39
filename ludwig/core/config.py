"""Configuration for the transcription pipeline.

Every tunable of the pipeline lives here with its default. The defaults are
starting points; onset threshold, voicing threshold and difficulty tiers all
benefit from calibration against labelled recordings.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from .constants import (
    DEFAULT_FRAME_LENGTH,
    DEFAULT_HOP_LENGTH,
    DEFAULT_QUANTIZE_RESOLUTION,
    DEFAULT_TEMPO,
)
from .errors import InvalidInput


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise InvalidInput(message)


@dataclass
class AnalysisConfig:
    """Frame segmentation and per-frame pitch estimation.

    Attributes:
        frame_length: Samples per analysis frame (default: 2048)
        hop_length: Samples between frame starts (default: 512)
        fmin: Lowest fundamental considered, in Hz (default: 27.5, A0)
        fmax: Highest fundamental considered, in Hz (default: 4200)
        noise_floor: Frame RMS below which a frame is silent (default: 1e-3)
        voicing_threshold: Minimum NSDF peak height for a voiced frame (default: 0.7)
        peak_ratio: Fraction of the highest NSDF peak the chosen peak must reach (default: 0.9)
    """

    frame_length: int = DEFAULT_FRAME_LENGTH
    hop_length: int = DEFAULT_HOP_LENGTH
    fmin: float = 27.5
    fmax: float = 4200.0
    noise_floor: float = 1e-3
    voicing_threshold: float = 0.7
    peak_ratio: float = 0.9

    def validate(self) -> None:
        _require(self.frame_length > 0, f"frame_length must be positive, got {self.frame_length}")
        _require(self.hop_length > 0, f"hop_length must be positive, got {self.hop_length}")
        _require(
            self.hop_length <= self.frame_length,
            f"hop_length ({self.hop_length}) must not exceed frame_length ({self.frame_length})",
        )
        _require(0 < self.fmin < self.fmax, f"invalid pitch range {self.fmin}-{self.fmax} Hz")
        _require(self.noise_floor >= 0, "noise_floor must be non-negative")
        _require(0 < self.voicing_threshold <= 1, "voicing_threshold must be in (0, 1]")
        _require(0 < self.peak_ratio <= 1, "peak_ratio must be in (0, 1]")


@dataclass
class OnsetConfig:
    """Adaptive onset picking.

    Attributes:
        onset_threshold: Absolute floor of the adaptive threshold (default: 0.2)
        onset_delta: Margin above the local median (default: 0.1)
        onset_window: Frames in the centred median window (default: 7)
        min_onset_gap: Minimum seconds between two onsets (default: 0.05)
    """

    onset_threshold: float = 0.2
    onset_delta: float = 0.1
    onset_window: int = 7
    min_onset_gap: float = 0.05

    def validate(self) -> None:
        _require(0 <= self.onset_threshold <= 1, "onset_threshold must be in [0, 1]")
        _require(self.onset_delta >= 0, "onset_delta must be non-negative")
        _require(self.onset_window >= 1, "onset_window must be at least 1 frame")
        _require(self.min_onset_gap >= 0, "min_onset_gap must be non-negative")


@dataclass
class AssemblyConfig:
    """Note assembly state machine.

    Attributes:
        min_note_duration: Notes shorter than this are discarded, seconds (default: 0.06)
        silence_tolerance: Unvoiced gap bridged inside a note, seconds (default: 0.05)
        pitch_persistence: Time a new semitone must persist to split a note, seconds (default: 0.05)
    """

    min_note_duration: float = 0.06
    silence_tolerance: float = 0.05
    pitch_persistence: float = 0.05

    def validate(self) -> None:
        _require(self.min_note_duration > 0, "min_note_duration must be positive")
        _require(self.silence_tolerance >= 0, "silence_tolerance must be non-negative")
        _require(self.pitch_persistence >= 0, "pitch_persistence must be non-negative")


@dataclass
class TempoConfig:
    """Tempo and meter estimation.

    The upper bound defaults to 250 BPM so a pulse of four onsets per second
    (240 BPM) is reported as such rather than folded to 120.

    Attributes:
        tempo_min: Slowest tempo considered, BPM (default: 40)
        tempo_max: Fastest tempo considered, BPM (default: 250)
        default_tempo: Tempo reported without rhythmic evidence, and the prior for ties (default: 120)
        min_onsets: Onsets required before estimating (default: 3)
        subharmonic_ratio: Relative height at which a faster pulse replaces the best peak (default: 0.8)
        meter_margin: Accent-contrast margin 3/4 needs over 4/4 (default: 0.25)
    """

    tempo_min: float = 40.0
    tempo_max: float = 250.0
    default_tempo: float = DEFAULT_TEMPO
    min_onsets: int = 3
    subharmonic_ratio: float = 0.8
    meter_margin: float = 0.25

    def validate(self) -> None:
        _require(0 < self.tempo_min < self.tempo_max, f"invalid tempo range {self.tempo_min}-{self.tempo_max} BPM")
        _require(self.default_tempo > 0, "default_tempo must be positive")
        _require(self.min_onsets >= 2, "min_onsets must be at least 2")
        _require(0 < self.subharmonic_ratio <= 1, "subharmonic_ratio must be in (0, 1]")
        _require(self.meter_margin >= 0, "meter_margin must be non-negative")


@dataclass
class DifficultyThresholds:
    """Tier boundaries for the difficulty label.

    A transcription is Intermediate from the first threshold of either measure
    and Advanced from the second one.

    Attributes:
        intermediate_density: Notes per second where Intermediate starts (default: 2.0)
        advanced_density: Notes per second where Advanced starts (default: 4.0)
        intermediate_range: Pitch span in semitones where Intermediate starts (default: 12)
        advanced_range: Pitch span in semitones where Advanced starts (default: 24)
    """

    intermediate_density: float = 2.0
    advanced_density: float = 4.0
    intermediate_range: int = 12
    advanced_range: int = 24

    def validate(self) -> None:
        _require(
            0 < self.intermediate_density <= self.advanced_density,
            "density thresholds must be positive and ordered",
        )
        _require(
            0 < self.intermediate_range <= self.advanced_range,
            "range thresholds must be positive and ordered",
        )


@dataclass
class TranscriptionConfig:
    """Complete configuration of one transcription run.

    Attributes:
        workers: Threads used for frame analysis; 1 runs inline (default: 1)
        batch_size: Frames analysed between cancellation checks (default: 256)
        quantize_resolution: Grid subdivision of a whole note, 16 = sixteenths (default: 16)
        key_profile: Key profile family, "krumhansl" or "temperley" (default: "krumhansl")
    """

    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    onsets: OnsetConfig = field(default_factory=OnsetConfig)
    assembly: AssemblyConfig = field(default_factory=AssemblyConfig)
    tempo: TempoConfig = field(default_factory=TempoConfig)
    difficulty: DifficultyThresholds = field(default_factory=DifficultyThresholds)
    workers: int = 1
    batch_size: int = 256
    quantize_resolution: int = DEFAULT_QUANTIZE_RESOLUTION
    key_profile: str = "krumhansl"

    def validate(self) -> None:
        """Raise InvalidInput if any setting is out of range."""
        self.analysis.validate()
        self.onsets.validate()
        self.assembly.validate()
        self.tempo.validate()
        self.difficulty.validate()
        _require(self.workers >= 1, "workers must be at least 1")
        _require(self.batch_size >= 1, "batch_size must be at least 1")
        _require(self.quantize_resolution >= 1, "quantize_resolution must be at least 1")
        _require(
            self.key_profile in ("krumhansl", "temperley"),
            f"unknown key profile: {self.key_profile}",
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptionConfig":
        """Build a config from nested dictionaries (e.g. parsed JSON)."""
        sections = {
            "analysis": AnalysisConfig,
            "onsets": OnsetConfig,
            "assembly": AssemblyConfig,
            "tempo": TempoConfig,
            "difficulty": DifficultyThresholds,
        }
        kwargs = {}
        for key, value in data.items():
            if key in sections:
                try:
                    kwargs[key] = sections[key](**value)
                except TypeError as e:
                    raise InvalidInput(f"invalid '{key}' settings: {e}") from e
            elif key in ("workers", "batch_size", "quantize_resolution", "key_profile"):
                kwargs[key] = value
            else:
                raise InvalidInput(f"unknown configuration key: {key}")
        config = cls(**kwargs)
        config.validate()
        return config
