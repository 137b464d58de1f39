"""Difficulty rating from note density and pitch range."""

from dataclasses import dataclass
from typing import Optional, Sequence

from ..core import Note
from ..core.config import DifficultyThresholds
from ..core.constants import DIFFICULTY_TIERS


@dataclass
class DifficultyReport:
    """Measures behind a difficulty label."""

    label: str
    notes_per_second: float
    pitch_range: int  # Semitones between lowest and highest note


class DifficultyRater:
    """Bucket a transcription into Beginner, Intermediate or Advanced.

    Each measure is tiered on its own thresholds; the label is the higher
    of the two tiers.
    """

    def __init__(self, thresholds: Optional[DifficultyThresholds] = None):
        self.thresholds = thresholds or DifficultyThresholds()

    def rate(self, notes: Sequence[Note], duration: float) -> DifficultyReport:
        """
        Rate a list of notes.

        Args:
            notes: Transcribed notes
            duration: Length of the recording in seconds

        Returns:
            DifficultyReport
        """
        if not notes or duration <= 0:
            return DifficultyReport(label=DIFFICULTY_TIERS[0], notes_per_second=0.0, pitch_range=0)

        density = len(notes) / duration
        pitches = [n.pitch for n in notes]
        pitch_range = max(pitches) - min(pitches)

        t = self.thresholds
        tier = max(
            self._tier(density, t.intermediate_density, t.advanced_density),
            self._tier(pitch_range, t.intermediate_range, t.advanced_range),
        )
        return DifficultyReport(
            label=DIFFICULTY_TIERS[tier],
            notes_per_second=density,
            pitch_range=pitch_range,
        )

    def label(self, notes: Sequence[Note], duration: float) -> str:
        return self.rate(notes, duration).label

    @staticmethod
    def _tier(value: float, intermediate: float, advanced: float) -> int:
        if value >= advanced:
            return 2
        if value >= intermediate:
            return 1
        return 0
