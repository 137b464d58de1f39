"""Key detection - Identify the tonal center of a transcription.

Correlates a duration-weighted pitch-class histogram with the 24 major and
minor key profiles:
- Krumhansl-Schmuckler key profiles (default)
- Temperley key profiles (alternative weighting)
- Ambiguity detection (relative major/minor)
- Falls back to C major when there is nothing to correlate
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..core import Note, PITCH_NAMES
from ..core.constants import DEFAULT_KEY
from ..core.errors import InvalidInput

logger = logging.getLogger(__name__)


@dataclass
class KeyCandidate:
    """A candidate key with its score."""
    root: str
    mode: str
    correlation: float

    @property
    def name(self) -> str:
        return f"{self.root} {self.mode}"


@dataclass
class KeyInfo:
    """Container for key detection results."""

    root: str  # Key root note (e.g., "C", "F#")
    mode: str  # "major" or "minor"
    confidence: float  # 0.0 - 1.0
    pitch_class_distribution: np.ndarray = field(default_factory=lambda: np.zeros(12))
    alternatives: List[KeyCandidate] = field(default_factory=list)  # Next most likely keys
    ambiguity_score: float = 0.0  # 0 = clear, 1 = very ambiguous
    relative_key: Optional[str] = None
    parallel_key: Optional[str] = None

    @property
    def name(self) -> str:
        """Display name, e.g. 'A Minor'."""
        return f"{self.root} {self.mode.capitalize()}"


class KeyDetector:
    """Detect musical key from notes."""

    # Krumhansl-Schmuckler key profiles (cognitive-based)
    KRUMHANSL_MAJOR = np.array(
        [6.35, 2.23, 3.48, 2.33, 4.38, 4.09, 2.52, 5.19, 2.39, 3.66, 2.29, 2.88]
    )
    KRUMHANSL_MINOR = np.array(
        [6.33, 2.68, 3.52, 5.38, 2.60, 3.53, 2.54, 4.75, 3.98, 2.69, 3.34, 3.17]
    )

    # Temperley key profiles (corpus-based)
    TEMPERLEY_MAJOR = np.array(
        [5.0, 2.0, 3.5, 2.0, 4.5, 4.0, 2.0, 4.5, 2.0, 3.5, 1.5, 4.0]
    )
    TEMPERLEY_MINOR = np.array(
        [5.0, 2.0, 3.5, 4.5, 2.0, 4.0, 2.0, 4.5, 3.5, 2.0, 1.5, 4.0]
    )

    def __init__(
        self,
        profile_type: str = "krumhansl",
        ambiguity_threshold: float = 0.05,
        min_notes: int = 1,
    ):
        """
        Initialize KeyDetector.

        Args:
            profile_type: Key profile family ("krumhansl" or "temperley")
            ambiguity_threshold: Correlation difference that flags ambiguity
            min_notes: Minimum notes required for a detection
        """
        if profile_type == "krumhansl":
            self.major_profile = self.KRUMHANSL_MAJOR
            self.minor_profile = self.KRUMHANSL_MINOR
        elif profile_type == "temperley":
            self.major_profile = self.TEMPERLEY_MAJOR
            self.minor_profile = self.TEMPERLEY_MINOR
        else:
            raise InvalidInput(f"unknown key profile: {profile_type}")

        self.profile_type = profile_type
        self.ambiguity_threshold = ambiguity_threshold
        self.min_notes = min_notes

    def detect_from_notes(self, notes: Sequence[Note]) -> Tuple[str, str, float]:
        """
        Detect key from a note list.

        Returns:
            Tuple of (root, mode, correlation)
        """
        info = self.analyze(notes, return_alternatives=False)
        return info.root, info.mode, info.confidence

    def pitch_class_distribution(self, notes: Sequence[Note]) -> np.ndarray:
        """
        12-bin pitch-class histogram weighted by note duration, normalized to sum 1.
        """
        histogram = np.zeros(12)
        for note in notes:
            histogram[note.pitch_class_index] += note.duration

        if histogram.sum() > 0:
            histogram /= histogram.sum()
        return histogram

    def analyze(
        self,
        notes: Sequence[Note],
        return_alternatives: bool = True,
    ) -> KeyInfo:
        """
        Perform full key analysis with ambiguity detection.

        Args:
            notes: List of notes
            return_alternatives: Include the three runner-up keys

        Returns:
            KeyInfo; C major with zero confidence when there are too few notes
        """
        histogram = self.pitch_class_distribution(notes)
        if len(notes) < self.min_notes or histogram.sum() == 0:
            logger.debug("no tonal evidence, falling back to %s %s", *DEFAULT_KEY)
            return self._default(histogram)

        candidates = self.rank_candidates(histogram)
        best = candidates[0]
        if best.correlation <= 0:
            return self._default(histogram)

        return KeyInfo(
            root=best.root,
            mode=best.mode,
            confidence=float(min(1.0, best.correlation)),
            pitch_class_distribution=histogram,
            alternatives=candidates[1:4] if return_alternatives else [],
            ambiguity_score=self._calculate_ambiguity(candidates),
            relative_key=self._get_relative_key(best.root, best.mode),
            parallel_key=self._get_parallel_key(best.root, best.mode),
        )

    def rank_candidates(self, histogram: np.ndarray) -> List[KeyCandidate]:
        """
        All 24 keys ordered by correlation.

        Equal correlations rank major before minor, then by root from C.
        """
        candidates = []
        for shift in range(12):
            root = PITCH_NAMES[shift]
            rotated = np.roll(histogram, -shift)
            candidates.append(KeyCandidate(root, "major", self._correlate(rotated, self.major_profile)))
            candidates.append(KeyCandidate(root, "minor", self._correlate(rotated, self.minor_profile)))

        # Stable sort keeps C-first order among exact ties
        return sorted(
            candidates,
            key=lambda c: (-round(c.correlation, 12), c.mode != "major"),
        )

    def _correlate(self, distribution: np.ndarray, profile: np.ndarray) -> float:
        """Pearson correlation, 0.0 for degenerate input."""
        if distribution.std() == 0 or profile.std() == 0:
            return 0.0

        corr = np.corrcoef(distribution, profile)[0, 1]
        if np.isnan(corr):
            return 0.0
        return float(corr)

    def _default(self, histogram: np.ndarray) -> KeyInfo:
        root, mode = DEFAULT_KEY
        return KeyInfo(
            root=root,
            mode=mode,
            confidence=0.0,
            pitch_class_distribution=histogram,
            ambiguity_score=1.0,
            relative_key=self._get_relative_key(root, mode),
            parallel_key=self._get_parallel_key(root, mode),
        )

    def _calculate_ambiguity(self, candidates: List[KeyCandidate]) -> float:
        """
        How ambiguous the detection is.

        Returns:
            0.0 (clear) to 1.0 (several keys score alike)
        """
        best = candidates[0]
        close = [
            c for c in candidates[1:]
            if best.correlation - c.correlation < self.ambiguity_threshold
        ]
        candidate_ambiguity = min(1.0, len(close) / 3.0)

        relative_ambiguity = 0.0
        relative = self._get_relative_key(best.root, best.mode)
        for c in candidates[1:6]:
            if c.name == relative:
                diff = best.correlation - c.correlation
                if diff < self.ambiguity_threshold:
                    relative_ambiguity = 0.8
                elif diff < self.ambiguity_threshold * 2:
                    relative_ambiguity = 0.5
                break

        return max(candidate_ambiguity, relative_ambiguity)

    def _get_relative_key(self, root: str, mode: str) -> str:
        """Relative minor is 3 semitones down, relative major 3 up."""
        root_idx = PITCH_NAMES.index(root)
        if mode == "major":
            return f"{PITCH_NAMES[(root_idx - 3) % 12]} minor"
        return f"{PITCH_NAMES[(root_idx + 3) % 12]} major"

    def _get_parallel_key(self, root: str, mode: str) -> str:
        """Same root, other mode."""
        return f"{root} {'minor' if mode == 'major' else 'major'}"
