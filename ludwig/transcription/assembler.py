"""Note assembly - fold ordered frame estimates into discrete notes."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

from ..analysis.onsets import OnsetEvent
from ..analysis.pitch import FrameEstimate, f0_to_midi
from ..core import Note
from ..core.config import AssemblyConfig

logger = logging.getLogger(__name__)


class State(Enum):
    IDLE = "idle"
    SUSTAINING = "sustaining"


@dataclass
class _OpenNote:
    pitch: int
    start: float
    last_voiced: float
    rms: List[float] = field(default_factory=list)
    confidence: List[float] = field(default_factory=list)

    def add(self, estimate: FrameEstimate) -> None:
        self.last_voiced = estimate.time
        self.rms.append(estimate.rms)
        self.confidence.append(estimate.confidence)


@dataclass
class _Candidate:
    pitch: int
    start: float
    frames: int = 1


class NoteAssembler:
    """Monophonic note tracker.

    Runs a two-state machine (Idle, Sustaining) over frame estimates in
    frame order:

    - Idle -> Sustaining on a voiced frame shortly after an onset
    - Sustaining -> Sustaining when a different semitone persists, or when a
      fresh onset re-attacks the same pitch
    - Sustaining -> Idle when voicing is lost for longer than the silence
      tolerance
    """

    def __init__(
        self,
        hop_duration: float,
        min_note_duration: float = 0.06,
        silence_tolerance: float = 0.05,
        pitch_persistence: float = 0.05,
    ):
        """
        Initialize NoteAssembler.

        Args:
            hop_duration: Seconds between consecutive frames
            min_note_duration: Shorter notes are dropped as estimator noise
            silence_tolerance: Unvoiced gap bridged inside a note
            pitch_persistence: Time a new semitone must last to split a note
        """
        self.hop_duration = hop_duration
        self.min_note_duration = min_note_duration
        self.silence_tolerance = silence_tolerance
        self.pitch_persistence = pitch_persistence

    @classmethod
    def from_config(cls, hop_duration: float, config: AssemblyConfig) -> "NoteAssembler":
        return cls(
            hop_duration=hop_duration,
            min_note_duration=config.min_note_duration,
            silence_tolerance=config.silence_tolerance,
            pitch_persistence=config.pitch_persistence,
        )

    def assemble(
        self,
        estimates: Sequence[FrameEstimate],
        onsets: Sequence[OnsetEvent],
        total_duration: float,
    ) -> List[Note]:
        """
        Turn frame estimates into raw (unquantized) notes.

        Args:
            estimates: One estimate per frame, in frame order
            onsets: Onset events picked from the same frames
            total_duration: Length of the recording in seconds

        Returns:
            Notes in start-time order
        """
        onset_by_frame = {onset.frame: onset for onset in onsets}
        arm_window = self.pitch_persistence + self.hop_duration
        notes: List[Note] = []

        state = State.IDLE
        current: Optional[_OpenNote] = None
        candidate: Optional[_Candidate] = None
        armed: Optional[OnsetEvent] = None
        unvoiced_run = 0

        def close(end: float) -> None:
            note = self._finish(current, min(end, total_duration))
            if note is not None:
                notes.append(note)

        for estimate in estimates:
            onset = onset_by_frame.get(estimate.index)
            if onset is not None:
                armed = onset
            elif armed is not None and estimate.time - armed.time > arm_window:
                armed = None

            pitch = f0_to_midi(estimate.frequency)

            if state is State.IDLE:
                if pitch is not None and armed is not None:
                    current = _OpenNote(pitch=pitch, start=armed.time, last_voiced=estimate.time)
                    current.add(estimate)
                    state = State.SUSTAINING
                    candidate = None
                    armed = None
                    unvoiced_run = 0
                continue

            if pitch is None:
                unvoiced_run += 1
                if unvoiced_run * self.hop_duration > self.silence_tolerance:
                    close(current.last_voiced + self.hop_duration / 2)
                    state = State.IDLE
                    current = None
                    candidate = None
                continue

            unvoiced_run = 0

            if pitch == current.pitch:
                candidate = None
                if armed is not None and armed.time - current.start >= self.min_note_duration:
                    # Re-attack of the same pitch
                    close(armed.time)
                    current = _OpenNote(pitch=pitch, start=armed.time, last_voiced=estimate.time)
                    armed = None
                current.add(estimate)
                continue

            if candidate is None or candidate.pitch != pitch:
                candidate = _Candidate(pitch=pitch, start=estimate.time)
            else:
                candidate.frames += 1

            if candidate.frames * self.hop_duration >= self.pitch_persistence:
                close(candidate.start)
                current = _OpenNote(pitch=pitch, start=candidate.start, last_voiced=estimate.time)
                candidate = None
                armed = None
            current.add(estimate)

        if state is State.SUSTAINING:
            close(current.last_voiced + self.hop_duration / 2)

        logger.debug("assembled %d notes from %d frames", len(notes), len(estimates))
        return notes

    def _finish(self, note: _OpenNote, end: float) -> Optional[Note]:
        duration = end - note.start
        if duration < self.min_note_duration:
            return None

        rms = float(np.mean(note.rms)) if note.rms else 0.0
        confidence = float(np.mean(note.confidence)) if note.confidence else 0.0
        return Note(
            pitch=note.pitch,
            start=note.start,
            duration=duration,
            velocity=self._rms_to_velocity(rms),
            confidence=confidence,
        )

    def _rms_to_velocity(self, rms: float) -> int:
        """Convert RMS energy to MIDI velocity (20-127)."""
        return int(np.clip(rms * 200, 20, 127))
