"""Playback synchronization - map a playback clock to the sounding notes."""

import logging
import math
from bisect import bisect_right
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..core import InvalidInput, Note, Transcription

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActiveNotesChange:
    """Active-note set after a change, with what started and stopped."""

    time: float
    notes: Tuple[Note, ...]
    started: Tuple[Note, ...]
    stopped: Tuple[Note, ...]


class PlaybackSynchronizer:
    """Answer "which notes sound at time t" for a finished Transcription.

    All note starts and ends are collected into a sorted list of
    boundaries; between two neighbouring boundaries the active set cannot
    change, so it is stored once per interval. A query is one binary
    search plus copying the k active notes.

    A note is stored in every interval it spans, so building the index
    costs memory and time proportional to the number of (interval, note)
    pairs. For n notes that rarely overlap this is close to O(n); for long,
    heavily overlapping notes it approaches O(n^2).

    The index is built once and never mutated, so one synchronizer can be
    queried from any number of threads. The playback cursor is passed in
    per call and seeking is no different from advancing.
    """

    def __init__(self, transcription: Transcription):
        """
        Build the interval index.

        Args:
            transcription: Finished transcription with notes sorted by start

        Raises:
            InvalidInput: If the notes are not sorted by start time
        """
        notes = tuple(transcription.notes)
        for previous, note in zip(notes, notes[1:]):
            if note.start < previous.start:
                raise InvalidInput("notes must be sorted by start time")

        self.transcription = transcription
        self.notes = notes

        self._boundaries: List[float] = sorted(
            {n.start for n in notes} | {n.end for n in notes}
        )
        members: List[List[int]] = [[] for _ in range(max(len(self._boundaries) - 1, 0))]
        for index, note in enumerate(notes):
            first = bisect_right(self._boundaries, note.start) - 1
            last = bisect_right(self._boundaries, note.end) - 1
            for interval in range(first, last):
                members[interval].append(index)

        self._indices: Tuple[Tuple[int, ...], ...] = tuple(tuple(m) for m in members)
        self._active: Tuple[Tuple[Note, ...], ...] = tuple(
            tuple(notes[i] for i in m) for m in members
        )
        self.max_polyphony = max((len(m) for m in members), default=0)

        logger.debug(
            "indexed %d notes into %d intervals (max polyphony %d)",
            len(notes),
            len(members),
            self.max_polyphony,
        )

    def _interval(self, time: float) -> Optional[int]:
        if not math.isfinite(time) or time < 0:
            return None
        interval = bisect_right(self._boundaries, time) - 1
        if interval < 0 or interval >= len(self._active):
            return None
        return interval

    def active_notes_at(self, time: float) -> Tuple[Note, ...]:
        """
        Notes with ``start <= time < start + duration``.

        Args:
            time: Playback position in seconds

        Returns:
            Active notes ordered by start time; empty for negative,
            non-finite or out-of-range times
        """
        interval = self._interval(time)
        if interval is None:
            return ()
        return self._active[interval]

    def active_indices_at(self, time: float) -> Tuple[int, ...]:
        """Positions in ``notes`` of the notes active at ``time``."""
        interval = self._interval(time)
        if interval is None:
            return ()
        return self._indices[interval]

    def current_note(self, time: float) -> Optional[Note]:
        """Most recently started active note, if any."""
        active = self.active_notes_at(time)
        return active[-1] if active else None

    def __len__(self) -> int:
        return len(self.notes)


class ActiveNoteWatcher:
    """Notify subscribers when the active-note set changes.

    Holds the previous result for one consumer; give every consumer its
    own watcher rather than sharing one across threads.
    """

    def __init__(self, synchronizer: PlaybackSynchronizer):
        self.synchronizer = synchronizer
        self._previous: Tuple[int, ...] = ()
        self._callbacks: List[Callable[[ActiveNotesChange], None]] = []

    def subscribe(
        self, callback: Callable[[ActiveNotesChange], None]
    ) -> Callable[[], None]:
        """
        Register a change callback.

        Returns:
            A function that removes the callback again
        """
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def update(self, time: float) -> Optional[ActiveNotesChange]:
        """
        Query the active set at ``time`` and notify if it changed.

        Returns:
            The change, or None if the active set is the same as last time
        """
        current = self.synchronizer.active_indices_at(time)
        if current == self._previous:
            return None

        notes = self.synchronizer.notes
        before = set(self._previous)
        after = set(current)
        change = ActiveNotesChange(
            time=time,
            notes=tuple(notes[i] for i in current),
            started=tuple(notes[i] for i in current if i not in before),
            stopped=tuple(notes[i] for i in self._previous if i not in after),
        )
        self._previous = current

        for callback in list(self._callbacks):
            callback(change)
        return change

    def poll(self, clock: Callable[[], float]) -> Optional[ActiveNotesChange]:
        """Read the playback position from ``clock`` and update."""
        return self.update(clock())

    def reset(self) -> None:
        """Forget the previous result; the next non-empty update notifies."""
        self._previous = ()
