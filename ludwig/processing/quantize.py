"""Note quantization - Snap notes to rhythmic grid."""

import logging
from typing import List, Optional, Sequence

from ..core import Note

logger = logging.getLogger(__name__)


class Quantizer:
    """Quantize note timings to a rhythmic grid."""

    def __init__(self, tempo: float = 120.0, quantize_resolution: int = 16):
        """
        Initialize Quantizer.

        Args:
            tempo: Tempo in BPM
            quantize_resolution: Quantization grid (e.g., 16 for 16th notes)
        """
        self.tempo = tempo
        self.quantize_resolution = quantize_resolution

    @property
    def beat_duration(self) -> float:
        """Duration of one beat in seconds."""
        return 60.0 / self.tempo

    @property
    def grid_duration(self) -> float:
        """Duration of one grid unit in seconds."""
        return self.beat_duration * (4 / self.quantize_resolution)

    def quantize(
        self,
        notes: Sequence[Note],
        total_duration: Optional[float] = None,
    ) -> List[Note]:
        """
        Quantize note starts and durations to the grid.

        Starts snap to the nearest grid line and durations to the nearest
        whole number of grid units (at least one). A same-pitch note lying
        entirely inside another after snapping is merged into it; a partial
        overlap shortens the earlier note. With ``total_duration`` set, notes
        are kept inside the recording.

        Args:
            notes: Notes to quantize
            total_duration: Length of the recording in seconds

        Returns:
            Quantized notes sorted by start time
        """
        grid = self.grid_duration
        snapped = []

        for note in sorted(notes, key=lambda n: (n.start, n.pitch)):
            start_units = self._snap_units(note.start)
            length_units = max(1, self._snap_units(note.duration))

            if total_duration is not None:
                last_unit = int(total_duration // grid)
                # A start on the final boundary has no room left
                if start_units * grid >= total_duration - 1e-9:
                    start_units = last_unit
                    if start_units * grid >= total_duration - 1e-9:
                        start_units -= 1
                if start_units < 0:
                    continue

            snapped.append((start_units, length_units, note))

        merged = self._merge_overlaps(snapped)

        quantized = []
        for start_units, length_units, note in merged:
            start = start_units * grid
            duration = length_units * grid
            if total_duration is not None:
                duration = min(duration, total_duration - start)
                if duration <= 0:
                    continue
            quantized.append(note.with_timing(start, duration))

        logger.debug(
            "quantized %d notes to %d on a %.4fs grid", len(notes), len(quantized), grid
        )
        return quantized

    def _snap_units(self, time: float) -> int:
        """Nearest whole number of grid units."""
        return int(round(time / self.grid_duration))

    def _merge_overlaps(self, snapped):
        """Resolve same-pitch neighbours that overlap on the grid.

        When one snapped interval contains the other they are one note and
        merge into their union. A partial overlap is a re-attack: the earlier
        note is cut at the later start and both are kept.
        """
        merged = []
        last_by_pitch = {}
        for start_units, length_units, note in snapped:
            index = last_by_pitch.get(note.pitch)
            if index is not None:
                prev_start, prev_length, prev = merged[index]
                prev_end = prev_start + prev_length
                end_units = start_units + length_units
                if start_units < prev_end:
                    if end_units <= prev_end or start_units == prev_start:
                        merged[index] = (
                            prev_start,
                            max(prev_end, end_units) - prev_start,
                            Note(
                                pitch=prev.pitch,
                                start=prev.start,
                                duration=prev.duration,
                                velocity=max(prev.velocity, note.velocity),
                                confidence=(prev.confidence + note.confidence) / 2,
                            ),
                        )
                        continue
                    # start_units > prev_start, so at least one unit remains
                    merged[index] = (prev_start, start_units - prev_start, prev)
            last_by_pitch[note.pitch] = len(merged)
            merged.append((start_units, length_units, note))
        return merged
