"""MIDI export functionality."""

from pathlib import Path

import pretty_midi

from ..core import PITCH_NAMES, Transcription


class MIDIExporter:
    """Export a Transcription to MIDI format."""

    def __init__(
        self,
        instrument_name: str = "Acoustic Grand Piano",
        instrument_program: int = 0,
    ):
        """
        Initialize MIDIExporter.

        Args:
            instrument_name: MIDI instrument name
            instrument_program: MIDI program number (0-127)
        """
        self.instrument_name = instrument_name
        self.instrument_program = instrument_program

    def export(self, transcription: Transcription, output_path: str) -> None:
        """
        Export a transcription to a MIDI file.

        Args:
            transcription: Finished transcription
            output_path: Path to output MIDI file
        """
        midi = self.to_pretty_midi(transcription)

        # Ensure output directory exists
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        midi.write(str(output_path))

    def to_pretty_midi(self, transcription: Transcription) -> pretty_midi.PrettyMIDI:
        """Convert a transcription to a PrettyMIDI object without saving."""
        midi = pretty_midi.PrettyMIDI(initial_tempo=transcription.tempo)

        numerator, denominator = transcription.time_signature
        midi.time_signature_changes.append(
            pretty_midi.TimeSignature(numerator, denominator, 0.0)
        )
        # pretty_midi numbers major keys 0-11 and minor keys 12-23 from C
        key_number = PITCH_NAMES.index(transcription.key)
        if transcription.mode == "minor":
            key_number += 12
        midi.key_signature_changes.append(pretty_midi.KeySignature(key_number, 0.0))

        instrument = pretty_midi.Instrument(
            program=self.instrument_program,
            name=self.instrument_name,
        )

        for note in transcription.notes:
            instrument.notes.append(
                pretty_midi.Note(
                    velocity=note.velocity,
                    pitch=note.pitch,
                    start=note.start,
                    end=note.end,
                )
            )

        midi.instruments.append(instrument)
        return midi
