"""Tests for core types: notes, transcriptions, configuration, errors."""

import dataclasses
import threading

import pytest

from ludwig.core import (
    AnalysisConfig,
    AnalysisError,
    CancellationToken,
    Cancelled,
    InvalidInput,
    LudwigError,
    Note,
    TempoConfig,
    Transcription,
    TranscriptionConfig,
)


def make_transcription(notes, duration=2.0, **kwargs):
    fields = dict(
        key="C",
        mode="major",
        tempo=120.0,
        time_signature=(4, 4),
        difficulty="Beginner",
        notes=notes,
        duration=duration,
        grid_unit=0.125,
    )
    fields.update(kwargs)
    return Transcription(**fields)


class TestNote:
    """Tests for Note dataclass."""

    def test_note_creation(self):
        note = Note(pitch=60, start=0.5, duration=1.0, velocity=80)
        assert note.pitch == 60
        assert note.start == 0.5
        assert note.duration == 1.0
        assert note.velocity == 80

    def test_note_end(self):
        note = Note(pitch=60, start=0.5, duration=1.0)
        assert note.end == 1.5

    def test_pitch_name(self):
        assert Note(pitch=60, start=0, duration=1).pitch_name == "C4"
        assert Note(pitch=69, start=0, duration=1).pitch_name == "A4"
        assert Note(pitch=61, start=0, duration=1).pitch_name == "C#4"
        assert Note(pitch=21, start=0, duration=1).pitch_name == "A0"

    def test_pitch_class_and_octave(self):
        note = Note(pitch=70, start=0, duration=1)
        assert note.pitch_class == "A#"
        assert note.pitch_class_index == 10
        assert note.octave == 4

    def test_with_timing_keeps_pitch_and_velocity(self):
        note = Note(pitch=64, start=0.49, duration=0.26, velocity=90, confidence=0.8)
        moved = note.with_timing(0.5, 0.25)
        assert moved == Note(pitch=64, start=0.5, duration=0.25, velocity=90, confidence=0.8)

    def test_notes_are_immutable(self):
        note = Note(pitch=60, start=0, duration=1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            note.pitch = 61

    def test_dict_form(self):
        data = Note(pitch=69, start=0.25, duration=0.5, velocity=70).to_dict()
        assert data["note"] == "A"
        assert data["octave"] == 4
        assert data["time"] == 0.25
        assert data["duration"] == 0.5
        assert Note.from_dict(data) == Note(pitch=69, start=0.25, duration=0.5, velocity=70)


class TestTranscription:
    """Tests for the Transcription model."""

    def test_notes_stored_as_tuple(self):
        result = make_transcription([Note(60, 0.0, 0.5), Note(62, 0.5, 0.5)])
        assert isinstance(result.notes, tuple)
        assert len(result.notes) == 2

    def test_is_immutable(self):
        result = make_transcription([])
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.tempo = 90.0

    def test_rejects_unsorted_notes(self):
        with pytest.raises(InvalidInput, match="sorted"):
            make_transcription([Note(62, 0.5, 0.5), Note(60, 0.0, 0.5)])

    def test_rejects_note_past_end(self):
        with pytest.raises(InvalidInput, match="ends after"):
            make_transcription([Note(60, 1.5, 1.0)], duration=2.0)

    def test_rejects_non_positive_duration(self):
        with pytest.raises(InvalidInput):
            make_transcription([Note(60, 0.0, 0.0)])

    def test_rejects_bad_tempo(self):
        with pytest.raises(InvalidInput, match="tempo"):
            make_transcription([], tempo=0.0)

    def test_rejects_off_grid_start(self):
        with pytest.raises(InvalidInput, match="grid"):
            make_transcription([Note(60, 0.0371, 0.2)])

    def test_accepts_starts_on_grid(self):
        result = make_transcription([Note(60, 0.375, 0.25), Note(62, 1.125, 0.5)])
        assert len(result.notes) == 2

    @pytest.mark.parametrize("grid_unit", [0.0, -0.125])
    def test_rejects_non_positive_grid_unit(self, grid_unit):
        with pytest.raises(InvalidInput, match="grid_unit"):
            make_transcription([], grid_unit=grid_unit)

    def test_rejects_grid_unit_not_matching_tempo(self):
        with pytest.raises(InvalidInput, match="tempo"):
            make_transcription([], grid_unit=0.3)

    @pytest.mark.parametrize("tempo, grid_unit", [(120.0, 0.25), (97.0, 60.0 / 97.0 / 4)])
    def test_grid_unit_from_tempo(self, tempo, grid_unit):
        assert make_transcription([], tempo=tempo, grid_unit=grid_unit).grid_unit == grid_unit

    def test_from_dict_rejects_off_grid_document(self):
        data = make_transcription([Note(60, 0.5, 0.5)]).to_dict()
        data["notes"][0]["time"] = 0.51
        with pytest.raises(InvalidInput, match="grid"):
            Transcription.from_dict(data)

    def test_overlapping_notes_allowed(self):
        result = make_transcription([Note(60, 0.0, 1.0), Note(64, 0.0, 1.0), Note(67, 0.5, 0.5)])
        assert len(result.notes) == 3

    def test_display_names(self):
        result = make_transcription([], key="F#", mode="minor", time_signature=(3, 4))
        assert result.key_name == "F# Minor"
        assert result.time_signature_name == "3/4"

    def test_to_dict_shape(self):
        result = make_transcription([Note(69, 0.0, 1.0), Note(71, 1.0, 0.5)])
        data = result.to_dict()

        assert data["key"] == "C Major"
        assert data["tempo"] == 120.0
        assert data["timeSignature"] == "4/4"
        assert data["difficulty"] == "Beginner"
        assert data["duration"] == 2.0
        assert [n["id"] for n in data["notes"]] == [0, 1]
        assert data["notes"][0]["note"] == "A"
        assert data["notes"][0]["octave"] == 4
        assert data["notes"][1]["time"] == 1.0

    def test_from_dict_restores_equal_value(self):
        result = make_transcription(
            [Note(69, 0.0, 1.0, velocity=80)], key="A", mode="minor", tempo_confidence=0.5
        )
        assert Transcription.from_dict(result.to_dict()) == result

    def test_from_dict_rejects_malformed(self):
        with pytest.raises(InvalidInput, match="malformed"):
            Transcription.from_dict({"key": "C Major"})

    def test_metadata_ignored_in_equality(self):
        a = make_transcription([], metadata={"frames": 10})
        b = make_transcription([], metadata={"frames": 20})
        assert a == b


class TestConfig:
    """Tests for configuration validation."""

    def test_defaults_are_valid(self):
        config = TranscriptionConfig()
        config.validate()
        assert config.analysis.frame_length == 2048
        assert config.analysis.hop_length == 512
        assert config.assembly.min_note_duration == 0.06
        assert config.tempo.tempo_min == 40.0
        assert config.difficulty.intermediate_density == 2.0

    @pytest.mark.parametrize(
        "section",
        [
            AnalysisConfig(frame_length=0),
            AnalysisConfig(hop_length=-1),
            AnalysisConfig(hop_length=4096),
            AnalysisConfig(fmin=500.0, fmax=100.0),
            TempoConfig(tempo_min=200.0, tempo_max=100.0),
        ],
    )
    def test_invalid_sections(self, section):
        with pytest.raises(InvalidInput):
            section.validate()

    def test_invalid_workers(self):
        with pytest.raises(InvalidInput, match="workers"):
            TranscriptionConfig(workers=0).validate()

    def test_invalid_key_profile(self):
        with pytest.raises(InvalidInput, match="key profile"):
            TranscriptionConfig(key_profile="bach").validate()

    def test_from_dict(self):
        config = TranscriptionConfig.from_dict(
            {"workers": 4, "tempo": {"tempo_max": 200.0}, "assembly": {"min_note_duration": 0.1}}
        )
        assert config.workers == 4
        assert config.tempo.tempo_max == 200.0
        assert config.tempo.tempo_min == 40.0
        assert config.assembly.min_note_duration == 0.1

    def test_from_dict_unknown_key(self):
        with pytest.raises(InvalidInput, match="unknown configuration key"):
            TranscriptionConfig.from_dict({"colour": "blue"})

    def test_from_dict_unknown_field(self):
        with pytest.raises(InvalidInput, match="analysis"):
            TranscriptionConfig.from_dict({"analysis": {"window": "hann"}})

    def test_from_dict_validates(self):
        with pytest.raises(InvalidInput):
            TranscriptionConfig.from_dict({"batch_size": 0})


class TestErrors:
    """Tests for the error hierarchy and cancellation."""

    def test_hierarchy(self):
        assert issubclass(InvalidInput, LudwigError)
        assert issubclass(InvalidInput, ValueError)
        assert issubclass(AnalysisError, LudwigError)
        assert issubclass(Cancelled, LudwigError)
        assert not issubclass(Cancelled, AnalysisError)

    def test_token_starts_clear(self):
        token = CancellationToken()
        assert not token.cancelled
        token.raise_if_cancelled()

    def test_token_cancel(self):
        token = CancellationToken()
        token.cancel()
        token.cancel()
        assert token.cancelled
        with pytest.raises(Cancelled):
            token.raise_if_cancelled()

    def test_token_cancel_from_other_thread(self):
        token = CancellationToken()
        thread = threading.Thread(target=token.cancel)
        thread.start()
        thread.join()
        assert token.cancelled
