"""Global constants for Ludwig."""

# Pitch names
PITCH_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Audio processing defaults
DEFAULT_SR = 44100
DEFAULT_FRAME_LENGTH = 2048
DEFAULT_HOP_LENGTH = 512

# Musical defaults
DEFAULT_TEMPO = 120.0
DEFAULT_TIME_SIGNATURE = (4, 4)
DEFAULT_QUANTIZE_RESOLUTION = 16  # 16th notes
DEFAULT_KEY = ("C", "major")

# Difficulty tiers, easiest first
DIFFICULTY_TIERS = ("Beginner", "Intermediate", "Advanced")

# MIDI ranges
MIDI_MIN = 0
MIDI_MAX = 127
