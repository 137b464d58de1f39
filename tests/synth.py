"""Deterministic test signals."""

import numpy as np
from scipy.io import wavfile

SR = 44100


def sine_wave(freq: float, duration: float, sr: int = SR, amplitude: float = 0.5) -> np.ndarray:
    """Generate a sine wave at given frequency."""
    t = np.arange(int(round(sr * duration))) / sr
    return amplitude * np.sin(2 * np.pi * freq * t)


def midi_to_hz(pitch: int) -> float:
    return 440.0 * 2 ** ((pitch - 69) / 12)


def note_sequence(pitches: list, durations: list, sr: int = SR) -> np.ndarray:
    """Generate a sequence of notes."""
    audio = []
    for pitch, dur in zip(pitches, durations):
        note = sine_wave(midi_to_hz(pitch), dur, sr)
        # Apply simple envelope to avoid clicks
        envelope = np.ones_like(note)
        attack = int(0.01 * sr)
        release = int(0.01 * sr)
        envelope[:attack] = np.linspace(0, 1, attack)
        envelope[-release:] = np.linspace(1, 0, release)
        audio.append(note * envelope)
    return np.concatenate(audio)


def click_train(
    rate: float,
    duration: float,
    sr: int = SR,
    offset: float = 0.125,
    accent_every: int = 0,
) -> np.ndarray:
    """Single-sample impulses ``rate`` times per second, no pitched content.

    With ``accent_every`` set, every n-th click is full scale and the
    others are at a third of it.
    """
    audio = np.zeros(int(round(sr * duration)))
    period = 1.0 / rate
    count = int(np.floor((duration - offset) / period))
    for i in range(count):
        position = int(round((offset + i * period) * sr))
        if position >= len(audio):
            break
        accented = accent_every == 0 or i % accent_every == 0
        audio[position] = 1.0 if accented else 1.0 / 3
    return audio


def silence(duration: float, sr: int = SR) -> np.ndarray:
    return np.zeros(int(round(sr * duration)))


def write_wav(path, audio: np.ndarray, sr: int = SR) -> None:
    """Write 16-bit PCM."""
    audio_16bit = (np.clip(audio, -1.0, 1.0) * 32767).astype(np.int16)
    wavfile.write(str(path), sr, audio_16bit)
