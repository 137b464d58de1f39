"""Audio loading and preprocessing utilities."""

import logging
from pathlib import Path
from typing import Optional, Tuple

import librosa
import numpy as np

from ..core import InvalidInput
from ..core.constants import DEFAULT_SR

logger = logging.getLogger(__name__)


class AudioLoader:
    """Decode audio files into mono float buffers for transcription."""

    SUPPORTED_FORMATS = {".wav", ".mp3", ".flac", ".aac", ".ogg", ".m4a", ".mp4"}

    def __init__(
        self,
        target_sr: Optional[int] = DEFAULT_SR,
        normalize: bool = True,
    ):
        """
        Initialize AudioLoader.

        Args:
            target_sr: Target sample rate for resampling (None keeps the file's rate)
            normalize: Peak-normalize audio amplitude if True
        """
        self.target_sr = target_sr
        self.normalize = normalize

    def load(self, path: str) -> Tuple[np.ndarray, int]:
        """
        Load audio file and preprocess.

        Args:
            path: Path to audio file

        Returns:
            Tuple of (mono audio array, sample rate)

        Raises:
            InvalidInput: If file format not supported
            FileNotFoundError: If file doesn't exist
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        if path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise InvalidInput(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {', '.join(sorted(self.SUPPORTED_FORMATS))}"
            )

        # librosa handles resampling and the downmix to mono
        audio, sr = librosa.load(str(path), sr=self.target_sr, mono=True)

        if self.normalize:
            audio = self._normalize(audio)

        logger.debug("loaded %s: %d samples at %d Hz", path.name, len(audio), sr)
        return audio.astype(np.float64), int(sr)

    def _normalize(self, audio: np.ndarray) -> np.ndarray:
        """Normalize audio to [-1, 1] range using peak normalization."""
        if len(audio) == 0:
            return audio
        peak = np.abs(audio).max()
        if peak > 0:
            audio = audio / peak
        return audio

    def get_duration(self, audio: np.ndarray, sr: Optional[int] = None) -> float:
        """Get duration in seconds."""
        sr = sr or self.target_sr
        return len(audio) / sr
