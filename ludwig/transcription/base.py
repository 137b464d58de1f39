"""Base classes for transcription."""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from ..core import CancellationToken, Transcription


class Transcriber(ABC):
    """Abstract base class for audio transcription."""

    @abstractmethod
    def transcribe(
        self,
        audio: np.ndarray,
        sr: int,
        cancel: Optional[CancellationToken] = None,
    ) -> Transcription:
        """
        Transcribe audio.

        Args:
            audio: Mono audio array
            sr: Sample rate
            cancel: Optional cancellation token

        Returns:
            The finished Transcription
        """
        pass
