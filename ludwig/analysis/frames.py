"""Frame segmentation - overlapping analysis windows over a sample buffer."""

import math
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from ..core.errors import InvalidInput


@dataclass(frozen=True)
class Frame:
    """A fixed-length window over the sample buffer."""

    index: int
    start: int  # Offset of the first sample in the buffer
    samples: np.ndarray  # Always frame_length long, zero-padded at the end
    sample_rate: int
    hop_length: int

    @property
    def length(self) -> int:
        return len(self.samples)

    @property
    def time(self) -> float:
        """Centre of the frame in seconds."""
        return (self.start + self.length / 2) / self.sample_rate


class FrameSegmenter:
    """Slice a sample buffer into overlapping frames.

    Iteration is lazy and restartable: every ``iter()`` starts again from the
    first frame. Frames are also addressable by index, which lets them be
    analysed out of order.
    """

    def __init__(
        self,
        samples: np.ndarray,
        sr: int,
        frame_length: int = 2048,
        hop_length: int = 512,
    ):
        """
        Initialize FrameSegmenter.

        Args:
            samples: Mono audio samples
            sr: Sample rate
            frame_length: Samples per frame
            hop_length: Samples between consecutive frame starts

        Raises:
            InvalidInput: If any size or the sample rate is not positive
        """
        if frame_length <= 0:
            raise InvalidInput(f"frame_length must be positive, got {frame_length}")
        if hop_length <= 0:
            raise InvalidInput(f"hop_length must be positive, got {hop_length}")
        if sr <= 0:
            raise InvalidInput(f"sample rate must be positive, got {sr}")

        buffer = np.array(samples, dtype=np.float64)
        if buffer.ndim != 1:
            raise InvalidInput(f"expected a mono buffer, got shape {buffer.shape}")
        buffer.flags.writeable = False

        self.samples = buffer
        self.sr = int(sr)
        self.frame_length = int(frame_length)
        self.hop_length = int(hop_length)

    def __len__(self) -> int:
        n = len(self.samples)
        if n <= self.frame_length:
            return 1
        return 1 + math.ceil((n - self.frame_length) / self.hop_length)

    def __getitem__(self, index: int) -> Frame:
        count = len(self)
        if index < 0:
            index += count
        if not 0 <= index < count:
            raise IndexError(f"frame index {index} out of range")

        start = index * self.hop_length
        chunk = self.samples[start:start + self.frame_length]
        if len(chunk) < self.frame_length:
            chunk = np.pad(chunk, (0, self.frame_length - len(chunk)))

        return Frame(
            index=index,
            start=start,
            samples=chunk,
            sample_rate=self.sr,
            hop_length=self.hop_length,
        )

    def __iter__(self) -> Iterator[Frame]:
        for index in range(len(self)):
            yield self[index]

    @property
    def duration(self) -> float:
        """Buffer duration in seconds."""
        return len(self.samples) / self.sr

    @property
    def hop_duration(self) -> float:
        return self.hop_length / self.sr

    def frame_time(self, index: int) -> float:
        """Centre time of frame ``index`` in seconds."""
        return (index * self.hop_length + self.frame_length / 2) / self.sr
