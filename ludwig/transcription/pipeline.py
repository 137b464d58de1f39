"""End-to-end transcription pipeline.

PCM -> frames -> per-frame pitch/onset (parallel) -> onsets -> notes
(sequential) -> tempo + key -> quantized notes + difficulty -> Transcription
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import numpy as np

from ..analysis import FrameAnalyzer, FrameEstimate, FrameSegmenter, OnsetPicker, TempoAnalyzer
from ..core import CancellationToken, InvalidInput, Transcription, TranscriptionConfig
from ..inference import KeyDetector
from ..processing import DifficultyRater, Quantizer
from .assembler import NoteAssembler
from .base import Transcriber

logger = logging.getLogger(__name__)


class LudwigTranscriber(Transcriber):
    """Transcribe a decoded audio buffer into a Transcription.

    Frame analysis may run on a thread pool; the estimates land in an
    index-addressed array so note assembly still sees frames in order.
    """

    def __init__(self, config: Optional[TranscriptionConfig] = None):
        """
        Initialize LudwigTranscriber.

        Args:
            config: Pipeline configuration (defaults if None)

        Raises:
            InvalidInput: If the configuration is invalid
        """
        self.config = config or TranscriptionConfig()
        self.config.validate()

    def transcribe(
        self,
        audio: np.ndarray,
        sr: int,
        cancel: Optional[CancellationToken] = None,
    ) -> Transcription:
        """
        Transcribe mono audio.

        Args:
            audio: Mono audio samples
            sr: Sample rate
            cancel: Token checked between frame batches

        Returns:
            Transcription

        Raises:
            InvalidInput: Bad buffer or sample rate
            AnalysisError: Corrupt frame data
            Cancelled: The token was cancelled
        """
        samples = self._validate_buffer(audio, sr)
        cfg = self.config

        segmenter = FrameSegmenter(
            samples,
            sr,
            frame_length=cfg.analysis.frame_length,
            hop_length=cfg.analysis.hop_length,
        )
        analyzer = FrameAnalyzer.from_config(sr, cfg.analysis)
        duration = segmenter.duration

        estimates = self._analyze_frames(segmenter, analyzer, cancel)

        onsets = OnsetPicker.from_config(cfg.onsets).pick(
            [e.onset_strength for e in estimates],
            [e.time for e in estimates],
        )

        assembler = NoteAssembler.from_config(segmenter.hop_duration, cfg.assembly)
        raw_notes = assembler.assemble(estimates, onsets, duration)

        tempo_info = TempoAnalyzer.from_config(cfg.tempo).analyze(
            onsets,
            frame_rate=sr / cfg.analysis.hop_length,
            n_frames=len(estimates),
        )
        key_info = KeyDetector(profile_type=cfg.key_profile).analyze(raw_notes)

        quantizer = Quantizer(
            tempo=tempo_info.bpm,
            quantize_resolution=cfg.quantize_resolution,
        )
        notes = quantizer.quantize(raw_notes, total_duration=duration)
        difficulty = DifficultyRater(cfg.difficulty).rate(notes, duration)

        logger.info(
            "transcribed %.2fs: %d notes, %s, %.1f BPM, %d/%d, %s",
            duration,
            len(notes),
            key_info.name,
            tempo_info.bpm,
            tempo_info.time_signature[0],
            tempo_info.time_signature[1],
            difficulty.label,
        )

        return Transcription(
            key=key_info.root,
            mode=key_info.mode,
            tempo=tempo_info.bpm,
            time_signature=tempo_info.time_signature,
            difficulty=difficulty.label,
            notes=tuple(notes),
            duration=duration,
            grid_unit=quantizer.grid_duration,
            tempo_confidence=tempo_info.confidence,
            key_confidence=key_info.confidence,
            metadata={
                "sample_rate": sr,
                "frames": len(estimates),
                "onsets": len(onsets),
                "raw_notes": len(raw_notes),
                "voiced_frames": sum(1 for e in estimates if e.voiced),
                "key_ambiguity": key_info.ambiguity_score,
                "notes_per_second": difficulty.notes_per_second,
                "pitch_range": difficulty.pitch_range,
            },
        )

    async def transcribe_async(
        self,
        audio: np.ndarray,
        sr: int,
        cancel: Optional[CancellationToken] = None,
    ) -> Transcription:
        """
        Run transcribe() in a worker thread.

        Cancelling the awaiting task also cancels the running transcription.
        """
        token = cancel or CancellationToken()
        try:
            return await asyncio.to_thread(self.transcribe, audio, sr, token)
        except asyncio.CancelledError:
            token.cancel()
            raise

    def _validate_buffer(self, audio: np.ndarray, sr: int) -> np.ndarray:
        if sr is None or sr <= 0:
            raise InvalidInput(f"sample rate must be positive, got {sr}")

        try:
            samples = np.asarray(audio, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"audio is not numeric: {e}") from e

        if samples.ndim != 1:
            raise InvalidInput(f"expected mono audio, got shape {samples.shape}")

        hop = self.config.analysis.hop_length
        if len(samples) < hop:
            raise InvalidInput(
                f"audio too short: {len(samples)} samples, need at least {hop}"
            )
        return samples

    def _analyze_frames(
        self,
        segmenter: FrameSegmenter,
        analyzer: FrameAnalyzer,
        cancel: Optional[CancellationToken],
    ) -> List[FrameEstimate]:
        count = len(segmenter)
        estimates: List[Optional[FrameEstimate]] = [None] * count

        def analyze(index: int) -> None:
            previous = segmenter[index - 1] if index > 0 else None
            estimates[index] = analyzer.analyze(segmenter[index], previous)

        batch_size = self.config.batch_size
        workers = self.config.workers

        def batches():
            for start in range(0, count, batch_size):
                if cancel is not None:
                    cancel.raise_if_cancelled()
                yield range(start, min(count, start + batch_size))

        if workers == 1:
            for batch in batches():
                for index in batch:
                    analyze(index)
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                for batch in batches():
                    # Consuming the iterator re-raises worker exceptions
                    list(executor.map(analyze, batch))

        logger.debug("analysed %d frames with %d worker(s)", count, workers)
        return estimates


def transcribe(
    audio: np.ndarray,
    sr: int,
    config: Optional[TranscriptionConfig] = None,
    cancel: Optional[CancellationToken] = None,
) -> Transcription:
    """Transcribe mono audio with a one-off LudwigTranscriber."""
    return LudwigTranscriber(config).transcribe(audio, sr, cancel=cancel)
