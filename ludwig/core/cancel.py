"""Cooperative cancellation for long-running transcriptions."""

import threading

from .errors import Cancelled


class CancellationToken:
    """Thread-safe flag checked by the pipeline between frame batches."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation. Safe to call from any thread, more than once."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise Cancelled if cancellation has been requested."""
        if self._event.is_set():
            raise Cancelled("Transcription cancelled")
