"""Exception hierarchy for the transcription core."""


class LudwigError(Exception):
    """Base class for all errors raised by Ludwig."""


class InvalidInput(LudwigError, ValueError):
    """Malformed configuration, or an empty / too-short sample buffer.

    Raised before any processing starts.
    """


class AnalysisError(LudwigError):
    """Corrupt frame data encountered while analysing a buffer.

    Terminal for the current transcription run: no partial result is returned.
    """


class Cancelled(LudwigError):
    """The caller cancelled the transcription through its cancellation token."""
