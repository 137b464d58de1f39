"""Logging configuration for Ludwig.

Library modules only create loggers; handlers are installed by the
application (the CLI calls setup_logging).
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "WARNING", console: Console = None) -> None:
    """Configure root logging with a rich handler."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(name)s - %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
