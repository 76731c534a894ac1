"""Console logging for the command line."""

import logging

from rich.console import Console
from rich.logging import RichHandler


_console_handler: RichHandler | None = None


class _ThirdPartyNoiseFilter(logging.Filter):
    """Keep taskflow logs; let other libraries through only at WARNING+."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith("taskflow"):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(
    level: str | int = logging.INFO, console: Console | None = None
) -> None:
    """Configure the root logger with a Rich handler on stderr.

    Calling again replaces the handler installed by an earlier call.
    """
    global _console_handler

    root = logging.getLogger()
    root.setLevel(level)
    if _console_handler is not None:
        root.removeHandler(_console_handler)

    _console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    _console_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    _console_handler.addFilter(_ThirdPartyNoiseFilter())
    root.addHandler(_console_handler)
