"""Console logging for dufs.

Rich renders the log lines; uvicorn's loggers are routed through the same
handler so startup and error messages look alike.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error")


def setup_logging(level: str = "INFO") -> None:
    """Install a single Rich handler on the root logger."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    for name in _UVICORN_LOGGERS:
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.propagate = True

    # Request lines are logged by dufs itself.
    logging.getLogger("uvicorn.access").disabled = True
