from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "lmsched"


def configure_logging(*, verbose: bool = False, debug: bool = False) -> None:
    """Route ``lmsched`` log records to stderr when asked to."""
    if not (verbose or debug):
        return
    logger = logging.getLogger(LOGGER_NAME)
    if any(isinstance(handler, RichHandler) for handler in logger.handlers):
        return
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=debug,
        markup=False,
        rich_tracebacks=debug,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
