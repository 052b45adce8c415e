"""Shared utilities for the CLI"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the gotmpl CLI.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose (--verbose): INFO level - one line per compiled template
    - Debug (GOTMPL_DEBUG=1): DEBUG level - scans, sections, emitter choice
    """
    debug = bool(os.environ.get("GOTMPL_DEBUG"))
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=err_console,
        show_time=verbose,
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("gotmpl")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False
