"""Logging utilities using rich console."""
from __future__ import annotations

import logging
from rich.console import Console
from rich.logging import RichHandler

# Results (Mermaid, JSON, tables) go to stdout; log records go to stderr so
# piping `cppflow ... --json` stays machine-readable.
console = Console()
log_console = Console(stderr=True)

PACKAGE_LOGGER = "cppflow"


def setup_logging(verbose: bool = False) -> None:
    """
    Attach a RichHandler to the package logger.

    Args:
        verbose: If True, set log level to DEBUG, otherwise WARNING
    """
    level = logging.DEBUG if verbose else logging.WARNING

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        handler = RichHandler(console=log_console, rich_tracebacks=True, show_path=verbose)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        package_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
