"""Logging setup for the command-line entry points."""

import logging

from rich.console import Console
from rich.logging import RichHandler

from .types import Diagnostic, Severity

log = logging.getLogger("zapgen")


def configure_logging(verbose: bool = False) -> None:
    """Send zapgen log records to stderr; stdout may carry protoc's response."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    log.handlers[:] = [handler]
    log.setLevel(logging.DEBUG if verbose else logging.INFO)
    log.propagate = False


def report(diagnostics: list[Diagnostic]) -> None:
    """Log generation diagnostics at their severity."""
    for diag in diagnostics:
        level = logging.ERROR if diag.severity == Severity.ERROR else logging.WARNING
        log.log(level, "%s", diag)
