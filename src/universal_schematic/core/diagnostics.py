"""Process-wide diagnostics sink.

Configured once at start-up. The default sink discards every event, so no
caller may depend on a report being delivered.
"""

import logging
import os
from typing import Any, Protocol

logger = logging.getLogger(__name__)

_ENV_VAR = "UNIVERSAL_SCHEMATIC_DIAGNOSTICS"


class DiagnosticsSink(Protocol):
    def report(self, event: str, context: dict[str, Any]) -> None: ...


class NullSink:
    def report(self, event: str, context: dict[str, Any]) -> None:
        return None


class LoggingSink:
    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def report(self, event: str, context: dict[str, Any]) -> None:
        self._log.error("diagnostics event %s: %s", event, context)


_sink: DiagnosticsSink | None = None


def _sink_from_env() -> DiagnosticsSink:
    if os.getenv(_ENV_VAR, "").strip().lower() == "log":
        return LoggingSink()
    return NullSink()


def configure_diagnostics(sink: DiagnosticsSink) -> None:
    global _sink  # noqa: PLW0603
    _sink = sink


def get_diagnostics() -> DiagnosticsSink:
    """Return the configured sink, choosing one from the environment on first use."""
    global _sink  # noqa: PLW0603
    if _sink is None:
        _sink = _sink_from_env()
    return _sink


def reset_diagnostics() -> None:
    global _sink  # noqa: PLW0603
    _sink = None


def report(event: str, context: dict[str, Any]) -> None:
    get_diagnostics().report(event, context)
