"""Shared telemetry: logging setup and tracing helpers.

TelemetryConfig is imported from assethub.shared.telemetry.telemetry by the
lifespan only, so the exporter stack loads when tracing is enabled.
"""

from assethub.shared.telemetry.logging import get_logger, setup_logging
from assethub.shared.telemetry.tracing import (
    add_span_attributes,
    add_span_event,
    traced,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "traced",
    "add_span_attributes",
    "add_span_event",
]
