"""Telemetry helpers and metrics."""

from .metrics import (
    ERROR_COUNTER,
    IMAGES_UPLOADED,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    observe_request,
    record_images_uploaded,
)

__all__ = [
    "ERROR_COUNTER",
    "IMAGES_UPLOADED",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "observe_request",
    "record_images_uploaded",
]
