"""Pydantic schemas used as views in the MVC architecture."""

from .common import Envelope, ErrorResponse, HealthResponse, error_body
from .schools import SchoolCreateRequest, SchoolResponse, build_school_request

__all__ = [
    "Envelope",
    "ErrorResponse",
    "HealthResponse",
    "SchoolCreateRequest",
    "SchoolResponse",
    "build_school_request",
    "error_body",
]
