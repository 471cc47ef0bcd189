"""SQLAlchemy models for the record store."""

from .base import Base
from .school import School, SchoolImage  # noqa: F401

__all__ = ["Base", "School", "SchoolImage"]
