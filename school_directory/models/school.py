"""SQLAlchemy models for schools and their photos."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, LargeBinary, String, Text
from sqlalchemy.orm import deferred, relationship

from school_directory.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class School(Base):
    __tablename__ = "schools"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    contact = Column(String(16), nullable=False)
    email_id = Column(String(255), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        index=True,
    )

    images = relationship(
        "SchoolImage",
        back_populates="school",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SchoolImage.id",
    )


class SchoolImage(Base):
    __tablename__ = "school_images"

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(
        Integer,
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    image_name = Column(String(255), nullable=False)
    # Deferred so listing queries never pull blobs.
    image_data = deferred(Column(LargeBinary, nullable=False))
    mime_type = Column(String(100), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    school = relationship("School", back_populates="images")


__all__ = ["School", "SchoolImage"]
