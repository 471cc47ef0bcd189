"""Pydantic schemas for School resources."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from school_directory.errors import ValidationError


class SchoolCreateRequest(BaseModel):
    """Form fields submitted alongside the school photos."""

    name: str = Field(..., min_length=2, max_length=255)
    address: str = Field(..., min_length=10, max_length=500)
    city: str = Field(..., min_length=2, max_length=100)
    state: str = Field(..., min_length=2, max_length=100)
    contact: str = Field(..., min_length=1, max_length=32)
    email_id: EmailStr

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("contact", mode="before")
    @classmethod
    def _contact_as_text(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("email_id")
    @classmethod
    def _email_length(cls, value: str) -> str:
        if len(value) > 255:
            raise ValueError("Email is too long")
        return value


class SchoolResponse(BaseModel):
    """Serialized representation of a School."""

    id: int
    name: str
    address: str
    city: str
    state: str
    contact: str
    email_id: str
    images: list[str] = Field(default_factory=list)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


def build_school_request(**fields: object) -> SchoolCreateRequest:
    """Validate form fields, reporting the first failure as ``ValidationError``."""

    try:
        return SchoolCreateRequest(**fields)
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ()))
        message = str(error.get("msg", "Invalid value"))
        raise ValidationError(f"{field}: {message}" if field else message) from exc


__all__ = ["SchoolCreateRequest", "SchoolResponse", "build_school_request"]
