"""
School Schemas

Pydantic schemas for request validation and response serialization.
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

CONTACT_PATTERN = re.compile(r"\d{10}", re.ASCII)
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def _require_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def _check_contact(value: str) -> str:
    value = value.strip()
    if not CONTACT_PATTERN.fullmatch(value):
        raise ValueError("Contact must be exactly 10 digits")
    return value


def _check_email(value: str) -> str:
    value = value.strip()
    if not EMAIL_PATTERN.fullmatch(value):
        raise ValueError("Invalid email format")
    return value


class SchoolCreate(BaseModel):
    """New school. All fields are required; values are stored trimmed."""

    name: str = Field(..., max_length=255)
    address: str = Field(..., max_length=1000)
    city: str = Field(..., max_length=100)
    state: str = Field(..., max_length=100)
    contact: str = Field(..., max_length=15)
    email: str = Field(..., max_length=255)
    image: str = Field(..., max_length=2048)

    @field_validator("name", "address", "city", "state", "image")
    @classmethod
    def not_blank(cls, value: str) -> str:
        return _require_text(value)

    @field_validator("contact")
    @classmethod
    def valid_contact(cls, value: str) -> str:
        return _check_contact(value)

    @field_validator("email")
    @classmethod
    def valid_email(cls, value: str) -> str:
        return _check_email(value)


class SchoolUpdate(BaseModel):
    """Partial update. Omitted fields keep their value; at least one field is required."""

    name: str | None = Field(None, max_length=255)
    address: str | None = Field(None, max_length=1000)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    contact: str | None = Field(None, max_length=15)
    email: str | None = Field(None, max_length=255)
    image: str | None = Field(None, max_length=2048)

    @field_validator("name", "address", "city", "state", "image")
    @classmethod
    def not_blank(cls, value: str | None) -> str | None:
        return None if value is None else _require_text(value)

    @field_validator("contact")
    @classmethod
    def valid_contact(cls, value: str | None) -> str | None:
        return None if value is None else _check_contact(value)

    @field_validator("email")
    @classmethod
    def valid_email(cls, value: str | None) -> str | None:
        return None if value is None else _check_email(value)

    @model_validator(mode="after")
    def has_changes(self) -> "SchoolUpdate":
        if not self.model_dump(exclude_none=True):
            raise ValueError("At least one field must be provided")
        return self


class SchoolResponse(BaseModel):
    """School as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    address: str
    city: str
    state: str
    contact: str
    email: str
    image: str
    created_by: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Pagination(BaseModel):
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1, le=100)
    total: int = Field(..., ge=0)
    has_more: bool = Field(..., serialization_alias="hasMore")


class SchoolListResponse(BaseModel):
    """One page of schools plus the city filter options."""

    schools: list[SchoolResponse]
    cities: list[str]
    pagination: Pagination


class SchoolDetailResponse(BaseModel):
    school: SchoolResponse


class SchoolCreatedResponse(BaseModel):
    message: str
    id: int
    school: SchoolResponse


class SchoolUpdatedResponse(BaseModel):
    message: str
    school: SchoolResponse


class SchoolDeletedResponse(BaseModel):
    message: str
    id: int
