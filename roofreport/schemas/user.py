"""User Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field

from roofreport.domain.enums import UserRole
from roofreport.schemas.common import CamelModel

LBP_NUMBER_PATTERN = r"^[A-Z]{2}\d{6}$"


class UserCreate(CamelModel):
    email: EmailStr
    name: str = Field(min_length=1, max_length=255)
    role: UserRole = UserRole.INSPECTOR
    qualifications: str | None = None
    lbp_number: str | None = Field(default=None, pattern=LBP_NUMBER_PATTERN)
    years_experience: int | None = Field(default=None, ge=0, le=80)
    company: str | None = None
    phone: str | None = None


class UserProfileUpdate(CamelModel):
    """Self-service profile edit. Roles change only through PUT /users/{id}/role."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    qualifications: str | None = None
    lbp_number: str | None = Field(default=None, pattern=LBP_NUMBER_PATTERN)
    years_experience: int | None = Field(default=None, ge=0, le=80)
    company: str | None = None
    phone: str | None = None


class UserRoleUpdate(CamelModel):
    role: UserRole


class UserOut(CamelModel):
    id: str
    email: str
    name: str
    role: str
    qualifications: str | None = None
    lbp_number: str | None = None
    years_experience: int | None = None
    company: str | None = None
    phone: str | None = None
    created_at: datetime
    updated_at: datetime


class UserSummary(CamelModel):
    id: str
    name: str
    email: str
    lbp_number: str | None = None
    qualifications: str | None = None
