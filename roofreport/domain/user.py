"""SQLAlchemy ORM model for users (inspectors, reviewers, administrators)."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from roofreport.db.base import Base
from roofreport.domain.enums import ADMIN_ROLES, REVIEWER_ROLES, UserRole
from roofreport.domain.mixins import TimestampMixin, new_id


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # "INSPECTOR" | "REVIEWER" | "ADMIN" | "SUPER_ADMIN"
    role: Mapped[str] = mapped_column(
        String(50), default=UserRole.INSPECTOR.value, nullable=False, index=True
    )

    # Professional details printed on reports
    qualifications: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    lbp_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    years_experience: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    company: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role in {r.value for r in ADMIN_ROLES}

    @property
    def is_reviewer(self) -> bool:
        """REVIEWER, ADMIN and SUPER_ADMIN may review reports and see all of them."""
        return self.role in {r.value for r in REVIEWER_ROLES}
