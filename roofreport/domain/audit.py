"""SQLAlchemy ORM model for the per-report audit log."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import DateTime, JSON, String, func
from sqlalchemy.orm import Mapped, mapped_column

from roofreport.db.base import Base
from roofreport.domain.mixins import new_id


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # Plain references (no FK) so the trail outlives a deleted report
    report_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(36), index=True, nullable=True)

    # "CREATED" | "UPDATED" | "STATUS_CHANGED" | "SUBMITTED" | "REVIEWED" | ...
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    details: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    # No updated_at: audit rows are immutable
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
