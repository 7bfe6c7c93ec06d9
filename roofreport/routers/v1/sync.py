"""Mobile sync: batch upload, custody events and bootstrap download."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from roofreport.core.response import DataResponse, wrap
from roofreport.core.security import get_current_user
from roofreport.db.base import get_db, get_session_factory
from roofreport.domain.user import User
from roofreport.schemas.sync import (
    BootstrapResponse,
    CustodyEventsRequest,
    CustodyEventsResult,
    SyncUploadRequest,
    SyncUploadResponse,
)
from roofreport.services.storage import ObjectStorage, get_storage
from roofreport.services.sync import BootstrapService, CustodyService, SyncService

router = APIRouter(prefix="/sync", tags=["Mobile sync"])


@router.post("/upload", response_model=DataResponse[SyncUploadResponse])
async def upload(
    body: SyncUploadRequest,
    user: User = Depends(get_current_user),
    factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    storage: ObjectStorage = Depends(get_storage),
):
    """Apply each report in its own transaction; per-report failures are reported, not raised."""
    return wrap(await SyncService(factory, storage).upload(body, user))


@router.post("/custody-events", response_model=DataResponse[CustodyEventsResult])
async def custody_events(
    body: CustodyEventsRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    """Record device-side evidence handling in the audit log of the owning report."""
    return wrap(await CustodyService(session).record_events(body.events, user))


@router.get("/bootstrap", response_model=DataResponse[BootstrapResponse])
async def bootstrap(
    last_sync_at: Optional[datetime] = Query(default=None, alias="lastSyncAt"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    return wrap(await BootstrapService(session).bootstrap(user, last_sync_at))
