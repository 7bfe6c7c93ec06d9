"""Report workflow endpoints: submission, declaration signature and review."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from roofreport.core.response import DataResponse, wrap
from roofreport.core.security import get_current_user, require_reviewer
from roofreport.db.base import get_db
from roofreport.domain.user import User
from roofreport.schemas.report import ReportOut
from roofreport.schemas.workflow import (
    ApproveRequest,
    RejectRequest,
    ReviewAction,
    ReviewStatusOut,
    SignatureCreate,
    SignatureStatus,
    SubmitResult,
    ValidationStatus,
)
from roofreport.services.storage import ObjectStorage, get_storage
from roofreport.services.workflow import ReviewService, SignatureService, SubmissionService

router = APIRouter(prefix="/reports/{report_id}", tags=["Workflow"])


def _signature(report) -> SignatureStatus:
    return SignatureStatus(
        report_id=report.id,
        declaration_signed=report.declaration_signed,
        signed_at=report.signed_at,
        signature_url=report.signature_url,
        expert_declaration=report.expert_declaration,
        has_conflict=report.has_conflict,
        conflict_disclosure=report.conflict_disclosure,
    )


# ------------------------------------------------------------------
# Submission
# ------------------------------------------------------------------

@router.get("/submit", response_model=DataResponse[ValidationStatus])
async def check_submission(
    report_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    """Dry-run validation: what still blocks submission."""
    report, validation = await SubmissionService(session).check(report_id, user)
    return wrap(ValidationStatus(validation=validation, current_status=report.status))


@router.post("/submit", response_model=DataResponse[SubmitResult])
async def submit_report(
    report_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    """Submit for review. A failed validation is a 200 with success=false."""
    return wrap(await SubmissionService(session).submit(report_id, user))


# ------------------------------------------------------------------
# Declaration signature
# ------------------------------------------------------------------

@router.get("/signature", response_model=DataResponse[SignatureStatus])
async def get_signature(
    report_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    report = await SignatureService(session, storage).get_status(report_id, user)
    return wrap(_signature(report))


@router.post("/signature", response_model=DataResponse[SignatureStatus])
async def sign_declaration(
    report_id: str,
    body: SignatureCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
):
    report = await SignatureService(session, storage).sign(report_id, body, user)
    return wrap(_signature(report))


# ------------------------------------------------------------------
# Review
# ------------------------------------------------------------------

@router.get("/review", response_model=DataResponse[ReviewStatusOut])
async def review_status(
    report_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    return wrap(await ReviewService(session).review_status(report_id, user))


@router.post("/review", response_model=DataResponse[ReviewAction])
async def start_review(
    report_id: str,
    user: User = Depends(require_reviewer),
    session: AsyncSession = Depends(get_db),
):
    report = await ReviewService(session).start_review(report_id, user)
    return wrap(ReviewAction(report=ReportOut.model_validate(report), message="Review started"))


@router.post("/approve", response_model=DataResponse[ReviewAction])
async def approve_report(
    report_id: str,
    body: ApproveRequest,
    user: User = Depends(require_reviewer),
    session: AsyncSession = Depends(get_db),
):
    report = await ReviewService(session).approve(report_id, body, user)
    message = "Report approved and finalised" if body.finalise else "Report approved"
    return wrap(ReviewAction(report=ReportOut.model_validate(report), message=message))


@router.post("/reject", response_model=DataResponse[ReviewAction])
async def reject_report(
    report_id: str,
    body: RejectRequest,
    user: User = Depends(require_reviewer),
    session: AsyncSession = Depends(get_db),
):
    report = await ReviewService(session).reject(report_id, body, user)
    return wrap(
        ReviewAction(report=ReportOut.model_validate(report), message="Revision requested from inspector")
    )
