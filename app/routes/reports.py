"""
Report endpoints - citizen submission, voting, withdrawal, assignment and resolution.

Lifecycle failures raised by the engine (not found, forbidden, invalid state,
no workers) are rendered by the LifecycleError handler in app.main.
"""

from typing import List
import logging

from fastapi import APIRouter, Depends, Query, status

from app.models.base import BaseResponse
from app.models.report import (
    EvidenceUploadRequest,
    ReportCreate,
    ReportListView,
    ReportResponse,
)
from app.models.user import Actor
from app.models.vote import VotePolarity, VoteSummary
from app.services.lifecycle_engine import LifecycleEngine, get_lifecycle_engine
from app.utils.security import get_current_actor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def submit_report(
    report: ReportCreate,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    """
    Submit a new citizen report. Starts in status pending.
    """
    logger.info(f"POST /reports - type={report.type.value} by {actor.user_id}")
    return engine.create_report(actor, report)


@router.get("", response_model=List[ReportResponse])
async def list_reports(
    view: ReportListView = Query(ReportListView.ALL, description="all | mine | others | admin | assigned"),
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    return engine.list_reports(actor, view)


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: str,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    return engine.get_report(report_id, actor)


@router.get("/{report_id}/votes", response_model=VoteSummary)
async def get_votes(
    report_id: str,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    return engine.get_vote_summary(report_id, actor)


@router.post("/{report_id}/support", response_model=ReportResponse)
async def support_report(
    report_id: str,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    """
    Support a report. Reaching the support threshold escalates it to admins.
    """
    return engine.cast_vote(report_id, actor, VotePolarity.SUPPORT)


@router.post("/{report_id}/oppose", response_model=ReportResponse)
async def oppose_report(
    report_id: str,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    return engine.cast_vote(report_id, actor, VotePolarity.OPPOSE)


@router.delete("/{report_id}", response_model=BaseResponse)
async def withdraw_report(
    report_id: str,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    """
    Withdraw a pending report (creator only). Deletes the report and its votes.
    """
    return engine.withdraw_report(report_id, actor)


@router.post("/{report_id}/assign-nearest", response_model=ReportResponse)
async def assign_nearest(
    report_id: str,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    """
    Assign an escalated field-dispatch report to the nearest worker (admin only).
    """
    return engine.assign_nearest_worker(report_id, actor)


@router.post("/{report_id}/worker/evidence", response_model=ReportResponse)
async def upload_evidence(
    report_id: str,
    evidence: EvidenceUploadRequest,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    """
    Attach resolution evidence (assigned worker only). The image itself is
    uploaded to media storage beforehand; only its URL is sent here.
    """
    return engine.upload_resolution_evidence(report_id, actor, evidence)


@router.post("/{report_id}/worker/mark-resolved", response_model=ReportResponse)
async def worker_mark_resolved(
    report_id: str,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    return engine.worker_mark_resolved(report_id, actor)


@router.post("/{report_id}/admin/confirm", response_model=ReportResponse)
async def admin_confirm(
    report_id: str,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    return engine.admin_confirm_resolution(report_id, actor)


@router.post("/{report_id}/admin/working", response_model=ReportResponse)
async def admin_working(
    report_id: str,
    actor: Actor = Depends(get_current_actor),
    engine: LifecycleEngine = Depends(get_lifecycle_engine),
):
    """
    Take an infrastructure request (public bin / toilet) into work (admin only).
    """
    return engine.admin_start_working(report_id, actor)
