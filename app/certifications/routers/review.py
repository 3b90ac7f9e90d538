"""
심사자 API 라우터
"""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from app.certifications import lifecycle
from app.certifications.database import get_db
from app.certifications.errors import CertificationError
from app.certifications.identity import Actor, require_reviewer
from app.certifications.repository import CertificationRepository
from app.certifications.routers.common import load_for, raise_http, transform_response
from app.certifications.schemas import (
    ApproveRequest,
    CertificationResponse,
    CertificationStats,
    CertificationStatus,
    RejectRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter()

AWAITING_REVIEW = (CertificationStatus.PENDING.value, CertificationStatus.IN_REVIEW.value)


# ── GET /api/admin/certifications ───────────────────────────────────────────
@router.get("/admin/certifications", response_model=List[CertificationResponse])
def list_queue(
    status: Optional[str] = None,
    type: Optional[str] = None,
    actor: Actor = Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    """심사 대기 목록 (기본: pending + in_review)"""
    statuses = [status] if status else list(AWAITING_REVIEW)
    records = CertificationRepository(db).list_records(statuses=statuses, application_type=type)
    return [transform_response(r) for r in records]


# ── GET /api/admin/certifications/stats ─────────────────────────────────────
@router.get("/admin/certifications/stats", response_model=CertificationStats)
def get_stats(
    actor: Actor = Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    """상태별 통계"""
    counts = CertificationRepository(db).count_by_status()
    by_status = {s.value: counts.get(s.value, 0) for s in CertificationStatus}
    return CertificationStats(
        total=sum(by_status.values()),
        by_status=by_status,
        awaiting_review=sum(by_status[s] for s in AWAITING_REVIEW),
    )


# ── POST /api/admin/certifications/{certification_id}/review ────────────────
@router.post("/admin/certifications/{certification_id}/review", response_model=CertificationResponse)
def start_review(
    certification_id: str,
    actor: Actor = Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    """심사 시작"""
    repo = CertificationRepository(db)
    record = load_for(repo, certification_id, actor, allow_reviewer=True)
    try:
        record = lifecycle.start_review(record, actor.user_id)
    except CertificationError as exc:
        raise_http(exc)
    repo.save(record)
    repo.add_event(record.id, "IN_REVIEW", actor.user_id, "심사가 시작되었습니다.")
    db.commit()
    logger.info("Certification %s in review by %s", record.id, actor.user_id)
    return transform_response(record)


# ── POST /api/admin/certifications/{certification_id}/approve ───────────────
@router.post("/admin/certifications/{certification_id}/approve", response_model=CertificationResponse)
def approve_certification(
    certification_id: str,
    req: Optional[ApproveRequest] = Body(default=None),
    actor: Actor = Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    """승인"""
    repo = CertificationRepository(db)
    record = load_for(repo, certification_id, actor, allow_reviewer=True)
    notes = req.notes if req else None
    try:
        record = lifecycle.approve(record, actor.user_id, notes)
    except CertificationError as exc:
        raise_http(exc)
    repo.save(record)
    repo.add_event(record.id, "APPROVED", actor.user_id, notes)
    db.commit()
    logger.info("Approved certification %s by %s", record.id, actor.user_id)
    return transform_response(record)


# ── POST /api/admin/certifications/{certification_id}/reject ────────────────
@router.post("/admin/certifications/{certification_id}/reject", response_model=CertificationResponse)
def reject_certification(
    certification_id: str,
    req: RejectRequest,
    actor: Actor = Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    """반려"""
    repo = CertificationRepository(db)
    record = load_for(repo, certification_id, actor, allow_reviewer=True)
    try:
        record = lifecycle.reject(record, actor.user_id, req.reason)
    except CertificationError as exc:
        raise_http(exc)
    repo.save(record)
    repo.add_event(record.id, "REJECTED", actor.user_id, record.rejection_reason)
    db.commit()
    logger.info("Rejected certification %s by %s", record.id, actor.user_id)
    return transform_response(record)


# ── POST /api/admin/certifications/{certification_id}/complete ──────────────
@router.post("/admin/certifications/{certification_id}/complete", response_model=CertificationResponse)
def complete_certification(
    certification_id: str,
    actor: Actor = Depends(require_reviewer),
    db: Session = Depends(get_db),
):
    """발급 완료"""
    repo = CertificationRepository(db)
    record = load_for(repo, certification_id, actor, allow_reviewer=True)
    try:
        record = lifecycle.complete(record)
    except CertificationError as exc:
        raise_http(exc)
    repo.save(record)
    repo.add_event(record.id, "COMPLETED", actor.user_id)
    db.commit()
    logger.info("Completed certification %s", record.id)
    return transform_response(record)
