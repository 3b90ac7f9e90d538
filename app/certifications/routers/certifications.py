"""
Certification API endpoints (owner side).

GET    /api/certifications/options                    — reference data
GET    /api/certifications                            — list own certifications
POST   /api/certifications                            — create draft
GET    /api/certifications/{id}                       — get one
PUT    /api/certifications/{id}                       — update while editable
PUT    /api/certifications/{id}/attachments/{slot}    — upload attachment
GET    /api/certifications/{id}/attachments/{slot}    — download attachment
POST   /api/certifications/{id}/submit                — submit for review
DELETE /api/certifications/{id}                       — delete draft
GET    /api/certifications/{id}/timeline              — lifecycle events
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from app.config import settings
from app.certifications import lifecycle
from app.certifications.catalog import ReferenceData, get_reference_data
from app.certifications.database import get_db
from app.certifications.errors import CertificationError, StorageError
from app.certifications.identity import Actor, get_current_actor
from app.certifications.repository import CertificationRepository
from app.certifications.routers.common import load_for, raise_http, transform_response
from app.certifications.schemas import (
    IMAGE_SLOTS,
    PDF_SLOTS,
    VIDEO_SLOTS,
    AttachmentSlot,
    CertificationCreate,
    CertificationRecord,
    CertificationResponse,
    CertificationStatus,
    CertificationTimelineEvent,
    CertificationUpdate,
)
from app.certifications.storage import LocalObjectStore, content_digest, get_object_store

logger = logging.getLogger(__name__)
router = APIRouter()

IMAGE_EXTENSIONS = {"jpg", "jpeg", "png"}
PDF_EXTENSIONS = {"pdf"}
VIDEO_EXTENSIONS = {"mp4", "webm", "mov"}


def _slot_rules(slot: AttachmentSlot) -> tuple[set[str], int]:
    """(허용 확장자, 최대 크기)"""
    if slot in IMAGE_SLOTS:
        return IMAGE_EXTENSIONS, settings.MAX_IMAGE_BYTES
    if slot in PDF_SLOTS:
        return PDF_EXTENSIONS, settings.MAX_PDF_BYTES
    if slot in VIDEO_SLOTS:
        return VIDEO_EXTENSIONS, settings.MAX_VIDEO_BYTES
    raise ValueError(f"unknown attachment slot: {slot.value}")


def _discard(store: LocalObjectStore, reference: str) -> None:
    try:
        store.delete(reference)
    except StorageError as exc:
        logger.warning("Could not delete attachment %s: %s", reference, exc)


def _reopen_if_rejected(repo: CertificationRepository, record: CertificationRecord, actor: Actor) -> CertificationRecord:
    if record.status != CertificationStatus.REJECTED:
        return record
    record = lifecycle.reopen(record)
    repo.add_event(record.id, "REOPENED", actor.user_id, "반려된 요청이 수정을 위해 다시 열렸습니다.")
    logger.info("Reopened certification %s", record.id)
    return record


# ── GET /api/certifications/options ─────────────────────────────────────────
@router.get("/certifications/options", response_model=ReferenceData)
def get_options():
    """신청 양식 선택지"""
    return get_reference_data()


# ── GET /api/certifications ─────────────────────────────────────────────────
@router.get("/certifications", response_model=List[CertificationResponse])
def list_certifications(
    status: Optional[str] = None,
    type: Optional[str] = None,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """내 인증 요청 목록"""
    repo = CertificationRepository(db)
    records = repo.list_records(
        user_id=actor.user_id,
        statuses=[status] if status else None,
        application_type=type,
    )
    return [transform_response(r) for r in records]


# ── POST /api/certifications ────────────────────────────────────────────────
@router.post("/certifications", response_model=CertificationResponse, status_code=201)
def create_certification(
    req: CertificationCreate,
    request: Request,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """인증 요청 생성 (draft)"""
    repo = CertificationRepository(db)
    record = CertificationRecord(
        id=str(uuid.uuid4()),
        user_id=actor.user_id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        **req.model_dump(exclude_none=True),
    )
    repo.save(record)
    repo.add_event(record.id, "CREATED", actor.user_id, "인증 요청이 생성되었습니다.")
    db.commit()
    logger.info("Created certification %s for user %s", record.id, actor.user_id)
    return transform_response(record)


# ── GET /api/certifications/{certification_id} ──────────────────────────────
@router.get("/certifications/{certification_id}", response_model=CertificationResponse)
def get_certification(
    certification_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """인증 요청 조회"""
    record = load_for(CertificationRepository(db), certification_id, actor, allow_reviewer=True)
    return transform_response(record)


# ── PUT /api/certifications/{certification_id} ──────────────────────────────
@router.put("/certifications/{certification_id}", response_model=CertificationResponse)
def update_certification(
    certification_id: str,
    req: CertificationUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """인증 요청 수정 (draft / rejected 상태만)"""
    repo = CertificationRepository(db)
    record = load_for(repo, certification_id, actor)
    if not lifecycle.can_be_edited(record):
        raise HTTPException(
            status_code=409,
            detail=f"Certification cannot be edited in status '{record.status.value}'",
        )

    updates = req.model_dump(exclude_unset=True)
    # classification and consent cannot be cleared, only changed
    for key in ("application_type", "terms_accepted"):
        if updates.get(key) is None:
            updates.pop(key, None)

    record = _reopen_if_rejected(repo, record, actor)
    record = record.model_copy(update={**updates, "updated_at": datetime.now(timezone.utc)})
    repo.save(record)
    repo.add_event(record.id, "UPDATED", actor.user_id, ", ".join(sorted(updates)) or None)
    db.commit()
    logger.info("Updated certification %s (%d fields)", record.id, len(updates))
    return transform_response(record)


# ── PUT /api/certifications/{certification_id}/attachments/{slot} ───────────
@router.put("/certifications/{certification_id}/attachments/{slot}", response_model=CertificationResponse)
def upload_attachment(
    certification_id: str,
    slot: AttachmentSlot,
    file: UploadFile = File(...),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    store: LocalObjectStore = Depends(get_object_store),
):
    """첨부 파일 업로드 (기존 파일 교체)"""
    repo = CertificationRepository(db)
    record = load_for(repo, certification_id, actor)
    if not lifecycle.can_be_edited(record):
        raise HTTPException(
            status_code=409,
            detail=f"Certification cannot be edited in status '{record.status.value}'",
        )

    allowed, max_bytes = _slot_rules(slot)
    filename = file.filename or ""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext not in allowed:
        raise HTTPException(
            status_code=400,
            detail=f"{slot.value} accepts {', '.join(sorted(allowed))} files",
        )
    # one byte past the limit is enough to reject
    data = file.file.read(max_bytes + 1)
    if not data:
        raise HTTPException(status_code=400, detail="Empty file")
    if len(data) > max_bytes:
        raise HTTPException(status_code=413, detail=f"{slot.value} exceeds {max_bytes} bytes")

    key = f"certifications/{record.id}/{slot.value}_{content_digest(data)}.{ext}"
    try:
        reference = store.put(key, data)
    except CertificationError as exc:
        raise_http(exc)

    previous = record.attachments.get(slot)
    try:
        record = _reopen_if_rejected(repo, record, actor)
        attachments = {**record.attachments, slot: reference}
        record = record.model_copy(update={"attachments": attachments, "updated_at": datetime.now(timezone.utc)})
        repo.save(record)
        repo.add_event(record.id, "ATTACHMENT_UPLOADED", actor.user_id, slot.value)
        db.commit()
    except Exception:
        db.rollback()
        if reference != previous:
            _discard(store, reference)
        raise

    # 커밋 이후에만 이전 파일 정리
    if previous and previous != reference:
        _discard(store, previous)
    logger.info("Uploaded %s for certification %s", slot.value, record.id)
    return transform_response(record)


# ── GET /api/certifications/{certification_id}/attachments/{slot} ───────────
@router.get("/certifications/{certification_id}/attachments/{slot}")
def download_attachment(
    certification_id: str,
    slot: AttachmentSlot,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    store: LocalObjectStore = Depends(get_object_store),
):
    """첨부 파일 다운로드"""
    record = load_for(CertificationRepository(db), certification_id, actor, allow_reviewer=True)
    reference = record.attachments.get(slot)
    if not reference:
        raise HTTPException(status_code=404, detail="Attachment not found")
    try:
        path = store.path(reference)
    except CertificationError as exc:
        raise_http(exc)
    if not path.is_file():
        logger.warning("Attachment %s missing from storage", reference)
        raise HTTPException(status_code=404, detail="Attachment not found")
    return FileResponse(path, filename=path.name)


# ── POST /api/certifications/{certification_id}/submit ──────────────────────
@router.post("/certifications/{certification_id}/submit", response_model=CertificationResponse)
def submit_certification(
    certification_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """심사 요청"""
    repo = CertificationRepository(db)
    record = load_for(repo, certification_id, actor)
    try:
        record = lifecycle.submit(record)
    except CertificationError as exc:
        raise_http(exc)
    repo.save(record)
    repo.add_event(record.id, "SUBMITTED", actor.user_id, "심사 요청이 접수되었습니다.")
    db.commit()
    logger.info("Submitted certification %s", record.id)
    return transform_response(record)


# ── DELETE /api/certifications/{certification_id} ───────────────────────────
@router.delete("/certifications/{certification_id}")
def delete_certification(
    certification_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
    store: LocalObjectStore = Depends(get_object_store),
):
    """인증 요청 삭제 (draft만)"""
    repo = CertificationRepository(db)
    record = load_for(repo, certification_id, actor)
    try:
        failed = lifecycle.delete(record, store, repo)
    except CertificationError as exc:
        raise_http(exc)
    db.commit()
    return {
        "message": "Certification deleted successfully",
        "certification_id": certification_id,
        "failed_attachments": failed,
    }


# ── GET /api/certifications/{certification_id}/timeline ─────────────────────
@router.get("/certifications/{certification_id}/timeline", response_model=List[CertificationTimelineEvent])
def get_timeline(
    certification_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """인증 요청 타임라인 조회"""
    repo = CertificationRepository(db)
    load_for(repo, certification_id, actor, allow_reviewer=True)
    return repo.timeline(certification_id)
