"""
Helpers shared by the owner and reviewer routers.
"""
from __future__ import annotations

import logging
from typing import NoReturn

from fastapi import HTTPException

from app.certifications import lifecycle
from app.certifications.catalog import (
    APPLICATION_TYPE_LABELS,
    PERIOD_LABELS,
    STATUS_LABELS,
    label_for,
)
from app.certifications.errors import (
    CertificationError,
    NotFound,
    PreconditionFailed,
    StorageError,
    ValidationError,
)
from app.certifications.identity import Actor
from app.certifications.repository import CertificationRepository
from app.certifications.schemas import CertificationRecord, CertificationResponse

logger = logging.getLogger(__name__)

_STATUS_CODES = (
    (ValidationError, 400),
    (NotFound, 404),
    (PreconditionFailed, 409),
    (StorageError, 502),
)


def raise_http(exc: CertificationError) -> NoReturn:
    """도메인 예외를 HTTPException으로 변환"""
    for exc_type, status_code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            raise HTTPException(status_code=status_code, detail=str(exc)) from exc
    raise HTTPException(status_code=500, detail=str(exc)) from exc


def load_for(
    repo: CertificationRepository,
    certification_id: str,
    actor: Actor,
    allow_reviewer: bool = False,
) -> CertificationRecord:
    """Load a record the actor owns (or may see as a reviewer)."""
    try:
        record = repo.load(certification_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Certification not found")
    if record.user_id != actor.user_id and not (allow_reviewer and actor.is_reviewer):
        logger.warning("User %s denied access to certification %s", actor.user_id, certification_id)
        raise HTTPException(status_code=403, detail="Not allowed to access this certification")
    return record


def transform_response(record: CertificationRecord) -> CertificationResponse:
    """CertificationRecord를 CertificationResponse로 변환"""
    data = record.model_dump(exclude={"attachments", "ip_address", "user_agent"})
    return CertificationResponse(
        **data,
        attachments={slot.value: ref for slot, ref in record.attachments.items()},
        application_type_label=label_for(APPLICATION_TYPE_LABELS, record.application_type.value),
        period_label=label_for(PERIOD_LABELS, record.period),
        status_label=label_for(STATUS_LABELS, record.status.value),
        completion_percentage=lifecycle.completion_percentage(record),
        can_edit=lifecycle.can_be_edited(record),
        can_submit=lifecycle.can_be_submitted(record),
        can_delete=lifecycle.can_be_deleted(record),
        requires_company_documents=lifecycle.requires_company_documents(record),
        requires_appointment_documents=lifecycle.requires_appointment_documents(record),
        required_fields=lifecycle.required_fields(record),
        missing_fields=lifecycle.missing_fields(record),
    )
