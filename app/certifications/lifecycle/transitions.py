"""
Status transitions.

Every transition is computed in memory and returned as a new record; the
caller persists it as one unit. ``delete`` is the only function that talks to
collaborators directly.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Protocol

from app.certifications.errors import PreconditionFailed, StorageError, ValidationError
from app.certifications.lifecycle.rules import (
    can_be_deleted,
    can_be_submitted,
    completion_percentage,
)
from app.certifications.schemas import CertificationRecord, CertificationStatus

logger = logging.getLogger(__name__)

S = CertificationStatus

# transition name -> (allowed source states, target state)
TRANSITIONS: dict[str, tuple[frozenset[CertificationStatus], CertificationStatus]] = {
    "submit": (frozenset({S.DRAFT}), S.PENDING),
    "start_review": (frozenset({S.PENDING}), S.IN_REVIEW),
    "approve": (frozenset({S.IN_REVIEW}), S.APPROVED),
    "reject": (frozenset({S.IN_REVIEW}), S.REJECTED),
    "complete": (frozenset({S.APPROVED}), S.COMPLETED),
    "reopen": (frozenset({S.REJECTED}), S.DRAFT),
}


class ObjectStore(Protocol):
    def put(self, key: str, data: bytes) -> str: ...

    def delete(self, reference: str) -> bool: ...


class Repository(Protocol):
    def load(self, certification_id: str) -> CertificationRecord: ...

    def save(self, record: CertificationRecord) -> CertificationRecord: ...

    def remove(self, certification_id: str) -> None: ...


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def _target(name: str, record: CertificationRecord) -> CertificationStatus:
    sources, target = TRANSITIONS[name]
    if record.status not in sources:
        allowed = ", ".join(sorted(s.value for s in sources))
        raise PreconditionFailed(
            f"cannot {name} a certification in status '{record.status.value}' (allowed: {allowed})"
        )
    return target


def _require_reviewer(record: CertificationRecord, reviewer_id: str) -> None:
    if not reviewer_id:
        raise ValidationError("reviewer id is required")
    if reviewer_id == record.user_id:
        raise ValidationError("a certification cannot be processed by its owner")


def submit(record: CertificationRecord, now: Optional[datetime] = None) -> CertificationRecord:
    target = _target("submit", record)
    if not can_be_submitted(record):
        if not record.terms_accepted:
            raise PreconditionFailed("terms must be accepted before submitting")
        raise PreconditionFailed(
            f"certification is {completion_percentage(record)}% complete; all required fields are needed"
        )
    ts = _now(now)
    return record.model_copy(update={
        "status": target,
        # first submission only; resubmissions after a rejection keep it
        "submitted_at": record.submitted_at or ts,
        "updated_at": ts,
    })


def start_review(
    record: CertificationRecord, reviewer_id: str, now: Optional[datetime] = None
) -> CertificationRecord:
    target = _target("start_review", record)
    _require_reviewer(record, reviewer_id)
    ts = _now(now)
    metadata = {**record.metadata, "review_started_by": reviewer_id, "review_started_at": ts.isoformat()}
    return record.model_copy(update={"status": target, "metadata": metadata, "updated_at": ts})


def approve(
    record: CertificationRecord,
    reviewer_id: str,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CertificationRecord:
    target = _target("approve", record)
    _require_reviewer(record, reviewer_id)
    ts = _now(now)
    metadata = {**record.metadata, "approval_notes": notes, "approved_at": ts.isoformat()}
    return record.model_copy(update={
        "status": target,
        "processed_by": reviewer_id,
        "processed_at": ts,
        "metadata": metadata,
        "updated_at": ts,
    })


def reject(
    record: CertificationRecord,
    reviewer_id: str,
    reason: str,
    now: Optional[datetime] = None,
) -> CertificationRecord:
    if not reason or not reason.strip():
        raise ValidationError("a rejection reason is required")
    target = _target("reject", record)
    _require_reviewer(record, reviewer_id)
    ts = _now(now)
    return record.model_copy(update={
        "status": target,
        "rejection_reason": reason.strip(),
        "processed_by": reviewer_id,
        "processed_at": ts,
        "updated_at": ts,
    })


def complete(record: CertificationRecord, now: Optional[datetime] = None) -> CertificationRecord:
    target = _target("complete", record)
    ts = _now(now)
    metadata = {**record.metadata, "completed_at": ts.isoformat()}
    return record.model_copy(update={"status": target, "metadata": metadata, "updated_at": ts})


def reopen(record: CertificationRecord, now: Optional[datetime] = None) -> CertificationRecord:
    """Return a rejected record to draft so the owner can correct it."""
    target = _target("reopen", record)
    ts = _now(now)
    metadata = dict(record.metadata)
    if record.rejection_reason:
        metadata["previous_rejection_reason"] = record.rejection_reason
    return record.model_copy(update={
        "status": target,
        "rejection_reason": None,
        "metadata": metadata,
        "updated_at": ts,
    })


def delete(record: CertificationRecord, store: ObjectStore, repository: Repository) -> list[str]:
    """Release every stored attachment, then remove the record.

    Attachment cleanup is best‑effort: a slot that fails to delete is logged
    and reported back, but does not stop the other slots or the removal.
    Returns the references that could not be released.
    """
    if not can_be_deleted(record):
        raise PreconditionFailed(
            f"only draft certifications can be deleted (status: '{record.status.value}')"
        )

    failed: list[str] = []
    for slot, reference in record.attachments.items():
        if not reference:
            continue
        try:
            store.delete(reference)
        except StorageError as exc:
            logger.warning("Could not delete %s for certification %s: %s", slot.value, record.id, exc)
            failed.append(reference)

    repository.remove(record.id)
    logger.info("Deleted certification %s (%d attachment failures)", record.id, len(failed))
    return failed
