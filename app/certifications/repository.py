"""
SQLAlchemy persistence for certification records.

The repository stages changes on the session; the router commits once per
request so a transition and its timeline event land together.
"""
from __future__ import annotations

import logging
import uuid
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.certifications.errors import NotFound
from app.certifications.models import CertificationModel, CertificationTimelineModel
from app.certifications.schemas import (
    CertificationRecord,
    CertificationTimelineEvent,
)

logger = logging.getLogger(__name__)

# record fields stored one‑to‑one in columns of the same name
_COLUMN_FIELDS = (
    "user_id",
    "identification_number",
    "applicant_name",
    "applicant_last_name",
    "applicant_second_last_name",
    "date_of_birth",
    "finger_code",
    "email_address",
    "cellphone_number",
    "city",
    "province",
    "address",
    "country_code",
    "document_type",
    "company_ruc",
    "position_company",
    "company_social_reason",
    "appointment_expiration_date",
    "reference_transaction",
    "period",
    "rejection_reason",
    "processed_by",
    "processed_at",
    "submitted_at",
    "terms_accepted",
    "ip_address",
    "user_agent",
    "created_at",
    "updated_at",
)


def transform_record(model: CertificationModel) -> CertificationRecord:
    """CertificationModel을 CertificationRecord로 변환"""
    data = {name: getattr(model, name) for name in _COLUMN_FIELDS}
    return CertificationRecord(
        id=model.id,
        application_type=model.application_type,
        status=model.status,
        attachments=model.attachments_json or {},
        metadata=model.metadata_json or {},
        **data,
    )


class CertificationRepository:
    def __init__(self, db: Session):
        self.db = db

    def _get(self, certification_id: str) -> Optional[CertificationModel]:
        return self.db.query(CertificationModel).filter(CertificationModel.id == certification_id).first()

    def load(self, certification_id: str) -> CertificationRecord:
        model = self._get(certification_id)
        if not model:
            raise NotFound(f"certification not found: {certification_id}")
        return transform_record(model)

    def save(self, record: CertificationRecord) -> CertificationRecord:
        model = self._get(record.id)
        if model is None:
            model = CertificationModel(id=record.id)
            self.db.add(model)
        for name in _COLUMN_FIELDS:
            setattr(model, name, getattr(record, name))
        model.application_type = record.application_type.value
        model.status = record.status.value
        model.attachments_json = {slot.value: ref for slot, ref in record.attachments.items()}
        model.metadata_json = dict(record.metadata)
        self.db.flush()
        return record

    def remove(self, certification_id: str) -> None:
        model = self._get(certification_id)
        if not model:
            raise NotFound(f"certification not found: {certification_id}")
        self.db.query(CertificationTimelineModel).filter(
            CertificationTimelineModel.certification_id == certification_id
        ).delete(synchronize_session=False)
        self.db.delete(model)
        self.db.flush()

    def list_records(
        self,
        user_id: Optional[str] = None,
        statuses: Optional[Iterable[str]] = None,
        application_type: Optional[str] = None,
    ) -> list[CertificationRecord]:
        query = self.db.query(CertificationModel)
        if user_id is not None:
            query = query.filter(CertificationModel.user_id == user_id)
        if statuses:
            query = query.filter(CertificationModel.status.in_(list(statuses)))
        if application_type:
            query = query.filter(CertificationModel.application_type == application_type)
        rows = query.order_by(CertificationModel.created_at.desc()).all()
        return [transform_record(row) for row in rows]

    def count_by_status(self) -> dict[str, int]:
        rows = (
            self.db.query(CertificationModel.status, func.count(CertificationModel.id))
            .group_by(CertificationModel.status)
            .all()
        )
        return {status: count for status, count in rows}

    def add_event(
        self,
        certification_id: str,
        event: str,
        actor_id: Optional[str] = None,
        note: Optional[str] = None,
    ) -> None:
        self.db.add(CertificationTimelineModel(
            id=str(uuid.uuid4()),
            certification_id=certification_id,
            event=event,
            actor_id=actor_id,
            note=note,
        ))

    def timeline(self, certification_id: str) -> list[CertificationTimelineEvent]:
        rows = self.db.query(CertificationTimelineModel).filter(
            CertificationTimelineModel.certification_id == certification_id
        ).order_by(CertificationTimelineModel.occurred_at).all()
        return [
            CertificationTimelineEvent(
                id=t.id,
                certification_id=t.certification_id,
                event=t.event,
                actor_id=t.actor_id,
                note=t.note,
                occurred_at=t.occurred_at,
            )
            for t in rows
        ]
