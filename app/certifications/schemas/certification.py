"""
Certification schemas — the domain record plus API request / response envelopes.

The lifecycle rules consume and produce ``CertificationRecord``; everything
else in this module is transport.
"""
from __future__ import annotations

import re
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field, computed_field, field_validator, model_validator

from app.config import settings
from app.certifications.catalog import (
    CELLPHONE_PATTERN,
    CITIES,
    COUNTRY_CODE,
    DOCUMENT_TYPE,
    FINGER_CODE_PATTERN,
    PROVINCES,
)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ApplicationType(str, Enum):
    NATURAL_PERSON = "NATURAL_PERSON"
    LEGAL_REPRESENTATIVE = "LEGAL_REPRESENTATIVE"


class CertificationStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class AttachmentSlot(str, Enum):
    IDENTIFICATION_FRONT = "identification_front"
    IDENTIFICATION_BACK = "identification_back"
    IDENTIFICATION_SELFIE = "identification_selfie"
    PDF_COMPANY_RUC = "pdf_company_ruc"
    PDF_REPRESENTATIVE_APPOINTMENT = "pdf_representative_appointment"
    PDF_APPOINTMENT_ACCEPTANCE = "pdf_appointment_acceptance"
    PDF_COMPANY_CONSTITUTION = "pdf_company_constitution"
    AUTHORIZATION_VIDEO = "authorization_video"


IMAGE_SLOTS = frozenset({
    AttachmentSlot.IDENTIFICATION_FRONT,
    AttachmentSlot.IDENTIFICATION_BACK,
    AttachmentSlot.IDENTIFICATION_SELFIE,
})
PDF_SLOTS = frozenset({
    AttachmentSlot.PDF_COMPANY_RUC,
    AttachmentSlot.PDF_REPRESENTATIVE_APPOINTMENT,
    AttachmentSlot.PDF_APPOINTMENT_ACCEPTANCE,
    AttachmentSlot.PDF_COMPANY_CONSTITUTION,
})
VIDEO_SLOTS = frozenset({AttachmentSlot.AUTHORIZATION_VIDEO})
SLOT_NAMES = frozenset(slot.value for slot in AttachmentSlot)


def empty_attachments() -> dict[AttachmentSlot, Optional[str]]:
    return {slot: None for slot in AttachmentSlot}


def age_on(born: date, today: date) -> int:
    """Whole years between ``born`` and ``today``."""
    years = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        years -= 1
    return years


# ---------------------------------------------------------------------------
# Domain record
# ---------------------------------------------------------------------------

class CertificationRecord(BaseModel):
    """One certification submission, as seen by the lifecycle rules."""
    id: str
    user_id: str

    # applicant
    identification_number: Optional[str] = None
    applicant_name: Optional[str] = None
    applicant_last_name: Optional[str] = None
    applicant_second_last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    finger_code: Optional[str] = None
    email_address: Optional[str] = None
    cellphone_number: Optional[str] = None

    # location
    city: Optional[str] = None
    province: Optional[str] = None
    address: Optional[str] = None
    country_code: str = COUNTRY_CODE

    # classification
    document_type: str = DOCUMENT_TYPE
    application_type: ApplicationType = ApplicationType.NATURAL_PERSON

    # company
    company_ruc: Optional[str] = None
    position_company: Optional[str] = None
    company_social_reason: Optional[str] = None
    appointment_expiration_date: Optional[datetime] = None

    attachments: dict[AttachmentSlot, Optional[str]] = Field(default_factory=empty_attachments)

    # transaction
    reference_transaction: Optional[str] = None
    period: Optional[str] = None

    # lifecycle
    status: CertificationStatus = CertificationStatus.DRAFT
    rejection_reason: Optional[str] = None
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    terms_accepted: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("attachments", mode="before")
    @classmethod
    def _fill_slots(cls, value: Any) -> Any:
        slots = empty_attachments()
        if value:
            slots.update({AttachmentSlot(k): v or None for k, v in dict(value).items()})
        return slots

    @computed_field
    @property
    def client_age(self) -> Optional[int]:
        if self.date_of_birth is None:
            return None
        return age_on(self.date_of_birth, date.today())

    def value_of(self, field_name: str) -> Any:
        """Field lookup that treats attachment slots as ordinary fields."""
        if field_name in SLOT_NAMES:
            return self.attachments.get(AttachmentSlot(field_name))
        return getattr(self, field_name)


# ---------------------------------------------------------------------------
# API request envelopes
# ---------------------------------------------------------------------------

class CertificationInput(BaseModel):
    """Applicant‑editable fields. Every field may be left empty on a draft."""
    application_type: Optional[ApplicationType] = None

    identification_number: Optional[str] = Field(default=None, max_length=10)
    applicant_name: Optional[str] = Field(default=None, max_length=100)
    applicant_last_name: Optional[str] = Field(default=None, max_length=100)
    applicant_second_last_name: Optional[str] = Field(default=None, max_length=100)
    date_of_birth: Optional[date] = None
    finger_code: Optional[str] = None
    email_address: Optional[EmailStr] = None
    cellphone_number: Optional[str] = Field(default=None, pattern=CELLPHONE_PATTERN)

    city: Optional[str] = None
    province: Optional[str] = None
    address: Optional[str] = Field(default=None, min_length=15, max_length=100)

    company_ruc: Optional[str] = Field(default=None, max_length=13)
    position_company: Optional[str] = Field(default=None, max_length=100)
    company_social_reason: Optional[str] = Field(default=None, max_length=250)
    appointment_expiration_date: Optional[datetime] = None

    reference_transaction: Optional[str] = Field(default=None, max_length=150)
    period: Optional[str] = None
    terms_accepted: Optional[bool] = None

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                k: (None if isinstance(v, str) and not v.strip() else v)
                for k, v in data.items()
            }
        return data

    @field_validator("finger_code")
    @classmethod
    def _finger_code(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip().upper()
        if not re.match(FINGER_CODE_PATTERN, value):
            raise ValueError("finger_code must be 2 uppercase letters followed by 8 digits")
        return value

    @field_validator("email_address")
    @classmethod
    def _email_length(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) > 100:
            raise ValueError("email_address must be at most 100 characters")
        return value

    @field_validator("city")
    @classmethod
    def _city(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in CITIES:
            raise ValueError(f"unknown city: {value}")
        return value

    @field_validator("province")
    @classmethod
    def _province(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in PROVINCES:
            raise ValueError(f"unknown province: {value}")
        return value

    @field_validator("period")
    @classmethod
    def _period(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in settings.PERIODS:
            raise ValueError(f"period must be one of {', '.join(settings.PERIODS)}")
        return value

    @field_validator("appointment_expiration_date")
    @classmethod
    def _future_expiration(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return value
        if value.date() <= date.today():
            raise ValueError("appointment_expiration_date must be after today")
        return value


class CertificationCreate(CertificationInput):
    application_type: ApplicationType = ApplicationType.NATURAL_PERSON


class CertificationUpdate(CertificationInput):
    pass


class ApproveRequest(BaseModel):
    notes: Optional[str] = None


class RejectRequest(BaseModel):
    reason: str = ""


# ---------------------------------------------------------------------------
# API responses
# ---------------------------------------------------------------------------

class CertificationResponse(BaseModel):
    id: str
    user_id: str
    identification_number: Optional[str] = None
    applicant_name: Optional[str] = None
    applicant_last_name: Optional[str] = None
    applicant_second_last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    client_age: Optional[int] = None
    finger_code: Optional[str] = None
    email_address: Optional[str] = None
    cellphone_number: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    address: Optional[str] = None
    country_code: str
    document_type: str
    application_type: ApplicationType
    application_type_label: Optional[str] = None
    company_ruc: Optional[str] = None
    position_company: Optional[str] = None
    company_social_reason: Optional[str] = None
    appointment_expiration_date: Optional[datetime] = None
    attachments: dict[str, Optional[str]]
    reference_transaction: Optional[str] = None
    period: Optional[str] = None
    period_label: Optional[str] = None
    status: CertificationStatus
    status_label: Optional[str] = None
    rejection_reason: Optional[str] = None
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    terms_accepted: bool
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime

    # derived
    completion_percentage: int
    can_edit: bool
    can_submit: bool
    can_delete: bool
    requires_company_documents: bool
    requires_appointment_documents: bool
    required_fields: list[str] = Field(default_factory=list)
    missing_fields: list[str] = Field(default_factory=list)


class CertificationTimelineEvent(BaseModel):
    id: str
    certification_id: str
    event: str
    actor_id: Optional[str] = None
    note: Optional[str] = None
    occurred_at: datetime


class CertificationStats(BaseModel):
    total: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    awaiting_review: int = 0
