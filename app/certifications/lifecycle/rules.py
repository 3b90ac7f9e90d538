"""
Eligibility rules — required fields, completion and edit/submit/delete gates.

Pure functions over a ``CertificationRecord`` snapshot; nothing here is cached
because the classification and the RUC trigger can change between calls.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from app.certifications.schemas import (
    ApplicationType,
    AttachmentSlot,
    CertificationRecord,
    CertificationStatus,
)

BASE_REQUIRED_FIELDS: tuple[str, ...] = (
    "identification_number",
    "applicant_name",
    "applicant_last_name",
    "finger_code",
    "email_address",
    "cellphone_number",
    "city",
    "province",
    "address",
    "reference_transaction",
    "period",
    AttachmentSlot.IDENTIFICATION_FRONT.value,
    AttachmentSlot.IDENTIFICATION_BACK.value,
    AttachmentSlot.IDENTIFICATION_SELFIE.value,
)

COMPANY_REQUIRED_FIELDS: tuple[str, ...] = (
    "company_ruc",
    AttachmentSlot.PDF_COMPANY_RUC.value,
)

APPOINTMENT_REQUIRED_FIELDS: tuple[str, ...] = (
    "position_company",
    "company_social_reason",
    "appointment_expiration_date",
    AttachmentSlot.PDF_REPRESENTATIVE_APPOINTMENT.value,
    AttachmentSlot.PDF_APPOINTMENT_ACCEPTANCE.value,
    AttachmentSlot.PDF_COMPANY_CONSTITUTION.value,
)

EDITABLE_STATUSES = frozenset({CertificationStatus.DRAFT, CertificationStatus.REJECTED})
DELETABLE_STATUSES = frozenset({CertificationStatus.DRAFT})


def _is_filled(value: object) -> bool:
    # None, "", False and empty containers all count as missing
    return bool(value)


def requires_company_documents(record: CertificationRecord) -> bool:
    if record.application_type == ApplicationType.LEGAL_REPRESENTATIVE:
        return True
    return record.application_type == ApplicationType.NATURAL_PERSON and _is_filled(record.company_ruc)


def requires_appointment_documents(record: CertificationRecord) -> bool:
    return record.application_type == ApplicationType.LEGAL_REPRESENTATIVE


def required_fields(record: CertificationRecord) -> list[str]:
    """Required field names in display order."""
    fields = list(BASE_REQUIRED_FIELDS)
    if requires_company_documents(record):
        fields.extend(COMPANY_REQUIRED_FIELDS)
    if requires_appointment_documents(record):
        fields.extend(APPOINTMENT_REQUIRED_FIELDS)
    return fields


def required_field_set(record: CertificationRecord) -> frozenset[str]:
    return frozenset(required_fields(record))


def missing_fields(record: CertificationRecord) -> list[str]:
    return [name for name in required_fields(record) if not _is_filled(record.value_of(name))]


def completion_percentage(record: CertificationRecord) -> int:
    """Share of currently required fields holding a value, 0..100, rounded half up."""
    required = required_fields(record)
    filled = len(required) - len(missing_fields(record))
    ratio = Decimal(filled * 100) / Decimal(len(required))
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def can_be_edited(record: CertificationRecord) -> bool:
    return record.status in EDITABLE_STATUSES


def can_be_submitted(record: CertificationRecord) -> bool:
    return (
        record.status == CertificationStatus.DRAFT
        and completion_percentage(record) == 100
        and record.terms_accepted is True
    )


def can_be_deleted(record: CertificationRecord) -> bool:
    return record.status in DELETABLE_STATUSES
