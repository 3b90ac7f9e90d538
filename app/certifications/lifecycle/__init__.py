"""
Certification lifecycle — eligibility rules and status transitions.

Pure decision logic over ``CertificationRecord``; storage and transport are
supplied by the caller.
"""
from app.certifications.lifecycle.rules import (  # noqa: F401
    can_be_deleted,
    can_be_edited,
    can_be_submitted,
    completion_percentage,
    missing_fields,
    required_field_set,
    required_fields,
    requires_appointment_documents,
    requires_company_documents,
)
from app.certifications.lifecycle.transitions import (  # noqa: F401
    TRANSITIONS,
    approve,
    complete,
    delete,
    reject,
    reopen,
    start_review,
    submit,
)
