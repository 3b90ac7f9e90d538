"""
인증 요청 모델
"""
from sqlalchemy import Column, String, Text, JSON, DateTime, Date, Boolean, Index
from datetime import datetime, timezone
from app.certifications.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class CertificationModel(Base):
    """인증 요청"""
    __tablename__ = "certifications"
    __table_args__ = (
        Index("ix_certifications_user_status", "user_id", "status"),
        Index("ix_certifications_status_created", "status", "created_at"),
    )

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)

    # 신청자 정보
    identification_number = Column(String(10), index=True)
    applicant_name = Column(String(100))
    applicant_last_name = Column(String(100))
    applicant_second_last_name = Column(String(100))
    date_of_birth = Column(Date)
    finger_code = Column(String(10))  # 영문 대문자 2 + 숫자 8
    email_address = Column(String(100))
    cellphone_number = Column(String(20))  # +5939 + 숫자 8

    # 위치
    city = Column(String(100))
    province = Column(String(100))
    address = Column(Text)
    country_code = Column(String(3), nullable=False, default="ECU")

    # 신청 유형
    document_type = Column(String, nullable=False, default="CI")
    application_type = Column(String, nullable=False, index=True)  # NATURAL_PERSON, LEGAL_REPRESENTATIVE

    # 회사 정보 (조건부)
    company_ruc = Column(String(13))
    position_company = Column(String(100))
    company_social_reason = Column(String(250))
    appointment_expiration_date = Column(DateTime(timezone=True))

    # 첨부 파일: slot -> 저장소 참조
    attachments_json = Column(JSON, nullable=False, default=dict)

    # 거래 정보
    reference_transaction = Column(String(150), index=True)
    period = Column(String)

    # 상태
    status = Column(String, nullable=False, default="draft")  # draft, pending, in_review, approved, rejected, completed
    rejection_reason = Column(Text)
    processed_by = Column(String)
    processed_at = Column(DateTime(timezone=True))
    submitted_at = Column(DateTime(timezone=True))

    # 메타데이터
    metadata_json = Column(JSON)
    terms_accepted = Column(Boolean, nullable=False, default=False)
    ip_address = Column(String(45))
    user_agent = Column(Text)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class CertificationTimelineModel(Base):
    """인증 요청 타임라인"""
    __tablename__ = "certification_timelines"

    id = Column(String, primary_key=True)
    certification_id = Column(String, nullable=False, index=True)
    event = Column(String, nullable=False)  # CREATED, UPDATED, SUBMITTED, IN_REVIEW, APPROVED, REJECTED, ...
    actor_id = Column(String)
    note = Column(Text)
    occurred_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
