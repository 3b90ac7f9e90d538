from app.certifications.schemas.certification import (  # noqa: F401
    IMAGE_SLOTS,
    PDF_SLOTS,
    VIDEO_SLOTS,
    ApplicationType,
    ApproveRequest,
    AttachmentSlot,
    CertificationCreate,
    CertificationInput,
    CertificationRecord,
    CertificationResponse,
    CertificationStats,
    CertificationStatus,
    CertificationTimelineEvent,
    CertificationUpdate,
    RejectRequest,
    age_on,
    empty_attachments,
)
