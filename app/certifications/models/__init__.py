from app.certifications.models.certification import (  # noqa: F401
    CertificationModel,
    CertificationTimelineModel,
)
