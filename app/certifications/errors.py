"""
인증 요청 도메인 예외
"""


class CertificationError(Exception):
    """Base class for certification domain failures."""


class ValidationError(CertificationError):
    """Caller-supplied data breaks a business rule."""


class PreconditionFailed(CertificationError):
    """The transition is not legal from the record's current state."""


class NotFound(CertificationError):
    """No record exists for the given id."""


class StorageError(CertificationError):
    """An attachment could not be written or released."""
