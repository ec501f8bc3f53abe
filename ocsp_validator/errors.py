from __future__ import annotations

from enum import Enum
from typing import Optional

from .models import CertificateStatus


class ErrorKind(Enum):
    CONFIGURATION = "CONFIGURATION"
    TRANSPORT = "TRANSPORT"
    PROTOCOL = "PROTOCOL"
    VALIDATION = "VALIDATION"
    REVOCATION = "REVOCATION"


class OCSPValidationError(Exception):
    """Failure of an OCSP validation call, tagged with the kind of failure.

    Every kind except REVOCATION means the status could not be established
    and access should be denied. REVOCATION carries the concrete
    certificate status (REVOKED or UNKNOWN).
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status: Optional[CertificateStatus] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status = status
        self.status_code = status_code

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"

    @property
    def is_revocation(self) -> bool:
        return self.kind is ErrorKind.REVOCATION

    @classmethod
    def configuration(cls, message: str) -> "OCSPValidationError":
        return cls(ErrorKind.CONFIGURATION, message)

    @classmethod
    def transport(cls, message: str, status_code: Optional[int] = None) -> "OCSPValidationError":
        return cls(ErrorKind.TRANSPORT, message, status_code=status_code)

    @classmethod
    def protocol(cls, message: str) -> "OCSPValidationError":
        return cls(ErrorKind.PROTOCOL, message)

    @classmethod
    def validation(cls, message: str) -> "OCSPValidationError":
        return cls(ErrorKind.VALIDATION, message)

    @classmethod
    def revoked(cls, status: CertificateStatus, detail: Optional[str] = None) -> "OCSPValidationError":
        message = f"Certificate status is {status.value}"
        if detail:
            message = f"{message} ({detail})"
        return cls(ErrorKind.REVOCATION, message, status=status)
