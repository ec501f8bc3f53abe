from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from .errors import OCSPValidationError


class CertificateStatus(Enum):
    GOOD = "GOOD"
    REVOKED = "REVOKED"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class CertificateIdentity:
    """CertID of RFC 6960: issuer name hash, issuer key hash and subject serial."""
    issuer_name_hash: bytes
    issuer_key_hash: bytes
    serial_number: int
    hash_algorithm: str = "sha1"


@dataclass(frozen=True)
class ResponderIdentity:
    common_name: Optional[str] = None
    name: Optional[str] = None
    key_hash: Optional[bytes] = None


@dataclass(frozen=True)
class ResponseExtension:
    oid: str
    critical: bool
    value: bytes  # raw extnValue octets


@dataclass
class SingleResponse:
    identity: CertificateIdentity
    cert_status: str
    this_update: Optional[datetime] = None
    next_update: Optional[datetime] = None
    revocation_time: Optional[datetime] = None
    revocation_reason: Optional[str] = None


@dataclass
class ParsedResponse:
    responder: ResponderIdentity
    produced_at: datetime
    extensions: Dict[str, ResponseExtension]
    single_responses: List[SingleResponse]
    tbs_response_data: bytes
    signature: bytes
    signature_algorithm: str
    hash_algorithm: Optional[str] = None
    pss_salt_length: Optional[int] = None
    mgf1_hash_algorithm: Optional[str] = None


@dataclass
class ValidationOutcome:
    status: Optional[CertificateStatus] = None
    error: Optional["OCSPValidationError"] = None
    details: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None and self.status is CertificateStatus.GOOD
