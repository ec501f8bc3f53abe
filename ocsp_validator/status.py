from .errors import OCSPValidationError
from .models import CertificateIdentity, CertificateStatus, ParsedResponse, SingleResponse

_STATUSES = {
    "good": CertificateStatus.GOOD,
    "revoked": CertificateStatus.REVOKED,
    "unknown": CertificateStatus.UNKNOWN,
}


def find_single_response(response: ParsedResponse, identity: CertificateIdentity) -> SingleResponse:
    """Return the first single response answering for identity.

    A missing entry is a failure in its own right; it is never read as UNKNOWN.
    """
    for single in response.single_responses:
        if single.identity == identity:
            return single
    raise OCSPValidationError.validation(
        f"No OCSP response is present for certificate serial {identity.serial_number:x}"
    )


def interpret_status(single: SingleResponse) -> CertificateStatus:
    status = _STATUSES.get(single.cert_status)
    if status is None:
        raise OCSPValidationError.protocol(f"Unknown OCSP certificate status <{single.cert_status}> received")
    if status is CertificateStatus.REVOKED and single.revocation_time is not None:
        detail = f"revoked at {single.revocation_time.isoformat()}"
        if single.revocation_reason:
            detail += f", reason {single.revocation_reason}"
        raise OCSPValidationError.revoked(status, detail)
    if status is not CertificateStatus.GOOD:
        raise OCSPValidationError.revoked(status)
    return status
