import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from cryptography import x509

from .checks import validate_freshness, validate_nonce, validate_responder
from .config import OCSPConfiguration
from .errors import OCSPValidationError
from .identity import build_certificate_identity
from .models import CertificateStatus, ValidationOutcome
from .nonce import generate_nonce
from .parser import parse_response
from .provider import register_provider
from .request import build_request
from .status import find_single_response, interpret_status
from .transport import OCSPTransport

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OCSPValidator:
    """Checks one certificate's revocation status against an OCSP responder.

    Stages run in a fixed order and the first failure aborts the call:
    request, nonce, freshness, responder trust and signature, status.
    """

    def __init__(
        self,
        transport: Optional[OCSPTransport] = None,
        clock: Optional[Callable[[], datetime]] = None,
        nonce_factory: Callable[[], bytes] = generate_nonce,
        log_callback: Optional[Callable[[str], None]] = None,
    ):
        self.transport = transport or OCSPTransport()
        self.clock = clock or _utcnow
        self.nonce_factory = nonce_factory
        self.log_callback = log_callback

    def _log(self, level: int, message: str) -> None:
        logger.log(level, message)
        if self.log_callback:
            self.log_callback(f"[{logging.getLevelName(level)}] {message}\n")

    def validate(
        self,
        subject_certificate: x509.Certificate,
        issuer_certificate: x509.Certificate,
        configuration: OCSPConfiguration,
    ) -> None:
        """Return normally if the certificate is GOOD, raise OCSPValidationError otherwise."""
        self._run(subject_certificate, issuer_certificate, configuration, {})

    def check(
        self,
        subject_certificate: x509.Certificate,
        issuer_certificate: x509.Certificate,
        configuration: OCSPConfiguration,
    ) -> ValidationOutcome:
        """Same as validate() but returns the failure as a value."""
        details = {}
        try:
            status = self._run(subject_certificate, issuer_certificate, configuration, details)
        except OCSPValidationError as e:
            return ValidationOutcome(status=e.status, error=e, details=details)
        return ValidationOutcome(status=status, details=details)

    def _run(self, subject, issuer, configuration, details) -> CertificateStatus:
        if subject is None:
            raise OCSPValidationError.configuration("User certificate cannot be null")
        if issuer is None:
            raise OCSPValidationError.configuration("Issuer certificate cannot be null")
        if configuration is None:
            raise OCSPValidationError.configuration("OCSP configuration cannot be null")
        if not isinstance(configuration, OCSPConfiguration):
            raise OCSPValidationError.configuration("OCSP configuration must be an OCSPConfiguration")

        register_provider()

        identity = build_certificate_identity(subject, issuer)
        self._log(
            logging.DEBUG,
            f"OCSP certificate validation called for userCert: {subject.subject.rfc4514_string()}, "
            f"issuerCert: {issuer.subject.rfc4514_string()}, certID: {identity.serial_number:x}",
        )
        details["serial_number"] = f"{identity.serial_number:x}"
        details["service_url"] = configuration.service_url

        nonce = self.nonce_factory()
        der_request = build_request(identity, nonce)
        der_response = self.transport.send(configuration.service_url, der_request)
        response = parse_response(der_response)
        now = self.clock()
        details["produced_at"] = response.produced_at.isoformat()

        try:
            validate_nonce(response, nonce)
            validate_freshness(
                response.produced_at,
                configuration.accepted_clock_skew_seconds,
                configuration.response_lifetime_seconds,
                now,
            )
            validate_responder(response, configuration.trusted_certificates, now)
            details["responder"] = response.responder.common_name

            single = find_single_response(response, identity)
            status = interpret_status(single)
        except OCSPValidationError as e:
            level = logging.INFO if e.is_revocation else logging.WARNING
            self._log(level, f"OCSP validation failed for certID {identity.serial_number:x}: {e}")
            raise

        self._log(logging.INFO, f"OCSP status for certID {identity.serial_number:x} is {status.value}")
        return status


def validate(
    subject_certificate: x509.Certificate,
    issuer_certificate: x509.Certificate,
    configuration: OCSPConfiguration,
) -> None:
    OCSPValidator().validate(subject_certificate, issuer_certificate, configuration)
