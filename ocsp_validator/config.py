import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Mapping
from urllib.parse import urlparse

from cryptography import x509
from cryptography.x509.oid import NameOID

from .errors import OCSPValidationError


@dataclass(frozen=True)
class OCSPConfiguration:
    """Per-call OCSP settings supplied by the caller.

    trusted_certificates maps a responder common name to the certificate
    whose key is allowed to sign responses for that responder.
    """
    service_url: str
    trusted_certificates: Mapping[str, x509.Certificate]
    accepted_clock_skew_seconds: int = 2
    response_lifetime_seconds: int = 900

    def __post_init__(self):
        if not self.service_url or not str(self.service_url).strip():
            raise OCSPValidationError.configuration("OCSP service URL is required")
        parsed = urlparse(self.service_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise OCSPValidationError.configuration(f"Invalid OCSP service URL: {self.service_url}")

        if not isinstance(self.trusted_certificates, Mapping):
            raise OCSPValidationError.configuration("Trusted certificates must be a mapping of CN to certificate")
        for cn, cert in self.trusted_certificates.items():
            if not isinstance(cert, x509.Certificate):
                raise OCSPValidationError.configuration(f"Trusted certificate for '{cn}' is not an X.509 certificate")
        object.__setattr__(self, "trusted_certificates", MappingProxyType(dict(self.trusted_certificates)))

        for name in ("accepted_clock_skew_seconds", "response_lifetime_seconds"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise OCSPValidationError.configuration(f"{name} must be a non-negative integer, got {value!r}")


def load_certificate(path: str) -> x509.Certificate:
    """Load a PEM or DER encoded certificate from a file"""
    if not path or not path.strip():
        raise OCSPValidationError.configuration("Certificate path is empty")

    if not os.path.exists(path):
        raise OCSPValidationError.configuration(f"Certificate file not found: {path}")

    with open(path, "rb") as f:
        data = f.read()

    if not data:
        raise OCSPValidationError.configuration(f"Certificate file is empty: {path}")

    try:
        if b"-----BEGIN" in data:
            return x509.load_pem_x509_certificate(data)
        return x509.load_der_x509_certificate(data)
    except ValueError as e:
        raise OCSPValidationError.configuration(f"Failed to load certificate from {path}: {e}") from e


def trusted_certificates_by_cn(certificates: Iterable[x509.Certificate]) -> Dict[str, x509.Certificate]:
    """Key responder certificates by the first CN of their subject."""
    trusted: Dict[str, x509.Certificate] = {}
    for cert in certificates:
        attrs = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
        if not attrs:
            raise OCSPValidationError.configuration(f"Responder certificate has no common name: {cert.subject.rfc4514_string()}")
        trusted[attrs[0].value] = cert
    return trusted
