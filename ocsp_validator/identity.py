from asn1crypto import x509 as asn1_x509
from cryptography import x509
from cryptography.hazmat.primitives import serialization

from .errors import OCSPValidationError
from .models import CertificateIdentity


def build_certificate_identity(subject: x509.Certificate, issuer: x509.Certificate) -> CertificateIdentity:
    """Derive the SHA-1 CertID for the subject certificate under its issuer."""
    if subject is None:
        raise OCSPValidationError.configuration("User certificate cannot be null")
    if issuer is None:
        raise OCSPValidationError.configuration("Issuer certificate cannot be null")
    if not isinstance(subject, x509.Certificate) or not isinstance(issuer, x509.Certificate):
        raise OCSPValidationError.configuration("Subject and issuer must be X.509 certificates")

    try:
        issuer_asn1 = asn1_x509.Certificate.load(issuer.public_bytes(serialization.Encoding.DER))
        name_hash = issuer_asn1.subject.sha1
        key_hash = issuer_asn1.public_key.sha1
        serial_number = subject.serial_number
    except (ValueError, TypeError) as e:
        raise OCSPValidationError.configuration(f"Unable to encode issuer certificate: {e}") from e

    return CertificateIdentity(
        issuer_name_hash=name_hash,
        issuer_key_hash=key_hash,
        serial_number=serial_number,
        hash_algorithm="sha1",
    )
