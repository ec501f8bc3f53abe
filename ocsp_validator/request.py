from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.x509.ocsp import OCSPRequestBuilder

from .errors import OCSPValidationError
from .models import CertificateIdentity

_HASHES = {
    "sha1": hashes.SHA1,
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}


def build_request(identity: CertificateIdentity, nonce: bytes) -> bytes:
    """Build a DER OCSP request for one certificate with a critical nonce."""
    hash_cls = _HASHES.get(identity.hash_algorithm)
    if hash_cls is None:
        raise OCSPValidationError.configuration(f"Unsupported CertID hash algorithm: {identity.hash_algorithm}")

    try:
        builder = OCSPRequestBuilder()
        builder = builder.add_certificate_by_hash(
            identity.issuer_name_hash,
            identity.issuer_key_hash,
            identity.serial_number,
            hash_cls(),
        )
        # critical so a responder that cannot echo it must refuse
        builder = builder.add_extension(x509.OCSPNonce(nonce), critical=True)
        req = builder.build()
    except (ValueError, TypeError) as e:
        raise OCSPValidationError.configuration(f"Unable to build OCSP request: {e}") from e
    return req.public_bytes(serialization.Encoding.DER)
