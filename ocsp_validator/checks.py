"""Gating checks applied to a parsed OCSP response.

Each check returns normally when the response passes and raises a
VALIDATION (or PROTOCOL) OCSPValidationError otherwise.
"""
import hmac
import logging
from datetime import datetime, timedelta
from typing import Callable, Mapping

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed448, ed25519, padding, rsa

from .errors import OCSPValidationError
from .models import ParsedResponse, ResponderIdentity
from .nonce import NONCE_OID, decode_nonce

logger = logging.getLogger(__name__)

_HASHES = {
    "sha1": hashes.SHA1,
    "sha224": hashes.SHA224,
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
    "sha3_224": hashes.SHA3_224,
    "sha3_256": hashes.SHA3_256,
    "sha3_384": hashes.SHA3_384,
    "sha3_512": hashes.SHA3_512,
}


def validate_nonce(response: ParsedResponse, nonce: bytes) -> None:
    extension = response.extensions.get(NONCE_OID)
    if extension is None:
        raise OCSPValidationError.validation("No nonce found in OCSP response")

    received = decode_nonce(extension.value)
    if not hmac.compare_digest(received, nonce):
        raise OCSPValidationError.validation("Invalid OCSP response nonce")


def validate_freshness(
    produced_at: datetime,
    accepted_clock_skew_seconds: int,
    response_lifetime_seconds: int,
    now: datetime,
) -> None:
    """Accept producedAt within [now - (skew + lifetime), now + skew]."""
    earliest = now - timedelta(seconds=accepted_clock_skew_seconds + response_lifetime_seconds)
    latest = now + timedelta(seconds=accepted_clock_skew_seconds)

    if produced_at < earliest:
        raise OCSPValidationError.validation(
            f"OCSP response was older than accepted (producedAt {produced_at.isoformat()}, earliest {earliest.isoformat()})"
        )
    if produced_at > latest:
        raise OCSPValidationError.validation(
            f"OCSP response cannot be produced in the future (producedAt {produced_at.isoformat()}, latest {latest.isoformat()})"
        )


def resolve_responder_cn(responder: ResponderIdentity) -> str:
    if not responder.common_name:
        if responder.key_hash is not None:
            raise OCSPValidationError.validation("Unable to find responder CN from OCSP response: responder identified by key hash")
        raise OCSPValidationError.validation(f"Unable to find responder CN from OCSP response: {responder.name}")
    return responder.common_name


def _hash_for(name) -> hashes.HashAlgorithm:
    hash_cls = _HASHES.get(name or "")
    if hash_cls is None:
        raise OCSPValidationError.protocol(f"Unsupported OCSP signature hash algorithm: {name}")
    return hash_cls()


def _verifier_for(public_key, response: ParsedResponse) -> Callable[[bytes, bytes], None]:
    algorithm = response.signature_algorithm

    if isinstance(public_key, ed25519.Ed25519PublicKey) and algorithm == "ed25519":
        return public_key.verify

    if isinstance(public_key, ed448.Ed448PublicKey) and algorithm == "ed448":
        return public_key.verify

    if isinstance(public_key, rsa.RSAPublicKey) and algorithm == "rsassa_pkcs1v15":
        hash_algorithm = _hash_for(response.hash_algorithm)
        return lambda signature, data: public_key.verify(signature, data, padding.PKCS1v15(), hash_algorithm)

    if isinstance(public_key, rsa.RSAPublicKey) and algorithm == "rsassa_pss":
        hash_algorithm = _hash_for(response.hash_algorithm)
        mgf_hash = _hash_for(response.mgf1_hash_algorithm or response.hash_algorithm)
        pss = padding.PSS(mgf=padding.MGF1(mgf_hash), salt_length=response.pss_salt_length)
        return lambda signature, data: public_key.verify(signature, data, pss, hash_algorithm)

    if isinstance(public_key, ec.EllipticCurvePublicKey) and algorithm == "ecdsa":
        hash_algorithm = _hash_for(response.hash_algorithm)
        return lambda signature, data: public_key.verify(signature, data, ec.ECDSA(hash_algorithm))

    if isinstance(public_key, dsa.DSAPublicKey) and algorithm == "dsa":
        hash_algorithm = _hash_for(response.hash_algorithm)
        return lambda signature, data: public_key.verify(signature, data, hash_algorithm)

    raise OCSPValidationError.validation(
        f"OCSP response signature algorithm '{algorithm}' does not match responder key type {type(public_key).__name__}"
    )


def verify_response_signature(response: ParsedResponse, certificate: x509.Certificate) -> None:
    try:
        public_key = certificate.public_key()
    except (ValueError, UnsupportedAlgorithm) as e:
        raise OCSPValidationError.validation(f"Unable to load responder public key: {e}") from e

    verify = _verifier_for(public_key, response)
    try:
        verify(response.signature, response.tbs_response_data)
    except InvalidSignature as e:
        raise OCSPValidationError.validation("OCSP response signature is not valid") from e


def validate_responder(
    response: ParsedResponse,
    trusted_certificates: Mapping[str, x509.Certificate],
    now: datetime,
) -> x509.Certificate:
    """Authenticate the responder against the CN allow-list and verify its signature.

    Only the trusted certificate's validity window is checked; its own
    revocation status and chain are not.
    """
    responder_cn = resolve_responder_cn(response.responder)
    certificate = trusted_certificates.get(responder_cn)
    if certificate is None:
        raise OCSPValidationError.validation(f"OCSP cert not found from setup: unknown responder '{responder_cn}'")

    if now < certificate.not_valid_before_utc:
        raise OCSPValidationError.validation(
            f"OCSP responder certificate '{responder_cn}' is not yet valid (notBefore {certificate.not_valid_before_utc.isoformat()})"
        )
    if now > certificate.not_valid_after_utc:
        raise OCSPValidationError.validation(
            f"OCSP responder certificate '{responder_cn}' has expired (notAfter {certificate.not_valid_after_utc.isoformat()})"
        )

    verify_response_signature(response, certificate)
    logger.debug("OCSP response signature verified for responder '%s'", responder_cn)
    return certificate
