import os

from asn1crypto import core as asn1_core

from .errors import OCSPValidationError

NONCE_SIZE = 16  # 128 bits

# id-pkix-ocsp-nonce
NONCE_OID = "1.3.6.1.5.5.7.48.1.2"


def generate_nonce() -> bytes:
    return os.urandom(NONCE_SIZE)


def encode_nonce(nonce: bytes) -> bytes:
    """DER OCTET STRING carried as the nonce extension's extnValue"""
    return asn1_core.OctetString(nonce).dump()


def decode_nonce(value: bytes) -> bytes:
    try:
        return asn1_core.OctetString.load(value, strict=True).native
    except (ValueError, TypeError) as e:
        raise OCSPValidationError.validation(f"Invalid OCSP response nonce encoding: {e}") from e
