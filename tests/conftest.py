"""
Pytest configuration and shared fixtures

Builds a throw-away PKI with cryptography (issuing CA, user certificate,
OCSP responder certificates) and signed OCSP responses with asn1crypto, so
every field of a response (producedAt, nonce, status, signature) can be
controlled by a test.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest
from asn1crypto import core as asn1_core
from asn1crypto import ocsp as asn1_ocsp
from asn1crypto import x509 as asn1_x509
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed448, ed25519, padding, rsa
from cryptography.x509.ocsp import load_der_ocsp_request
from cryptography.x509.oid import NameOID

from ocsp_validator.config import OCSPConfiguration
from ocsp_validator.identity import build_certificate_identity
from ocsp_validator.models import CertificateIdentity
from ocsp_validator.nonce import encode_nonce

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
SERVICE_URL = "http://ocsp.example.test/ocsp"
RESPONDER_CN = "TEST of ESTEID-SK 2015 OCSP RESPONDER"
CLOCK_SKEW = 2
RESPONSE_LIFETIME = 900
PSS_HASH = "sha256"
PSS_MGF1_HASH = "sha384"
PSS_SALT_LENGTH = 32


def _name(cn: str) -> x509.Name:
    return x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, "EE"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Test Certificates"),
        x509.NameAttribute(NameOID.COMMON_NAME, cn),
    ])


def make_certificate(
    cn: str,
    key,
    issuer_name: Optional[x509.Name] = None,
    issuer_key=None,
    not_before: datetime = NOW - timedelta(days=120),
    not_after: datetime = NOW + timedelta(days=365),
    serial_number: Optional[int] = None,
    ca: bool = False,
) -> x509.Certificate:
    builder = (
        x509.CertificateBuilder()
        .subject_name(_name(cn))
        .issuer_name(issuer_name or _name(cn))
        .public_key(key.public_key())
        .serial_number(serial_number or x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
    )
    return builder.sign(issuer_key or key, hashes.SHA256())


class TestPKI:
    __test__ = False

    def __init__(self):
        self.ca_key = ec.generate_private_key(ec.SECP256R1())
        self.ca_cert = make_certificate("TEST of ESTEID-SK 2015", self.ca_key, ca=True)

        self.user_key = ec.generate_private_key(ec.SECP256R1())
        self.user_cert = make_certificate(
            "MANNETJE,MARI-LIIS,47101010033",
            self.user_key,
            issuer_name=self.ca_cert.subject,
            issuer_key=self.ca_key,
            serial_number=0x5E5A8F3B6D2C1A0099,
        )

        self.responder_key = ec.generate_private_key(ec.SECP256R1())
        self.responder_cert = make_certificate(
            RESPONDER_CN, self.responder_key, issuer_name=self.ca_cert.subject, issuer_key=self.ca_key
        )

        # same CN, different key: a rotated or rogue responder
        self.rogue_key = ec.generate_private_key(ec.SECP256R1())
        self.rogue_cert = make_certificate(
            RESPONDER_CN, self.rogue_key, issuer_name=self.ca_cert.subject, issuer_key=self.ca_key
        )

        self.other_key = ec.generate_private_key(ec.SECP256R1())
        self.other_cert = make_certificate(
            "Untrusted OCSP Responder", self.other_key, issuer_name=self.ca_cert.subject, issuer_key=self.ca_key
        )

        self.expired_cert = make_certificate(
            RESPONDER_CN,
            self.responder_key,
            issuer_name=self.ca_cert.subject,
            issuer_key=self.ca_key,
            not_before=NOW - timedelta(days=400),
            not_after=NOW - timedelta(seconds=1),
        )
        self.not_yet_valid_cert = make_certificate(
            RESPONDER_CN,
            self.responder_key,
            issuer_name=self.ca_cert.subject,
            issuer_key=self.ca_key,
            not_before=NOW + timedelta(seconds=1),
        )

        self.identity = build_certificate_identity(self.user_cert, self.ca_cert)

    def configuration(self, trusted=None, **kwargs) -> OCSPConfiguration:
        if trusted is None:
            trusted = {RESPONDER_CN: self.responder_cert}
        kwargs.setdefault("accepted_clock_skew_seconds", CLOCK_SKEW)
        kwargs.setdefault("response_lifetime_seconds", RESPONSE_LIFETIME)
        return OCSPConfiguration(service_url=SERVICE_URL, trusted_certificates=trusted, **kwargs)


def _cert_status(status: str, revocation_time: datetime):
    if status == "revoked":
        return asn1_ocsp.CertStatus(
            name="revoked",
            value={"revocation_time": revocation_time, "revocation_reason": "key_compromise"},
        )
    return asn1_ocsp.CertStatus(name=status, value=asn1_core.Null())


def _sign(key, data: bytes, rsa_pss: bool = False):
    """Sign data with key, returning (signature_algorithm, signature)."""
    if isinstance(key, rsa.RSAPrivateKey) and rsa_pss:
        pss = padding.PSS(mgf=padding.MGF1(hashes.SHA384()), salt_length=PSS_SALT_LENGTH)
        algorithm = {
            "algorithm": "rsassa_pss",
            "parameters": {
                "hash_algorithm": {"algorithm": PSS_HASH},
                "mask_gen_algorithm": {"algorithm": "mgf1", "parameters": {"algorithm": PSS_MGF1_HASH}},
                "salt_length": PSS_SALT_LENGTH,
            },
        }
        return algorithm, key.sign(data, pss, hashes.SHA256())
    if isinstance(key, rsa.RSAPrivateKey):
        return {"algorithm": "sha256_rsa"}, key.sign(data, padding.PKCS1v15(), hashes.SHA256())
    if isinstance(key, dsa.DSAPrivateKey):
        return {"algorithm": "sha256_dsa"}, key.sign(data, hashes.SHA256())
    if isinstance(key, ed25519.Ed25519PrivateKey):
        return {"algorithm": "ed25519"}, key.sign(data)
    if isinstance(key, ed448.Ed448PrivateKey):
        return {"algorithm": "ed448"}, key.sign(data)
    return {"algorithm": "sha256_ecdsa"}, key.sign(data, ec.ECDSA(hashes.SHA256()))


def build_ocsp_response(
    responder_cert: x509.Certificate,
    responder_key,
    identities: List[CertificateIdentity],
    nonce: Optional[bytes] = None,
    cert_status: str = "good",
    produced_at: datetime = NOW,
    by_key: bool = False,
    tamper_signature: bool = False,
    include_certs: bool = True,
    rsa_pss: bool = False,
    nonce_value: Optional[bytes] = None,
) -> bytes:
    """Build a DER BasicOCSPResponse signed by responder_key.

    nonce_value replaces the encoded nonce (the extnValue contents) byte for
    byte before signing, so it must be as long as the OCTET STRING it replaces.
    """
    if by_key:
        spki = asn1_x509.Certificate.load(responder_cert.public_bytes(serialization.Encoding.DER)).public_key
        responder_id = asn1_ocsp.ResponderId(name="by_key", value=spki.sha1)
    else:
        responder_id = asn1_ocsp.ResponderId(
            name="by_name", value=asn1_x509.Name.load(responder_cert.subject.public_bytes())
        )

    responses = []
    for identity in identities:
        responses.append({
            "cert_id": {
                "hash_algorithm": {"algorithm": identity.hash_algorithm},
                "issuer_name_hash": identity.issuer_name_hash,
                "issuer_key_hash": identity.issuer_key_hash,
                "serial_number": identity.serial_number,
            },
            "cert_status": _cert_status(cert_status, produced_at - timedelta(days=1)),
            "this_update": produced_at,
            "next_update": produced_at + timedelta(hours=12),
        })

    tbs = {
        "responder_id": responder_id,
        "produced_at": produced_at,
        "responses": responses,
    }
    if nonce is not None:
        tbs["response_extensions"] = [{"extn_id": "nonce", "critical": False, "extn_value": nonce}]
    tbs_response_data = asn1_ocsp.ResponseData(tbs)
    if nonce_value is not None:
        encoded_nonce = encode_nonce(nonce)
        assert len(nonce_value) == len(encoded_nonce)
        tbs_response_data = asn1_ocsp.ResponseData.load(tbs_response_data.dump().replace(encoded_nonce, nonce_value))

    algorithm, signature = _sign(responder_key, tbs_response_data.dump(), rsa_pss=rsa_pss)
    if tamper_signature:
        signature = signature[:-1] + bytes([signature[-1] ^ 0x01])

    basic = {
        "tbs_response_data": tbs_response_data,
        "signature_algorithm": algorithm,
        "signature": signature,
    }
    if include_certs:
        basic["certs"] = [asn1_x509.Certificate.load(responder_cert.public_bytes(serialization.Encoding.DER))]

    return asn1_ocsp.OCSPResponse({
        "response_status": "successful",
        "response_bytes": {
            "response_type": "basic_ocsp_response",
            "response": basic,
        },
    }).dump()


def build_error_response(status: str) -> bytes:
    return asn1_ocsp.OCSPResponse({"response_status": status}).dump()


def request_nonce(der_request: bytes) -> bytes:
    request = load_der_ocsp_request(der_request)
    return request.extensions.get_extension_for_class(x509.OCSPNonce).value.nonce


class StubResponder:
    """Transport that answers requests in-process, echoing the request nonce by default.

    nonce_mode: "echo", "missing", "tamper" (flip one bit of the echoed nonce)
    or "malformed" (echo bytes that are not a DER OCTET STRING, same length).
    """

    def __init__(
        self,
        pki: TestPKI,
        cert_status: str = "good",
        produced_at: datetime = NOW,
        nonce_mode: str = "echo",
        signer_cert: Optional[x509.Certificate] = None,
        signer_key=None,
        identities: Optional[List[CertificateIdentity]] = None,
        tamper_signature: bool = False,
        by_key: bool = False,
        raw_response: Optional[bytes] = None,
    ):
        self.pki = pki
        self.cert_status = cert_status
        self.produced_at = produced_at
        self.nonce_mode = nonce_mode
        self.signer_cert = signer_cert or pki.responder_cert
        self.signer_key = signer_key or pki.responder_key
        self.identities = identities
        self.tamper_signature = tamper_signature
        self.by_key = by_key
        self.raw_response = raw_response
        self.requests = []

    def send(self, url: str, der_request: bytes) -> bytes:
        self.requests.append((url, der_request))
        if self.raw_response is not None:
            return self.raw_response

        nonce = request_nonce(der_request)
        if self.nonce_mode == "missing":
            nonce = None
        elif self.nonce_mode == "tamper":
            nonce = nonce[:-1] + bytes([nonce[-1] ^ 0x01])

        nonce_value = None
        if self.nonce_mode == "malformed":
            nonce_value = b"\xff" * len(encode_nonce(nonce))

        return build_ocsp_response(
            self.signer_cert,
            self.signer_key,
            self.identities if self.identities is not None else [self.pki.identity],
            nonce=nonce,
            cert_status=self.cert_status,
            produced_at=self.produced_at,
            by_key=self.by_key,
            tamper_signature=self.tamper_signature,
            nonce_value=nonce_value,
        )


@pytest.fixture(scope="session")
def pki():
    return TestPKI()


@pytest.fixture
def configuration(pki):
    return pki.configuration()


@pytest.fixture
def fixed_clock():
    return lambda: NOW


@pytest.fixture
def other_identity(pki):
    return CertificateIdentity(
        issuer_name_hash=pki.identity.issuer_name_hash,
        issuer_key_hash=pki.identity.issuer_key_hash,
        serial_number=pki.identity.serial_number + 1,
    )


@pytest.fixture(scope="session")
def rsa_responder(pki):
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    cert = make_certificate(RESPONDER_CN, key, issuer_name=pki.ca_cert.subject, issuer_key=pki.ca_key)
    return cert, key
