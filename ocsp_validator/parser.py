from typing import Dict, List, Optional

from asn1crypto import core as asn1_core
from asn1crypto import ocsp as asn1_ocsp

from .errors import OCSPValidationError
from .models import (
    CertificateIdentity,
    ParsedResponse,
    ResponderIdentity,
    ResponseExtension,
    SingleResponse,
)


def _first_common_name(name) -> Optional[str]:
    for rdn in name.chosen:
        for type_and_value in rdn:
            if type_and_value["type"].native == "common_name":
                return type_and_value["value"].native
    return None


def _parse_responder(responder_id: asn1_ocsp.ResponderId) -> ResponderIdentity:
    if responder_id.name == "by_name":
        name = responder_id.chosen
        return ResponderIdentity(common_name=_first_common_name(name), name=name.human_friendly)
    return ResponderIdentity(key_hash=responder_id.chosen.native)


class _RawExtension(asn1_core.Sequence):
    """Extension with extnValue left undecoded, whatever its OID."""

    _fields = [
        ("extn_id", asn1_core.ObjectIdentifier),
        ("critical", asn1_core.Boolean, {"default": False}),
        ("extn_value", asn1_core.OctetString),
    ]


def _parse_extensions(tbs: asn1_ocsp.ResponseData) -> Dict[str, ResponseExtension]:
    extensions: Dict[str, ResponseExtension] = {}
    response_extensions = tbs["response_extensions"]
    if isinstance(response_extensions, asn1_core.Void) or len(response_extensions) == 0:
        return extensions
    for response_extension in response_extensions:
        # reading fields on the typed extension would decode known values such as the nonce
        ext = _RawExtension.load(response_extension.dump())
        oid = ext["extn_id"].dotted
        extensions[oid] = ResponseExtension(
            oid=oid,
            critical=bool(ext["critical"].native),
            value=ext["extn_value"].contents,
        )
    return extensions


def _parse_single_response(single: asn1_ocsp.SingleResponse) -> SingleResponse:
    cert_id = single["cert_id"]
    identity = CertificateIdentity(
        issuer_name_hash=cert_id["issuer_name_hash"].native,
        issuer_key_hash=cert_id["issuer_key_hash"].native,
        serial_number=cert_id["serial_number"].native,
        hash_algorithm=cert_id["hash_algorithm"]["algorithm"].native,
    )
    cert_status = single["cert_status"]
    result = SingleResponse(
        identity=identity,
        cert_status=cert_status.name,
        this_update=single["this_update"].native,
        next_update=single["next_update"].native,
    )
    if cert_status.name == "revoked":
        revoked = cert_status.chosen
        result.revocation_time = revoked["revocation_time"].native
        result.revocation_reason = revoked["revocation_reason"].native
    return result


def parse_response(der_response: bytes) -> ParsedResponse:
    """Decode a DER OCSPResponse into the fields the validator needs."""
    try:
        response = asn1_ocsp.OCSPResponse.load(der_response, strict=True)
        response_status = response["response_status"].native
    except (ValueError, TypeError) as e:
        raise OCSPValidationError.protocol(f"Unable to decode OCSP response: {e}") from e

    if response_status != "successful":
        raise OCSPValidationError.protocol(f"OCSP responder returned status '{response_status}'")

    try:
        response_bytes = response["response_bytes"]
        response_type = None
        if not isinstance(response_bytes, asn1_core.Void):
            response_type = response_bytes["response_type"].native
    except (ValueError, TypeError) as e:
        raise OCSPValidationError.protocol(f"Unable to decode OCSP response bytes: {e}") from e

    if response_type != "basic_ocsp_response":
        raise OCSPValidationError.protocol(f"Unsupported OCSP response type: {response_type}")

    try:
        basic = response_bytes["response"].parsed
        tbs = basic["tbs_response_data"]
        responder = _parse_responder(tbs["responder_id"])
        produced_at = tbs["produced_at"].native
        extensions = _parse_extensions(tbs)
        single_responses: List[SingleResponse] = [_parse_single_response(s) for s in tbs["responses"]]

        algorithm = basic["signature_algorithm"]
        signature_algorithm = algorithm.signature_algo
        hash_algorithm = None
        pss_salt_length = None
        mgf1_hash_algorithm = None
        if signature_algorithm not in ("ed25519", "ed448"):
            hash_algorithm = algorithm.hash_algo
        if signature_algorithm == "rsassa_pss":
            pss_params = algorithm["parameters"]
            pss_salt_length = pss_params["salt_length"].native
            mask_gen = pss_params["mask_gen_algorithm"]
            if mask_gen["algorithm"].native != "mgf1":
                raise OCSPValidationError.protocol(
                    f"Unsupported RSASSA-PSS mask generation function: {mask_gen['algorithm'].native}"
                )
            mgf1_hash_algorithm = mask_gen["parameters"]["algorithm"].native

        parsed = ParsedResponse(
            responder=responder,
            produced_at=produced_at,
            extensions=extensions,
            single_responses=single_responses,
            tbs_response_data=tbs.dump(),
            signature=basic["signature"].native,
            signature_algorithm=signature_algorithm,
            hash_algorithm=hash_algorithm,
            pss_salt_length=pss_salt_length,
            mgf1_hash_algorithm=mgf1_hash_algorithm,
        )
    except (ValueError, TypeError, KeyError) as e:
        raise OCSPValidationError.protocol(f"Malformed OCSP basic response: {e}") from e

    if parsed.produced_at is None:
        raise OCSPValidationError.protocol("OCSP response has no producedAt time")
    return parsed
