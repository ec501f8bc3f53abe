#!/usr/bin/env python3
"""
OCSP Check Example

Validates one certificate against an OCSP responder using the ocsp_validator
package: the response must echo the request nonce, be fresh, and be signed by
one of the trusted responder certificates given on the command line.
"""

import logging
import sys

from ocsp_validator import (
    OCSPConfiguration,
    OCSPValidationError,
    OCSPValidator,
    load_certificate,
    trusted_certificates_by_cn,
)


def run_ocsp_check(cert_path: str, issuer_path: str, ocsp_url: str, responder_paths, skew: int = 2, lifetime: int = 900):
    """
    Run an OCSP check for one certificate

    Args:
        cert_path: Path to the certificate being checked
        issuer_path: Path to the issuing CA certificate
        ocsp_url: OCSP server URL
        responder_paths: Paths to trusted OCSP responder certificates
        skew: Accepted clock skew in seconds
        lifetime: Accepted response age in seconds

    Returns:
        ValidationOutcome
    """
    print("OCSP Check")
    print("=" * 50)
    print(f"Certificate: {cert_path}")
    print(f"Issuer: {issuer_path}")
    print(f"OCSP URL: {ocsp_url}")
    print("=" * 50)

    subject = load_certificate(cert_path)
    issuer = load_certificate(issuer_path)
    trusted = trusted_certificates_by_cn(load_certificate(p) for p in responder_paths)
    print(f"[INFO] Trusted responders: {', '.join(sorted(trusted))}")

    configuration = OCSPConfiguration(
        service_url=ocsp_url,
        trusted_certificates=trusted,
        accepted_clock_skew_seconds=skew,
        response_lifetime_seconds=lifetime,
    )
    validator = OCSPValidator(log_callback=sys.stdout.write)
    return validator.check(subject, issuer, configuration)


def main():
    """Main function"""
    if len(sys.argv) < 5:
        print("Usage: python ocsp_check_example.py <cert_path> <issuer_path> <ocsp_url> <responder_cert> [<responder_cert> ...]")
        print("\nExample:")
        print("python ocsp_check_example.py user.pem esteid2015.pem http://aia.sk.ee/esteid2015 ocsp-responder.pem")
        sys.exit(1)

    logging.basicConfig(level=logging.WARNING)

    cert_path, issuer_path, ocsp_url = sys.argv[1:4]
    try:
        outcome = run_ocsp_check(cert_path, issuer_path, ocsp_url, sys.argv[4:])
    except OCSPValidationError as e:
        print(f"[ERROR] {e}")
        sys.exit(1)

    print("\n[SUMMARY]")
    print("=" * 50)
    for key, value in outcome.details.items():
        print(f"{key}: {value}")

    if outcome.ok:
        print("[OK] Certificate status: GOOD")
        return
    if outcome.error.is_revocation:
        print(f"[REVOKED] Certificate status: {outcome.status.value}")
    else:
        print(f"[ERROR] Unable to validate certificate ({outcome.error.kind.value}): {outcome.error.message}")
    sys.exit(1)


if __name__ == "__main__":
    main()
