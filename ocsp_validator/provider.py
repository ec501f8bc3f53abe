"""One-time registration of the cryptographic backend shared by all calls."""
import logging
import threading

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes

from .errors import OCSPValidationError

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_registered = False


def _register() -> None:
    backend = default_backend()
    # CertID hashing is fixed to SHA-1 by the OCSP profile
    if not backend.hash_supported(hashes.SHA1()):
        raise OCSPValidationError.configuration("Cryptographic backend does not support SHA-1")
    logger.debug("Registered cryptographic backend: %s", backend.openssl_version_text())


def register_provider() -> None:
    """Register the backend once per process; safe under concurrent first use."""
    global _registered
    if _registered:
        return
    with _lock:
        if _registered:
            return
        _register()
        _registered = True


def is_registered() -> bool:
    return _registered
