from .config import OCSPConfiguration, load_certificate, trusted_certificates_by_cn
from .errors import ErrorKind, OCSPValidationError
from .models import CertificateIdentity, CertificateStatus, ValidationOutcome
from .transport import OCSPTransport
from .validator import OCSPValidator, validate

__version__ = "0.1.0"

__all__ = [
    "CertificateIdentity",
    "CertificateStatus",
    "ErrorKind",
    "OCSPConfiguration",
    "OCSPTransport",
    "OCSPValidationError",
    "OCSPValidator",
    "ValidationOutcome",
    "load_certificate",
    "trusted_certificates_by_cn",
    "validate",
]
