"""
Gateway Error Hierarchy

Closed set of error kinds raised by the signing core. Error identity lives
in ErrorKind; the message is display text only.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    INVALID_PARAMETER = "invalid_parameter"
    INVALID_CERTIFICATE = "invalid_certificate"
    INVALID_KEY = "invalid_key"
    UNSUPPORTED_ALGORITHM = "unsupported_algorithm"
    MALFORMED_FIELD = "malformed_field"
    INVALID_SIGNATURE_ENCODING = "invalid_signature_encoding"
    SIGNATURE_MISMATCH = "signature_mismatch"


class GatewayError(Exception):
    """
    Base exception for all gateway protocol errors.

    Callers should branch on ``kind``, not on the message text.
    """

    kind: ErrorKind

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to an error response / audit record."""
        return {
            "error_kind": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


class InvalidParameterError(GatewayError):
    """
    Outbound request parameter failed a precondition.

    Non-retryable: the caller must fix the input.
    """

    kind = ErrorKind.INVALID_PARAMETER

    def __init__(self, field: str, expected: str, value: Any = None):
        details: Dict[str, Any] = {"field": field, "expected": expected}
        if value is not None:
            details["value"] = value
        super().__init__(f"{field}: expected {expected}", details)

    @property
    def field(self) -> str:
        return self.details["field"]


class InvalidCertificateError(GatewayError):
    """Certificate could not be parsed or yielded no usable SN."""

    kind = ErrorKind.INVALID_CERTIFICATE


class InvalidKeyError(GatewayError):
    """Key material could not be parsed or is not an RSA key."""

    kind = ErrorKind.INVALID_KEY


class UnsupportedAlgorithmError(GatewayError):
    """Sign type is neither RSA (SHA-1) nor RSA2 (SHA-256)."""

    kind = ErrorKind.UNSUPPORTED_ALGORITHM

    def __init__(self, sign_type: Any):
        super().__init__(
            f"unsupported sign type {sign_type!r}, expected RSA or RSA2",
            {"sign_type": str(sign_type), "expected": "RSA|RSA2"},
        )


class MalformedFieldError(GatewayError):
    """
    Inbound notification field failed to parse.

    The notification should be logged and rejected.
    """

    kind = ErrorKind.MALFORMED_FIELD

    def __init__(self, field: str, reason: str):
        super().__init__(f"malformed field {field}: {reason}", {"field": field, "reason": reason})

    @property
    def field(self) -> str:
        return self.details["field"]


class InvalidSignatureEncodingError(GatewayError):
    """The ``sign`` field is absent or is not valid base64."""

    kind = ErrorKind.INVALID_SIGNATURE_ENCODING


class SignatureMismatchError(GatewayError):
    """
    RSA signature verification failed.

    Security relevant: surface to alerting / audit, never treat as a
    missing record.
    """

    kind = ErrorKind.SIGNATURE_MISMATCH
