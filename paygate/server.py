"""Notification verifier: parses asynchronous payment notifications and checks the gateway signature."""

import binascii
import logging
from typing import Mapping, Union

from pydantic import ValidationError

from paygate.common.canonical import notification_sign_content
from paygate.common.errors import (
    InvalidSignatureEncodingError,
    MalformedFieldError,
    SignatureMismatchError,
)
from paygate.common.protocol import NotificationResult
from paygate.common.utils import b64d, b64e, parse_form
from paygate.config import GatewayConfig
from paygate.crypto.sign import verify_signature

logger = logging.getLogger(__name__)


def parse_notification(fields: Mapping[str, str]) -> NotificationResult:
    """
    Parse received fields into a typed record.

    Raises MalformedFieldError naming the first field that fails. The
    result is unverified; callers outside this module use
    verify_notification.
    """
    try:
        return NotificationResult.model_validate(dict(fields))
    except ValidationError as exc:
        error = exc.errors()[0]
        field = str(error["loc"][0]) if error["loc"] else "notification"
        raise MalformedFieldError(field, error["msg"]) from None


def decode_sign(fields: Mapping[str, str]) -> bytes:
    """Extract and base64-decode the ``sign`` field."""
    sign = fields.get("sign", "")
    if not sign:
        raise InvalidSignatureEncodingError("notification has no sign field")
    try:
        return b64d(sign)
    except (binascii.Error, ValueError) as exc:
        raise InvalidSignatureEncodingError(f"sign is not valid base64: {exc}") from exc


def verify_notification(config: GatewayConfig, fields: Mapping[str, str]) -> NotificationResult:
    """
    Verify one notification and return its parsed fields.

    The digest comes from the configured sign type, never from the
    notification's own ``sign_type``. Parsed fields are discarded when
    verification fails.
    """
    notify_id = fields.get("notify_id", "")
    try:
        result = parse_notification(fields)
    except MalformedFieldError as exc:
        logger.warning("Rejected notification notify_id=%s: malformed %s", notify_id, exc.field)
        raise

    signature = decode_sign(fields)
    content = notification_sign_content(fields)
    logger.debug("Notification sign content: %s", content)

    try:
        message = content.encode(result.charset or config.charset)
    except (LookupError, UnicodeEncodeError) as exc:
        raise MalformedFieldError("charset", str(exc)) from exc

    try:
        # unused trailing bits must be zero so each signature has one encoding
        if b64e(signature) != fields["sign"]:
            raise SignatureMismatchError(
                "sign is not canonically encoded",
                {"sign_type": config.sign_type.value},
            )
        verify_signature(config.keys.public_key, signature, message, config.sign_type)
    except SignatureMismatchError as exc:
        exc.details.update({"notify_id": notify_id, "out_trade_no": fields.get("out_trade_no", "")})
        logger.warning(
            "Signature mismatch for notification notify_id=%s out_trade_no=%s",
            notify_id, fields.get("out_trade_no", ""),
        )
        raise

    logger.info(
        "Verified notification notify_id=%s out_trade_no=%s trade_status=%s",
        result.notify_id, result.out_trade_no, result.trade_status,
    )
    return result


def verify_notification_body(
    config: GatewayConfig,
    body: Union[str, bytes],
    charset: str = "utf-8",
) -> NotificationResult:
    """Verify a raw application/x-www-form-urlencoded notification body."""
    try:
        fields = parse_form(body, charset=charset)
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedFieldError("body", str(exc)) from exc
    return verify_notification(config, fields)
