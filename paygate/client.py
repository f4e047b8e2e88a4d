"""Request builder: validates public params and biz_content, signs, and emits the query string."""

import codecs
import logging
import re
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from paygate.common.canonical import ROOT_CERT_SN, encode_query, request_pairs, request_sign_content
from paygate.common.errors import InvalidCertificateError, InvalidParameterError
from paygate.common.protocol import BizContent, PublicParams, SignedRequest, SignType
from paygate.common.schema import WAP_PAY_SCHEMA, PayloadSchema
from paygate.common.utils import b64e, is_timestamp
from paygate.config import GatewayConfig
from paygate.crypto.sign import sign_data

logger = logging.getLogger(__name__)

URL_MIN_LENGTH = 8
URL_MAX_LENGTH = 256
CHARSET_MAX_LENGTH = 10
VERSIONS = ("1", "1.0")

_APP_ID = re.compile(r"[0-9]+")


def default_params(config: GatewayConfig, **overrides: Any) -> PublicParams:
    """
    Fresh public params for one request, defaulted from the config.

    The timestamp is taken now unless overridden.
    """
    values = {
        "app_id": config.app_id,
        "method": config.method,
        "charset": config.charset,
        "sign_type": config.sign_type.value,
    }
    values.update(overrides)
    return PublicParams(**values)


def _check_url(field: str, value: str) -> None:
    if not value:
        return
    if len(value) < URL_MIN_LENGTH or not value.startswith(("http://", "https://")):
        raise InvalidParameterError(field, "a URL starting with http:// or https://", value)
    if len(value) > URL_MAX_LENGTH:
        raise InvalidParameterError(field, f"at most {URL_MAX_LENGTH} characters", len(value))


def check_params(params: PublicParams, config: GatewayConfig) -> str:
    """
    Check public params, first failure wins.

    Returns the effective method name.
    """
    if not params.app_id:
        raise InvalidParameterError("app_id", "a non-empty value")
    if not _APP_ID.fullmatch(params.app_id) or int(params.app_id) == 0:
        raise InvalidParameterError("app_id", "a numeric string", params.app_id)
    if params.format and params.format != "JSON":
        raise InvalidParameterError("format", "JSON", params.format)
    _check_url("return_url", params.return_url)

    if not params.charset or len(params.charset) > CHARSET_MAX_LENGTH:
        raise InvalidParameterError("charset", f"1-{CHARSET_MAX_LENGTH} characters", params.charset)
    try:
        codecs.lookup(params.charset)
    except LookupError:
        raise InvalidParameterError("charset", "a known character set", params.charset) from None

    if params.sign_type not in (SignType.RSA.value, SignType.RSA2.value):
        raise InvalidParameterError("sign_type", "RSA or RSA2", params.sign_type)
    # the signature is computed with the configured algorithm
    if params.sign_type != config.sign_type.value:
        raise InvalidParameterError("sign_type", config.sign_type.value, params.sign_type)
    if not is_timestamp(params.timestamp):
        raise InvalidParameterError("timestamp", "yyyy-MM-dd HH:mm:ss", params.timestamp)
    if params.version not in VERSIONS:
        raise InvalidParameterError("version", "1 or 1.0", params.version)
    _check_url("notify_url", params.notify_url)

    return params.method or config.method


def _as_biz_content(biz_content: Union[BizContent, Mapping[str, Any]]) -> BizContent:
    if isinstance(biz_content, BizContent):
        return biz_content
    try:
        return BizContent.model_validate(biz_content)
    except ValidationError as exc:
        loc = ".".join(str(part) for part in exc.errors()[0]["loc"])
        raise InvalidParameterError(f"biz_content.{loc}", exc.errors()[0]["msg"]) from None


def build_request(
    config: GatewayConfig,
    biz_content: Union[BizContent, Mapping[str, Any]],
    params: Optional[PublicParams] = None,
    schema: PayloadSchema = WAP_PAY_SCHEMA,
) -> SignedRequest:
    """
    Build one signed request.

    Each call works on its own values; the config is only read.
    """
    if params is None:
        params = default_params(config)
    method = check_params(params, config)

    biz = _as_biz_content(biz_content)
    schema.validate(biz)

    if not config.app_cert_sn:
        raise InvalidCertificateError("application certificate SN is not configured")
    if not config.root_cert_sn:
        raise InvalidCertificateError("root certificate SN is not configured")

    try:
        biz_json = biz.to_json()
    except (ValueError, TypeError) as exc:
        raise InvalidParameterError("biz_content", "a JSON-serializable payload", str(exc)) from exc

    pairs = request_pairs({
        ROOT_CERT_SN: config.root_cert_sn,
        "app_cert_sn": config.app_cert_sn,
        "app_id": params.app_id,
        "biz_content": biz_json,
        "charset": params.charset,
        "format": params.format,
        "method": method,
        "notify_url": params.notify_url,
        "return_url": params.return_url,
        "sign_type": params.sign_type,
        "timestamp": params.timestamp,
        "version": params.version,
    })
    content = request_sign_content(pairs)
    logger.debug("Sign content: %s", content)

    try:
        message = content.encode(params.charset)
    except UnicodeEncodeError:
        raise InvalidParameterError("charset", "a charset able to encode the request", params.charset) from None

    sign = b64e(sign_data(config.keys.private_key, message, config.sign_type))
    query_string = encode_query(pairs + [("sign", sign)], encoding=params.charset)

    logger.info(
        "Built %s request out_trade_no=%s sign_type=%s",
        method, biz.out_trade_no, config.sign_type.value,
    )
    return SignedRequest(
        canonical_string=content,
        sign=sign,
        query_string=query_string,
        endpoint=config.endpoint,
    )
