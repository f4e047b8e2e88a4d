"""
Canonical sign content.

Outbound requests are signed over a fixed field order with unescaped
values. Inbound notifications are verified over all received fields except
``sign`` and ``sign_type``, rendered ``name=value`` and sorted. Escaping is
applied only to the transmitted query string.
"""

from typing import Iterable, List, Mapping, Sequence, Tuple
from urllib.parse import urlencode

from paygate.common.errors import InvalidParameterError

ROOT_CERT_SN = "alipay_root_cert_sn"

REQUEST_FIELD_ORDER: Tuple[str, ...] = (
    ROOT_CERT_SN,
    "app_cert_sn",
    "app_id",
    "biz_content",
    "charset",
    "format",
    "method",
    "notify_url",
    "return_url",
    "sign_type",
    "timestamp",
    "version",
)

OPTIONAL_REQUEST_FIELDS = frozenset({"format", "notify_url", "return_url"})

EXCLUDED_NOTIFY_FIELDS = frozenset({"sign", "sign_type"})


def request_pairs(values: Mapping[str, str]) -> List[Tuple[str, str]]:
    """
    Order request fields by protocol position.

    Optional fields with an empty value are dropped; every other field in
    REQUEST_FIELD_ORDER must be present or InvalidParameterError is raised.
    """
    pairs = []
    for name in REQUEST_FIELD_ORDER:
        value = values.get(name, "")
        if name in OPTIONAL_REQUEST_FIELDS and value == "":
            continue
        if name not in values:
            raise InvalidParameterError(name, "a value for a required request field")
        pairs.append((name, value))
    return pairs


def request_sign_content(pairs: Sequence[Tuple[str, str]]) -> str:
    """Join pairs from request_pairs as ``name=value`` with ``&``."""
    return "&".join(f"{name}={value}" for name, value in pairs)


def notification_sign_content(fields: Mapping[str, str]) -> str:
    """
    Rebuild the string the gateway signed for a notification.

    ``fields`` holds decoded form values. The mapping is not modified.
    """
    remaining = {name: value for name, value in fields.items() if name not in EXCLUDED_NOTIFY_FIELDS}
    return "&".join(sorted(f"{name}={value}" for name, value in remaining.items()))


def encode_query(pairs: Iterable[Tuple[str, str]], encoding: str = "utf-8") -> str:
    """Form-encode every field, keys sorted, for transmission."""
    return urlencode(sorted(pairs, key=lambda pair: pair[0]), encoding=encoding)
