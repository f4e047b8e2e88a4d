"""Encoding and form helpers shared by the request and notification sides."""

import base64
import re
from datetime import datetime
from typing import Dict, Union
from urllib.parse import parse_qsl

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_TIMESTAMP = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}:[0-9]{2}")


def b64e(data: bytes) -> str:
    """Standard base64 encode to str."""
    return base64.b64encode(data).decode("ascii")


def b64d(text: str) -> bytes:
    """Strict standard base64 decode; raises binascii.Error on bad input."""
    return base64.b64decode(text, validate=True)


def now_timestamp() -> str:
    """Current local time in the gateway's ``yyyy-MM-dd HH:mm:ss`` format."""
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def is_timestamp(value: str) -> bool:
    """True for a zero-padded ``yyyy-MM-dd HH:mm:ss`` naming a real instant."""
    if not _TIMESTAMP.fullmatch(value):
        return False
    try:
        datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError:
        return False
    return True


def parse_form(body: Union[str, bytes], charset: str = "utf-8") -> Dict[str, str]:
    """
    Decode an application/x-www-form-urlencoded body.

    Blank values are kept. For a repeated name the first value wins.
    """
    if isinstance(body, bytes):
        body = body.decode(charset)
    fields: Dict[str, str] = {}
    for name, value in parse_qsl(body, keep_blank_values=True, encoding=charset, errors="strict"):
        fields.setdefault(name, value)
    return fields
