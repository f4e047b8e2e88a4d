import random
from urllib.parse import parse_qsl

import pytest

from paygate.common.canonical import (
    encode_query,
    notification_sign_content,
    request_pairs,
    request_sign_content,
)
from paygate.common.errors import InvalidParameterError

from tests.fixtures.cert_factory import notification_fields


def _request_values(**overrides):
    values = {
        "alipay_root_cert_sn": "root",
        "app_cert_sn": "app",
        "app_id": "2014072300007148",
        "biz_content": '{"out_trade_no":"T001"}',
        "charset": "utf-8",
        "format": "",
        "method": "alipay.trade.wap.pay",
        "notify_url": "",
        "return_url": "",
        "sign_type": "RSA2",
        "timestamp": "2024-01-01 00:00:00",
        "version": "1.0",
    }
    values.update(overrides)
    return values


def test_request_content_uses_protocol_order_and_omits_empty_optionals():
    content = request_sign_content(request_pairs(_request_values()))

    assert content == (
        "alipay_root_cert_sn=root&app_cert_sn=app&app_id=2014072300007148"
        '&biz_content={"out_trade_no":"T001"}&charset=utf-8'
        "&method=alipay.trade.wap.pay&sign_type=RSA2"
        "&timestamp=2024-01-01 00:00:00&version=1.0"
    )


def test_request_content_keeps_optionals_in_place_without_escaping():
    values = _request_values(
        format="JSON",
        notify_url="https://shop.example.com/notify?a=1&b=2",
        return_url="https://shop.example.com/return",
    )
    names = [name for name, _ in request_pairs(values)]

    assert names == [
        "alipay_root_cert_sn", "app_cert_sn", "app_id", "biz_content", "charset",
        "format", "method", "notify_url", "return_url", "sign_type", "timestamp", "version",
    ]
    content = request_sign_content(request_pairs(values))
    assert "&notify_url=https://shop.example.com/notify?a=1&b=2&return_url=" in content
    assert not content.endswith("&")


def test_notification_content_excludes_sign_fields_and_sorts():
    fields = {"b": "2", "sign": "xxx", "a": "1", "sign_type": "RSA2", "c": ""}

    assert notification_sign_content(fields) == "a=1&b=2&c="


def test_notification_content_is_order_independent():
    fields = notification_fields()
    items = list(fields.items())
    random.Random(7).shuffle(items)

    assert notification_sign_content(dict(items)) == notification_sign_content(fields)


def test_notification_content_does_not_mutate_input():
    fields = dict(notification_fields(), sign="abc")
    before = dict(fields)

    notification_sign_content(fields)

    assert fields == before


def test_notification_content_keeps_values_decoded():
    content = notification_sign_content({"subject": "a b&c", "passback_params": "x%3D1"})

    assert content == "passback_params=x%3D1&subject=a b&c"


def test_encode_query_escapes_every_value_and_sorts_keys():
    query = encode_query([("timestamp", "2024-01-01 00:00:00"), ("app_id", "1"), ("sign", "a+b/c=")])

    assert query == "app_id=1&sign=a%2Bb%2Fc%3D&timestamp=2024-01-01+00%3A00%3A00"
    assert dict(parse_qsl(query))["sign"] == "a+b/c="


def test_missing_required_request_field_is_named():
    values = _request_values()
    del values["app_id"]

    with pytest.raises(InvalidParameterError) as exc_info:
        request_pairs(values)

    assert exc_info.value.field == "app_id"
