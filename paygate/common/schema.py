"""
Business payload schemas.

The signing core only requires that ``biz_content`` serializes to JSON.
Field rules differ per API method and live here, behind PayloadSchema.
Checks are fail-fast: the first violation is raised.
"""

import json
import re
from decimal import Decimal
from typing import Optional, Protocol

from paygate.common.errors import InvalidParameterError
from paygate.common.protocol import WAP_PRODUCT_CODE, BizContent, ExtendParams, ExtUserInfo
from paygate.common.utils import is_timestamp

MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT = Decimal("100000000")

_DURATION = re.compile(r"(?:[1-9][0-9]*[mhd]|1c)")


class PayloadSchema(Protocol):
    def validate(self, biz: BizContent) -> None:
        ...


def _max_len(field: str, value: Optional[str], limit: int) -> None:
    if value is not None and len(value) > limit:
        raise InvalidParameterError(field, f"at most {limit} characters", len(value))


def _required(field: str, value: str, limit: int) -> None:
    if not value:
        raise InvalidParameterError(field, "a non-empty value")
    _max_len(field, value, limit)


def _one_of(field: str, value: Optional[str], allowed) -> None:
    if value is not None and value not in allowed:
        raise InvalidParameterError(field, "one of " + "|".join(allowed), value)


class NoopSchema:
    """Accept any payload; for methods without local rules."""

    def validate(self, biz: BizContent) -> None:
        return None


class WapPaySchema:
    """Field rules for ``alipay.trade.wap.pay``."""

    prefix = "biz_content"

    def _name(self, *path: str) -> str:
        return ".".join((self.prefix,) + path)

    def validate(self, biz: BizContent) -> None:
        n = self._name
        _max_len(n("body"), biz.body, 128)
        _required(n("subject"), biz.subject, 256)
        _required(n("out_trade_no"), biz.out_trade_no, 64)
        _max_len(n("merchant_order_no"), biz.merchant_order_no, 32)

        if biz.timeout_express is not None and not _DURATION.fullmatch(biz.timeout_express):
            raise InvalidParameterError(
                n("timeout_express"), "<n>m, <n>h, <n>d or 1c", biz.timeout_express
            )
        if biz.time_expire is not None and not is_timestamp(biz.time_expire):
            raise InvalidParameterError(n("time_expire"), "yyyy-MM-dd HH:mm:ss", biz.time_expire)

        if not MIN_AMOUNT <= biz.total_amount <= MAX_AMOUNT:
            raise InvalidParameterError(
                n("total_amount"), f"{MIN_AMOUNT}-{MAX_AMOUNT}", str(biz.total_amount)
            )
        if biz.product_code != WAP_PRODUCT_CODE:
            raise InvalidParameterError(n("product_code"), WAP_PRODUCT_CODE, biz.product_code)
        _one_of(n("goods_type"), biz.goods_type, ("0", "1"))

        # passback_params and promo_params are independent fields
        _max_len(n("passback_params"), biz.passback_params, 512)
        if biz.promo_params:
            _max_len(n("promo_params"), biz.promo_params, 512)
            try:
                json.loads(biz.promo_params)
            except ValueError:
                raise InvalidParameterError(n("promo_params"), "valid JSON") from None

        if biz.enable_pay_channels and biz.disable_pay_channels:
            raise InvalidParameterError(
                n("enable_pay_channels"), "not combined with disable_pay_channels"
            )
        _max_len(n("enable_pay_channels"), biz.enable_pay_channels, 128)
        _max_len(n("disable_pay_channels"), biz.disable_pay_channels, 128)
        _max_len(n("quit_url"), biz.quit_url, 400)

        if biz.extend_params is not None:
            self._validate_extend_params(biz.extend_params)
        if biz.ext_user_info is not None:
            self._validate_ext_user_info(biz.ext_user_info)

    def _validate_extend_params(self, ext: ExtendParams) -> None:
        n = self._name
        _max_len(n("extend_params", "sys_service_provider_id"), ext.sys_service_provider_id, 64)
        _max_len(n("extend_params", "trans_memo"), ext.trans_memo, 128)
        _one_of(n("extend_params", "hb_fq_num"), ext.hb_fq_num, ("3", "6", "12"))
        _one_of(n("extend_params", "hb_fq_seller_percent"), ext.hb_fq_seller_percent, ("0", "100"))

    def _validate_ext_user_info(self, info: ExtUserInfo) -> None:
        n = self._name
        # identity fields only take effect when need_check_info is set
        if info.need_check_info:
            _max_len(n("ext_user_info", "name"), info.name, 16)
            _max_len(n("ext_user_info", "cert_type"), info.cert_type, 32)
            _max_len(n("ext_user_info", "cert_no"), info.cert_no, 64)
            if info.min_age is not None and not re.fullmatch(r"[0-9]+", info.min_age):
                raise InvalidParameterError(
                    n("ext_user_info", "min_age"), "a non-negative integer", info.min_age
                )


WAP_PAY_SCHEMA = WapPaySchema()
