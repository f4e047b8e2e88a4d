"""Pydantic models: biz_content payload, public request params, signed request, notification."""

import json
import re
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, List, Optional
from urllib.parse import quote_plus, unquote_plus

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)

from paygate.common.utils import now_timestamp

API_URL = "https://openapi.alipay.com/gateway.do"
WAP_PAY_METHOD = "alipay.trade.wap.pay"
WAP_PRODUCT_CODE = "QUICK_WAP_WAY"

CENT = Decimal("0.01")

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class SignType(str, Enum):
    """Signature algorithm tag: RSA is SHA1withRSA, RSA2 is SHA256withRSA."""
    RSA = "RSA"
    RSA2 = "RSA2"


class KeyFormat(str, Enum):
    """Encoding the application private key was supplied in."""
    PKCS1 = "PKCS1"
    PKCS8 = "PKCS8"


def _flag(value: Optional[bool]) -> Optional[str]:
    if value is None:
        return None
    return "T" if value else "F"


class ExtendParams(BaseModel):
    """Business extension parameters."""
    hb_fq_num: Optional[str] = None
    hb_fq_seller_percent: Optional[str] = None
    need_buyer_realnamed: Optional[bool] = None
    sys_service_provider_id: Optional[str] = None
    trans_memo: Optional[str] = None

    @field_serializer("need_buyer_realnamed")
    def serialize_flag(self, value: Optional[bool]) -> Optional[str]:
        return _flag(value)


class ExtUserInfo(BaseModel):
    """Buyer the payment is restricted to."""
    cert_no: Optional[str] = None
    cert_type: Optional[str] = None
    min_age: Optional[str] = None
    mobile: Optional[str] = None
    name: Optional[str] = None
    need_check_info: Optional[bool] = None
    fix_buyer: Optional[bool] = None

    @field_serializer("need_check_info", "fix_buyer")
    def serialize_flag(self, value: Optional[bool]) -> Optional[str]:
        return _flag(value)


class BizContent(BaseModel):
    """
    Business payload of a WAP pay request, embedded as ``biz_content``.

    Field order is the JSON key order on the wire. Unset optional fields
    are left out of the JSON.
    """
    auth_token: Optional[str] = None
    body: Optional[str] = None
    business_params: Optional[str] = None
    disable_pay_channels: Optional[str] = None
    enable_pay_channels: Optional[str] = None
    extend_params: Optional[ExtendParams] = None
    ext_user_info: Optional[ExtUserInfo] = None
    goods_type: Optional[str] = None
    merchant_order_no: Optional[str] = None
    out_trade_no: str = ""
    passback_params: Optional[str] = None
    product_code: str = WAP_PRODUCT_CODE
    promo_params: Optional[str] = None
    quit_url: Optional[str] = None
    specified_channel: Optional[str] = None
    store_id: Optional[str] = None
    subject: str = ""
    time_expire: Optional[str] = None
    timeout_express: Optional[str] = None
    total_amount: Decimal = Decimal("0")

    @field_serializer("passback_params")
    def escape_passback(self, value: Optional[str]) -> Optional[str]:
        # returned verbatim by the gateway, so it travels url-escaped
        if value is None:
            return None
        return quote_plus(value)

    @field_serializer("total_amount")
    def serialize_amount(self, value: Decimal) -> str:
        return str(value.quantize(CENT, rounding=ROUND_HALF_UP))

    def to_json(self) -> str:
        """Compact JSON for the ``biz_content`` parameter."""
        return self.model_dump_json(exclude_none=True)


class PublicParams(BaseModel):
    """Public request parameters shared by every gateway call."""
    app_id: str
    method: str = WAP_PAY_METHOD
    format: str = ""
    return_url: str = ""
    notify_url: str = ""
    charset: str = "utf-8"
    sign_type: str = SignType.RSA2.value
    timestamp: str = Field(default_factory=now_timestamp)
    version: str = "1.0"


class SignedRequest(BaseModel):
    """Outbound artifact of one build; the caller transmits it."""
    model_config = ConfigDict(frozen=True)

    canonical_string: str
    sign: str
    query_string: str
    endpoint: str = API_URL

    @property
    def url(self) -> str:
        return f"{self.endpoint}?{self.query_string}"


def _blank_to_none(value):
    if isinstance(value, str) and value == "":
        return None
    return value


def _json_list(value):
    if isinstance(value, str):
        if value == "":
            return []
        return json.loads(value, parse_float=Decimal)
    return value


# Empty form values mean "absent", not zero.
Amount = Annotated[Optional[Decimal], BeforeValidator(_blank_to_none)]


class FundBill(BaseModel):
    """Amount paid through one fund channel."""
    fund_channel: str = Field("", validation_alias=AliasChoices("fund_channel", "fundChannel"))
    amount: Amount = None
    real_amount: Amount = Field(None, validation_alias=AliasChoices("real_amount", "realAmount"))


class VoucherDetail(BaseModel):
    """Voucher or discount applied to the trade."""
    voucher_id: str = Field("", validation_alias=AliasChoices("voucher_id", "voucherId"))
    name: str = ""
    type: str = ""
    amount: Amount = None
    merchant_contribute: Amount = Field(
        None, validation_alias=AliasChoices("merchant_contribute", "merchantContribute")
    )
    other_contribute: Amount = Field(
        None, validation_alias=AliasChoices("other_contribute", "otherContribute")
    )
    memo: Optional[str] = None


class NotificationResult(BaseModel):
    """
    Typed asynchronous payment notification.

    Only handed to callers after the signature has been verified.
    """
    model_config = ConfigDict(frozen=True)

    notify_time: str = ""
    notify_type: str = ""
    notify_id: str = ""
    app_id: str = ""
    charset: str = ""
    version: str = ""
    sign_type: str = ""
    sign: str = ""
    trade_no: str = ""
    out_trade_no: str = ""
    out_biz_no: str = ""
    buyer_id: str = ""
    buyer_logon_id: str = ""
    seller_id: str = ""
    seller_email: str = ""
    trade_status: str = ""
    total_amount: Amount = None
    receipt_amount: Amount = None
    invoice_amount: Amount = None
    buyer_pay_amount: Amount = None
    point_amount: Amount = None
    refund_fee: Amount = None
    subject: str = ""
    body: str = ""
    gmt_create: str = ""
    gmt_payment: str = ""
    gmt_refund: str = ""
    gmt_close: str = ""
    fund_bill_list: Annotated[List[FundBill], BeforeValidator(_json_list)] = Field(default_factory=list)
    passback_params: str = ""
    voucher_detail_list: Annotated[List[VoucherDetail], BeforeValidator(_json_list)] = Field(
        default_factory=list
    )

    @field_validator("passback_params", mode="before")
    @classmethod
    def unescape_passback(cls, value):
        if isinstance(value, str):
            if _BAD_ESCAPE.search(value):
                raise ValueError("invalid URL escape")
            return unquote_plus(value)
        return value
