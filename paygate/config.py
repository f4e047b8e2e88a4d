"""
Gateway configuration and key material.

Configuration is an explicit, immutable struct built once at startup.
Key material is parsed up front so that signing and verification only
ever see parsed key objects and precomputed certificate SNs.
"""

from __future__ import annotations

import logging
from typing import Union

from cryptography.hazmat.primitives.asymmetric import rsa
from pydantic import BaseModel, ConfigDict, Field, field_validator

from paygate.common.protocol import API_URL, WAP_PAY_METHOD, KeyFormat, SignType
from paygate.crypto import pki

logger = logging.getLogger(__name__)


class KeyMaterial(BaseModel):
    """
    Parsed keys and certificate SNs.

    Read-only after construction; safe for concurrent use.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    public_key: rsa.RSAPublicKey = Field(
        ...,
        description="Gateway public key used to verify notifications",
    )

    private_key: rsa.RSAPrivateKey = Field(
        ...,
        description="Application private key used to sign requests",
    )

    private_key_format: KeyFormat = Field(
        KeyFormat.PKCS1,
        description="Encoding the private key was supplied in",
    )

    root_cert_sn: str = Field(
        ...,
        description="SN of the gateway root certificate chain, joined with '_'",
    )

    app_cert_sn: str = Field(
        ...,
        description="SN of the application public key certificate",
    )

    @classmethod
    def from_pem(
        cls,
        *,
        root_cert: Union[str, bytes],
        app_cert: Union[str, bytes],
        gateway_cert: Union[str, bytes],
        private_key: Union[str, bytes],
    ) -> "KeyMaterial":
        """
        Build key material from in-memory PEM data.

        ``gateway_cert`` may be the gateway's public key certificate or a
        bare public key. ``private_key`` may be PEM or a bare base64 string.
        """
        signing_key, key_format = pki.load_private_key(private_key)
        material = cls(
            public_key=pki.load_public_key(gateway_cert),
            private_key=signing_key,
            private_key_format=key_format,
            root_cert_sn=pki.resolve_root_cert_sn(root_cert),
            app_cert_sn=pki.resolve_app_cert_sn(app_cert),
        )
        logger.info(
            "Key material loaded (private key %s, root cert SN count %d)",
            key_format.value,
            len(material.root_cert_sn.split(pki.SN_SEPARATOR)),
        )
        return material


class GatewayConfig(BaseModel):
    """
    Application configuration for one gateway account.

    Shared read-only by request building and notification verification.
    """

    model_config = ConfigDict(frozen=True)

    app_id: str = Field(
        ...,
        description="Application ID assigned by the gateway",
    )

    sign_type: SignType = Field(
        SignType.RSA2,
        description="Signature algorithm for both signing and verifying",
    )

    charset: str = Field(
        "utf-8",
        description="Request charset",
    )

    keys: KeyMaterial

    endpoint: str = Field(
        API_URL,
        description="Gateway endpoint the signed query string is appended to",
    )

    method: str = Field(
        WAP_PAY_METHOD,
        description="Default API method name for built requests",
    )

    @field_validator("app_id")
    @classmethod
    def app_id_required(cls, v: str) -> str:
        if not v:
            raise ValueError("app_id must not be empty")
        return v

    @property
    def root_cert_sn(self) -> str:
        return self.keys.root_cert_sn

    @property
    def app_cert_sn(self) -> str:
        return self.keys.app_cert_sn
