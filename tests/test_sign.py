import pytest
from cryptography.hazmat.primitives import hashes

from paygate.common.errors import SignatureMismatchError, UnsupportedAlgorithmError
from paygate.common.protocol import SignType
from paygate.crypto.sign import digest_for, sign_data, verify_signature

MESSAGE = b"app_id=2014072300007148&charset=utf-8&method=alipay.trade.wap.pay"


def test_digest_selection():
    assert isinstance(digest_for("RSA"), hashes.SHA1)
    assert isinstance(digest_for("RSA2"), hashes.SHA256)
    assert isinstance(digest_for(SignType.RSA2), hashes.SHA256)


@pytest.mark.parametrize("sign_type", ["RSA", "RSA2"])
def test_sign_then_verify_with_matching_key(app_key, sign_type):
    signature = sign_data(app_key, MESSAGE, sign_type)

    assert len(signature) == 256
    verify_signature(app_key.public_key(), signature, MESSAGE, sign_type)


def test_signing_is_deterministic(app_key):
    assert sign_data(app_key, MESSAGE, "RSA2") == sign_data(app_key, MESSAGE, "RSA2")


def test_verify_rejects_other_message(app_key):
    signature = sign_data(app_key, MESSAGE, "RSA2")

    with pytest.raises(SignatureMismatchError):
        verify_signature(app_key.public_key(), signature, MESSAGE + b" ", "RSA2")


def test_verify_rejects_other_digest(app_key):
    signature = sign_data(app_key, MESSAGE, "RSA")

    with pytest.raises(SignatureMismatchError):
        verify_signature(app_key.public_key(), signature, MESSAGE, "RSA2")


def test_verify_rejects_other_key(app_key, gateway_key):
    signature = sign_data(app_key, MESSAGE, "RSA2")

    with pytest.raises(SignatureMismatchError):
        verify_signature(gateway_key.public_key(), signature, MESSAGE, "RSA2")


@pytest.mark.parametrize("sign_type", ["RSA3", "rsa2", "", None])
def test_unsupported_sign_type(app_key, sign_type):
    with pytest.raises(UnsupportedAlgorithmError):
        sign_data(app_key, MESSAGE, sign_type)
    with pytest.raises(UnsupportedAlgorithmError):
        verify_signature(app_key.public_key(), b"\x00" * 256, MESSAGE, sign_type)
