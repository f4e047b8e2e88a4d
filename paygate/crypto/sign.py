"""RSA signing and verification for gateway requests and notifications."""

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from paygate.common.errors import SignatureMismatchError, UnsupportedAlgorithmError
from paygate.common.protocol import SignType


def digest_for(sign_type):
    """
    Map a sign type tag to its digest.
    RSA -> SHA-1, RSA2 -> SHA-256; anything else is rejected.
    """
    try:
        sign_type = SignType(sign_type)
    except ValueError:
        raise UnsupportedAlgorithmError(sign_type) from None
    if sign_type is SignType.RSA:
        return hashes.SHA1()
    return hashes.SHA256()


def sign_data(private_key, data, sign_type):
    """
    Sign data using RSA private key with PKCS1v15.
    Returns: signature bytes
    """
    signature = private_key.sign(
        data,
        padding.PKCS1v15(),
        digest_for(sign_type)
    )
    return signature


def verify_signature(public_key, signature, data, sign_type):
    """
    Verify RSA PKCS1v15 signature using public key.
    Raises SignatureMismatchError if it does not match.
    """
    algorithm = digest_for(sign_type)
    try:
        public_key.verify(
            signature,
            data,
            padding.PKCS1v15(),
            algorithm
        )
    except InvalidSignature:
        raise SignatureMismatchError(
            "signature does not match sign content",
            {"sign_type": SignType(sign_type).value},
        ) from None
