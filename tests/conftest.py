import pytest

from paygate.config import GatewayConfig, KeyMaterial
from paygate.common.protocol import SignType

from tests.fixtures.cert_factory import (
    bundle,
    cert_pem,
    certificate,
    ec_key,
    private_key_pem,
    rsa_key,
)

APP_ID = "2014072300007148"


@pytest.fixture(scope="session")
def app_key():
    return rsa_key()


@pytest.fixture(scope="session")
def gateway_key():
    return rsa_key()


@pytest.fixture(scope="session")
def root_rsa_cert():
    return certificate(rsa_key(), "Example Root CA", 1001)


@pytest.fixture(scope="session")
def root_ec_cert():
    return certificate(ec_key(), "Example Root CA EC", 2002)


@pytest.fixture(scope="session")
def app_cert(app_key):
    return certificate(app_key, APP_ID, 3003, organization="Example Merchant")


@pytest.fixture(scope="session")
def gateway_cert(gateway_key):
    return certificate(gateway_key, "Example Gateway Public Key", 4004)


@pytest.fixture(scope="session")
def key_material(app_key, app_cert, gateway_cert, root_ec_cert, root_rsa_cert):
    return KeyMaterial.from_pem(
        root_cert=bundle([root_ec_cert, root_rsa_cert]),
        app_cert=cert_pem(app_cert),
        gateway_cert=cert_pem(gateway_cert),
        private_key=private_key_pem(app_key),
    )


@pytest.fixture(scope="session")
def config(key_material):
    return GatewayConfig(app_id=APP_ID, sign_type=SignType.RSA2, keys=key_material)


@pytest.fixture(scope="session")
def config_rsa(config):
    return config.model_copy(update={"sign_type": SignType.RSA})
