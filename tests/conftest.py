import pytest

from appattest_verifier import parse_uuid, set_app_attest_root_certificate, set_nonce_extension_oid

from .testdata import KEY_ATTESTATION_CHALLENGE, read_b64, read_text


@pytest.fixture(autouse=True)
def reset_config():
    yield
    set_app_attest_root_certificate(None)
    set_nonce_extension_oid(None)


@pytest.fixture
def raw_attestation() -> bytes:
    return read_b64("attestation.b64")


@pytest.fixture
def expected_receipt() -> bytes:
    return read_b64("receipt.b64")


@pytest.fixture
def raw_assertion() -> bytes:
    return read_b64("assertion.b64")


@pytest.fixture
def public_key_pem() -> str:
    return read_text("public_key.pem")


@pytest.fixture
def webauthn_root_pem() -> str:
    """Apple's WebAuthn root: a real Apple CA that did not sign anything here."""
    return read_text("webauthn_root.pem")


@pytest.fixture
def challenge() -> bytes:
    return parse_uuid(KEY_ATTESTATION_CHALLENGE)
