import datetime

import cbor2
import pytest

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from appattest_verifier import get_app_attest_root_certificate
from appattest_verifier.certificate import Certificate

NONCE_OID = "1.2.840.113635.100.8.2"


@pytest.fixture
def chain(raw_attestation):
    x5c = cbor2.loads(raw_attestation)["attStmt"]["x5c"]
    return Certificate.from_der(x5c[0]), Certificate.from_der(x5c[1])


def test_from_der_rejects_garbage():
    with pytest.raises(ValueError):
        Certificate.from_der(b"hello world")


def test_from_pem_accepts_str_and_bytes(webauthn_root_pem):
    assert Certificate.from_pem(webauthn_root_pem).cert == Certificate.from_pem(webauthn_root_pem.encode()).cert


def test_public_key_pem_and_raw_agree(chain, public_key_pem):
    cred_cert, _ = chain

    assert cred_cert.public_key_pem() == public_key_pem
    assert serialization.load_pem_public_key(public_key_pem.encode()).public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo) == cred_cert.public_key_raw()


def test_public_key_point_is_uncompressed(chain):
    cred_cert, _ = chain
    point = cred_cert.public_key_point()

    assert len(point) == 65
    assert point[0] == 0x04
    assert cred_cert.public_key_raw().endswith(point)


def test_get_extension_returns_nonce_payload(chain):
    cred_cert, _ = chain

    value = cred_cert.get_extension(NONCE_OID)

    # SEQUENCE { [1] { OCTET STRING (32) } }
    assert value[:6] == bytes.fromhex("3024a1220420")
    assert len(value) == 38
    assert cred_cert.get_extension(x509.ObjectIdentifier(NONCE_OID)) == value


def test_get_extension_missing(chain):
    cred_cert, _ = chain

    assert cred_cert.get_extension("1.2.3.4.5") is None


def test_verify_against_issuer(chain):
    cred_cert, intermediate_cert = chain
    root = get_app_attest_root_certificate()

    assert cred_cert.verify(intermediate_cert.public_key)
    assert intermediate_cert.verify(root.public_key)
    assert root.verify(root.public_key)


def test_verify_against_wrong_issuer(chain, webauthn_root_pem):
    cred_cert, intermediate_cert = chain
    other = Certificate.from_pem(webauthn_root_pem)

    assert not cred_cert.verify(other.public_key)
    assert not intermediate_cert.verify(other.public_key)
    assert not intermediate_cert.verify(cred_cert.public_key)


def test_valid_at(chain):
    cred_cert, _ = chain

    assert cred_cert.valid_at(datetime.datetime(2024, 6, 1))
    assert not cred_cert.valid_at(datetime.datetime(2025, 6, 1, tzinfo=datetime.timezone.utc))


def test_verify_accepts_issuer_certificate(chain):
    cred_cert, intermediate_cert = chain

    assert cred_cert.verify(intermediate_cert)
    assert intermediate_cert.verify(get_app_attest_root_certificate())


def test_verify_with_malformed_issuer_key_is_false(chain, raw_attestation):
    cred_cert, _ = chain
    intermediate_der = cbor2.loads(raw_attestation)["attStmt"]["x5c"][1]
    broken = Certificate.from_der(intermediate_der.replace(b"\x03\x62\x00\x04", b"\x03\x62\x00\x05", 1))

    with pytest.raises(ValueError):
        broken.public_key
    assert not cred_cert.verify(broken)


def test_cert_exposes_underlying_certificate(chain):
    cred_cert, _ = chain

    assert isinstance(cred_cert.cert, x509.Certificate)
    assert cred_cert.get_extension(NONCE_OID) == cred_cert.get_extension(x509.ObjectIdentifier(NONCE_OID))
