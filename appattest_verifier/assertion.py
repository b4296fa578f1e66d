#
# App Attest assertion verification
#
# Follows the assertion steps in:
#	https://developer.apple.com/documentation/devicecheck/validating_apps_that_connect_to_your_server
#
# Checking the challenge embedded in the client data, and that the
# returned sign counter exceeds the stored one, is up to the caller.
#

import logging

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional, Union

from cbor2 import CBORDecodeError
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed448, ed25519, padding, rsa
from cryptography.hazmat.primitives.constant_time import bytes_eq

from .authdata import AuthenticatorData
from .cbor import decode_first
from .errors import VerifyAssertionError, VerifyAssertionFailure, VerifyAssertionResult, VerifyAssertionSuccess
from .utils import sha256

logger = logging.getLogger(__name__)

MIN_AUTHENTICATOR_DATA_LENGTH = 34
SIGN_COUNT_END = 37


@dataclass
class ParsedAssertion:
    signature: bytes
    authenticator_data: AuthenticatorData

    @property
    def auth_data(self) -> bytes:
        return self.authenticator_data.raw


@dataclass
class VerifyAssertionInputs:
    client_data_hash: bytes
    public_key_pem: str
    app_id: str
    parsed_assertion: ParsedAssertion


def parse_assertion(assertion: bytes) -> Union[ParsedAssertion, str]:
    """Return a ParsedAssertion, or a short message saying what is wrong."""
    try:
        assertionStruct = decode_first(assertion)
    except (CBORDecodeError, RecursionError, ValueError) as e:
        logger.debug('assertion CBOR rejected: %s', e)
        return 'Unable to parse CBOR contents from Assertion'

    signature = assertionStruct.get('signature') if isinstance(assertionStruct, Mapping) else None
    if not isinstance(signature, bytes):
        return 'Invalid `signature` field in Assertion'

    authenticatorData = assertionStruct.get('authenticatorData')
    if not isinstance(authenticatorData, bytes):
        return 'Invalid `authenticatorData` field in Assertion'
    if len(authenticatorData) < MIN_AUTHENTICATOR_DATA_LENGTH:
        return 'authenticatorData has < %d bytes' % MIN_AUTHENTICATOR_DATA_LENGTH
    if len(authenticatorData) < SIGN_COUNT_END:
        return 'authenticatorData has no sign counter'

    return ParsedAssertion(signature, AuthenticatorData(authenticatorData))


def _verify_signature(public_key, signature: bytes, data: bytes) -> bool:
    try:
        if isinstance(public_key, ec.EllipticCurvePublicKey):
            public_key.verify(signature, data, ec.ECDSA(hashes.SHA256()))
        elif isinstance(public_key, rsa.RSAPublicKey):
            public_key.verify(signature, data, padding.PKCS1v15(), hashes.SHA256())
        else:
            public_key.verify(signature, data)
    except InvalidSignature:
        return False

    return True


## steps 1 - 3.

def verify_signature(inputs: VerifyAssertionInputs) -> Optional[VerifyAssertionError]:
    assertion = inputs.parsed_assertion

    nonce = sha256(assertion.auth_data + inputs.client_data_hash)

    pem = inputs.public_key_pem
    if isinstance(pem, str):
        pem = pem.encode()

    try:
        publicKey = serialization.load_pem_public_key(pem)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        logger.debug('public key rejected: %s', e)
        return VerifyAssertionError.FAIL_INVALID_PUBLICKEY

    if not isinstance(publicKey, (ec.EllipticCurvePublicKey, rsa.RSAPublicKey,
                                  ed25519.Ed25519PublicKey, ed448.Ed448PublicKey)):
        return VerifyAssertionError.FAIL_INVALID_PUBLICKEY

    if not _verify_signature(publicKey, assertion.signature, nonce):
        return VerifyAssertionError.FAIL_SIGNATURE_VERIFICATION

    return None


## step 4.

def verify_rp_id(inputs: VerifyAssertionInputs) -> Optional[VerifyAssertionError]:
    authenticatorData = inputs.parsed_assertion.authenticator_data

    if not bytes_eq(authenticatorData.rp_id_hash, sha256(inputs.app_id.encode())):
        return VerifyAssertionError.FAIL_RPID_MISMATCH

    return None


STEPS = (
    verify_signature,
    verify_rp_id,
)


def verify_assertion(client_data_hash: bytes, public_key_pem: str, app_id: str,
                     assertion: bytes) -> VerifyAssertionResult:
    """Verify an assertion produced by DCAppAttestService.generateAssertion.

    ``client_data_hash`` is the SHA-256 of the request exactly as the client
    serialised it, ``public_key_pem`` the key stored from the device's
    attestation.  Returns the assertion's sign counter on success.
    """
    parsed = parse_assertion(assertion)
    if isinstance(parsed, str):
        return VerifyAssertionFailure(VerifyAssertionError.FAIL_PARSING_ASSERTION, parsed)

    inputs = VerifyAssertionInputs(bytes(client_data_hash), public_key_pem, app_id, parsed)

    for step in STEPS:
        error = step(inputs)
        if error is not None:
            logger.debug('assertion for %s rejected by %s: %s', app_id, step.__name__, error.value)
            return VerifyAssertionFailure(error)

    return VerifyAssertionSuccess(parsed.authenticator_data.sign_count)
