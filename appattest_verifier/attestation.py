#
# App Attest attestation verification
#
# Follows the steps in:
#	https://developer.apple.com/documentation/devicecheck/validating_apps_that_connect_to_your_server
#
# Receipt redemption, challenge bookkeeping and persistence of the
# resulting key are left to the caller.
#

import datetime
import logging

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional, Union

from cbor2 import CBORDecodeError
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.constant_time import bytes_eq
from pyasn1.codec.der import decoder
from pyasn1.error import PyAsn1Error

from . import config
from .authdata import AuthenticatorData, CREDENTIAL_ID_LENGTH, expected_aaguid
from .cbor import decode_first
from .certificate import Certificate, noncePayload
from .errors import VerifyAttestationError, VerifyAttestationFailure, VerifyAttestationResult, VerifyAttestationSuccess
from .utils import b64encode, sha256

logger = logging.getLogger(__name__)

ATTESTATION_FORMAT = 'apple-appattest'
MIN_AUTH_DATA_LENGTH = 88


@dataclass(frozen=True)
class AppInfo:
    """The app an attestation was made for.

    ``app_id`` is ``<10-character team id>.<bundle id>``; ``development_env``
    selects which aaguid the device is expected to report.
    """
    app_id: str
    development_env: bool = False

    @classmethod
    def from_parts(cls, team_id: str, bundle_id: str, development_env: bool = False) -> 'AppInfo':
        return cls(team_id + '.' + bundle_id, development_env)


@dataclass
class ParsedAttestation:
    cred_cert: Certificate
    intermediate_cert: Certificate
    receipt: bytes
    authenticator_data: AuthenticatorData

    @property
    def auth_data(self) -> bytes:
        return self.authenticator_data.raw


@dataclass
class VerificationInputs:
    app_info: AppInfo
    key_id: str
    challenge: bytes
    parsed_attestation: ParsedAttestation
    as_of: Optional[datetime.datetime] = None


def parse_attestation(attestation: bytes) -> Union[ParsedAttestation, str]:
    """Return a ParsedAttestation, or a short message saying what is wrong."""
    try:
        attestationStruct = decode_first(attestation)
    except (CBORDecodeError, RecursionError, ValueError) as e:
        logger.debug('attestation CBOR rejected: %s', e)
        return 'Unable to parse CBOR contents from Attestation'

    if not isinstance(attestationStruct, Mapping) or attestationStruct.get('fmt') != ATTESTATION_FORMAT:
        return 'Invalid `fmt` in Attestation'

    attStmt = attestationStruct.get('attStmt')
    if not isinstance(attStmt, Mapping):
        return 'Invalid `attStmt` in Attestation'

    authData = attestationStruct.get('authData')
    if not isinstance(authData, bytes):
        return 'Invalid `authData` in Attestation'
    if len(authData) < MIN_AUTH_DATA_LENGTH:
        return 'authData has < %d bytes' % MIN_AUTH_DATA_LENGTH

    certs = attStmt.get('x5c')
    if not isinstance(certs, (list, tuple)) or len(certs) < 2 or \
       not isinstance(certs[0], bytes) or not isinstance(certs[1], bytes):
        return 'Invalid `x5c` field in Attestation'

    receipt = attStmt.get('receipt')
    if not isinstance(receipt, bytes):
        return 'Invalid `receipt` field in Attestation'

    try:
        credCert = Certificate.from_der(certs[0])
        intermediateCert = Certificate.from_der(certs[1])
    except ValueError as e:
        logger.debug('attestation certificates rejected: %s', e)
        return 'Unable to parse X509 certificates from Attestation'

    return ParsedAttestation(credCert, intermediateCert, receipt, AuthenticatorData(authData))


## step 1.

def check_certificates(inputs: VerificationInputs) -> Optional[VerifyAttestationError]:
    """Check cred cert <- intermediate cert <- pinned root, signatures only
    unless inputs.as_of asks for the validity windows too."""
    attestation = inputs.parsed_attestation
    rootCert = config.get_app_attest_root_certificate()

    if not attestation.cred_cert.verify(attestation.intermediate_cert):
        return VerifyAttestationError.FAIL_CREDCERT_VERIFY_FAILURE
    if inputs.as_of is not None and not attestation.cred_cert.valid_at(inputs.as_of):
        return VerifyAttestationError.FAIL_CREDCERT_VERIFY_FAILURE

    if not attestation.intermediate_cert.verify(rootCert):
        return VerifyAttestationError.FAIL_INTERMEDIATECERT_VERIFY_FAILURE
    if inputs.as_of is not None and not attestation.intermediate_cert.valid_at(inputs.as_of):
        return VerifyAttestationError.FAIL_INTERMEDIATECERT_VERIFY_FAILURE

    return None


## steps 2 - 4.

def check_nonce(inputs: VerificationInputs) -> Optional[VerifyAttestationError]:
    attestation = inputs.parsed_attestation

    clientDataHash = sha256(inputs.challenge)
    recomputedNonce = sha256(attestation.auth_data + clientDataHash)

    extensionValue = attestation.cred_cert.get_extension(config.get_nonce_extension_oid())
    if extensionValue is None:
        return VerifyAttestationError.FAIL_NONCE_MISSING

    try:
        payload, rest = decoder.decode(extensionValue, asn1Spec = noncePayload())
        nonce = payload['nonce'].asOctets()
    except PyAsn1Error as e:
        logger.debug('nonce extension undecodable: %s', e)
        return VerifyAttestationError.FAIL_NONCE_MISMATCH

    if rest or not bytes_eq(nonce, recomputedNonce):
        return VerifyAttestationError.FAIL_NONCE_MISMATCH

    return None


## step 5.

def check_key_id(inputs: VerificationInputs) -> Optional[VerifyAttestationError]:
    try:
        point = inputs.parsed_attestation.cred_cert.public_key_point()
    except (TypeError, ValueError, UnsupportedAlgorithm) as e:
        logger.debug('credential key cannot be hashed: %s', e)
        return VerifyAttestationError.FAIL_KEYID_MISMATCH

    pk_sha = b64encode(sha256(point))

    if not bytes_eq(pk_sha.encode(), inputs.key_id.encode()):
        return VerifyAttestationError.FAIL_KEYID_MISMATCH

    return None


## step 6.

def check_rp_id(inputs: VerificationInputs) -> Optional[VerifyAttestationError]:
    authenticatorData = inputs.parsed_attestation.authenticator_data

    if not bytes_eq(authenticatorData.rp_id_hash, sha256(inputs.app_info.app_id.encode())):
        return VerifyAttestationError.FAIL_RPID_MISMATCH

    return None


## step 7.

def check_sign_count(inputs: VerificationInputs) -> Optional[VerifyAttestationError]:
    authenticatorData = inputs.parsed_attestation.authenticator_data

    if authenticatorData.sign_count != 0:
        return VerifyAttestationError.FAIL_SIGNCOUNT_NONZERO

    return None


## step 8.

def check_aaguid(inputs: VerificationInputs) -> Optional[VerifyAttestationError]:
    authenticatorData = inputs.parsed_attestation.authenticator_data

    if authenticatorData.aaguid != expected_aaguid(inputs.app_info.development_env):
        return VerifyAttestationError.FAIL_AAGUID_MISMATCH

    return None


## step 9.

def check_credential_id(inputs: VerificationInputs) -> Optional[VerifyAttestationError]:
    authenticatorData = inputs.parsed_attestation.authenticator_data

    if authenticatorData.credential_id_length != CREDENTIAL_ID_LENGTH:
        return VerifyAttestationError.FAIL_CREDID_LEN_INVALID

    if not bytes_eq(b64encode(authenticatorData.credential_id).encode(), inputs.key_id.encode()):
        return VerifyAttestationError.FAIL_CREDID_MISMATCH

    return None


STEPS = (
    check_certificates,
    check_nonce,
    check_key_id,
    check_rp_id,
    check_sign_count,
    check_aaguid,
    check_credential_id,
)


def verify_attestation(app_info: AppInfo, key_id: str, challenge: bytes, attestation: bytes,
                       as_of: Optional[datetime.datetime] = None) -> VerifyAttestationResult:
    """Verify an attestation object produced by DCAppAttestService.attestKey.

    ``key_id`` is the base64 key identifier reported by the device,
    ``challenge`` the one-time server challenge the device hashed, and
    ``attestation`` the raw CBOR attestation object.  On success, persist the
    returned public key PEM and receipt against the device.

    Certificate validity dates are only checked when ``as_of`` is given.
    """
    parsed = parse_attestation(attestation)
    if isinstance(parsed, str):
        return VerifyAttestationFailure(VerifyAttestationError.FAIL_PARSING_ATTESTATION, parsed)

    inputs = VerificationInputs(app_info, key_id, bytes(challenge), parsed, as_of)

    for step in STEPS:
        error = step(inputs)
        if error is not None:
            logger.debug('attestation for %s rejected by %s: %s', app_info.app_id, step.__name__, error.value)
            return VerifyAttestationFailure(error)

    return VerifyAttestationSuccess(parsed.cred_cert.public_key_pem(), parsed.receipt)
