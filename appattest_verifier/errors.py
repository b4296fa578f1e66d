#
# Verification outcomes
#
# Failures are values, not exceptions.  Only parse failures carry a
# message; every other failure is a bare tag.
#

import enum

from dataclasses import dataclass
from typing import Optional, Union


class VerifyAttestationError(str, enum.Enum):
    FAIL_PARSING_ATTESTATION = 'fail_parsing_attestation'
    FAIL_CREDCERT_VERIFY_FAILURE = 'fail_credCert_verify_failure'
    FAIL_INTERMEDIATECERT_VERIFY_FAILURE = 'fail_intermediateCert_verify_failure'
    FAIL_NONCE_MISSING = 'fail_nonce_missing'
    FAIL_NONCE_MISMATCH = 'fail_nonce_mismatch'
    FAIL_KEYID_MISMATCH = 'fail_keyId_mismatch'
    FAIL_RPID_MISMATCH = 'fail_rpId_mismatch'
    FAIL_SIGNCOUNT_NONZERO = 'fail_signCount_nonZero'
    FAIL_AAGUID_MISMATCH = 'fail_aaguid_mismatch'
    FAIL_CREDID_LEN_INVALID = 'fail_credId_len_invalid'
    FAIL_CREDID_MISMATCH = 'fail_credId_mismatch'


class VerifyAssertionError(str, enum.Enum):
    FAIL_PARSING_ASSERTION = 'fail_parsing_assertion'
    FAIL_INVALID_PUBLICKEY = 'fail_invalid_publicKey'
    FAIL_SIGNATURE_VERIFICATION = 'fail_signature_verification'
    FAIL_RPID_MISMATCH = 'fail_rpId_mismatch'


@dataclass(frozen=True)
class VerifyAttestationSuccess:
    """What to persist, keyed by device, after a successful attestation."""
    public_key_pem: str
    receipt: bytes

    ok = True


@dataclass(frozen=True)
class VerifyAttestationFailure:
    verify_error: VerifyAttestationError
    error_message: Optional[str] = None

    ok = False


@dataclass(frozen=True)
class VerifyAssertionSuccess:
    """The caller must check that sign_count exceeds the stored counter,
    then store it."""
    sign_count: int

    ok = True


@dataclass(frozen=True)
class VerifyAssertionFailure:
    verify_error: VerifyAssertionError
    error_message: Optional[str] = None

    ok = False


VerifyAttestationResult = Union[VerifyAttestationSuccess, VerifyAttestationFailure]
VerifyAssertionResult = Union[VerifyAssertionSuccess, VerifyAssertionFailure]
