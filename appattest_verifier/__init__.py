#
# Server-side verification of Apple App Attest attestations and assertions
#

from .assertion import verify_assertion
from .attestation import AppInfo, verify_attestation
from .config import (
    get_app_attest_root_certificate,
    get_nonce_extension_oid,
    set_app_attest_root_certificate,
    set_nonce_extension_oid,
)
from .errors import (
    VerifyAssertionError,
    VerifyAssertionFailure,
    VerifyAssertionResult,
    VerifyAssertionSuccess,
    VerifyAttestationError,
    VerifyAttestationFailure,
    VerifyAttestationResult,
    VerifyAttestationSuccess,
)
from .utils import parse_uuid

__version__ = '1.0.0'

__all__ = [
    'AppInfo',
    'VerifyAssertionError',
    'VerifyAssertionFailure',
    'VerifyAssertionResult',
    'VerifyAssertionSuccess',
    'VerifyAttestationError',
    'VerifyAttestationFailure',
    'VerifyAttestationResult',
    'VerifyAttestationSuccess',
    'get_app_attest_root_certificate',
    'get_nonce_extension_oid',
    'parse_uuid',
    'set_app_attest_root_certificate',
    'set_nonce_extension_oid',
    'verify_assertion',
    'verify_attestation',
]
