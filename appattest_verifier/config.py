#
# Process-wide trust anchor and nonce extension OID
#
# Both are meant to be set once at start-up.  Writers build the new value
# completely and publish it under a lock; readers take a single reference,
# so a verification running concurrently sees either the old value or the
# new one, never a mix.
#

import logging
import threading

from typing import Optional, Union

from cryptography import x509

from .certificate import Certificate

logger = logging.getLogger(__name__)

# taken from https://www.apple.com/certificateauthority/private/
DEFAULT_APPATTEST_ROOT_CERT_PEM = '''-----BEGIN CERTIFICATE-----
MIICITCCAaegAwIBAgIQC/O+DvHN0uD7jG5yH2IXmDAKBggqhkjOPQQDAzBSMSYw
JAYDVQQDDB1BcHBsZSBBcHAgQXR0ZXN0YXRpb24gUm9vdCBDQTETMBEGA1UECgwK
QXBwbGUgSW5jLjETMBEGA1UECAwKQ2FsaWZvcm5pYTAeFw0yMDAzMTgxODMyNTNa
Fw00NTAzMTUwMDAwMDBaMFIxJjAkBgNVBAMMHUFwcGxlIEFwcCBBdHRlc3RhdGlv
biBSb290IENBMRMwEQYDVQQKDApBcHBsZSBJbmMuMRMwEQYDVQQIDApDYWxpZm9y
bmlhMHYwEAYHKoZIzj0CAQYFK4EEACIDYgAERTHhmLW07ATaFQIEVwTtT4dyctdh
NbJhFs/Ii2FdCgAHGbpphY3+d8qjuDngIN3WVhQUBHAoMeQ/cLiP1sOUtgjqK9au
Yen1mMEvRq9Sk3Jm5X8U62H+xTD3FE9TgS41o0IwQDAPBgNVHRMBAf8EBTADAQH/
MB0GA1UdDgQWBBSskRBTM72+aEH/pwyp5frq5eWKoTAOBgNVHQ8BAf8EBAMCAQYw
CgYIKoZIzj0EAwMDaAAwZQIwQgFGnByvsiVbpTKwSga0kP0e8EeDS4+sQmTvb7vn
53O5+FRXgeLhpJ06ysC5PrOyAjEAp5U4xDgEgllF7En3VcE3iexZZtKeYnpqtijV
oyFraWVIyd/dganmrduC1bmTBGwD
-----END CERTIFICATE-----
'''

DEFAULT_NONCE_EXTENSION_OID = '1.2.840.113635.100.8.2'

_lock = threading.Lock()

_rootCert = Certificate.from_pem(DEFAULT_APPATTEST_ROOT_CERT_PEM)
_nonceOID = x509.ObjectIdentifier(DEFAULT_NONCE_EXTENSION_OID)


def set_app_attest_root_certificate(pem: Optional[Union[str, bytes]]) -> None:
    """Replace the pinned App Attest root certificate.

    ``None`` restores the Apple App Attestation Root CA bundled above.
    Raises ValueError if ``pem`` is not a PEM certificate; the previous
    root stays in place in that case.
    """
    global _rootCert

    cert = Certificate.from_pem(DEFAULT_APPATTEST_ROOT_CERT_PEM if pem is None else pem)

    with _lock:
        _rootCert = cert

    logger.info('App Attest root certificate set to %r%s', cert, ' (default)' if pem is None else '')


def get_app_attest_root_certificate() -> Certificate:
    return _rootCert


def set_nonce_extension_oid(oid: Optional[str]) -> None:
    """Replace the OID looked up for the nonce extension; ``None`` restores
    1.2.840.113635.100.8.2.  Raises ValueError for a malformed OID."""
    global _nonceOID

    value = x509.ObjectIdentifier(DEFAULT_NONCE_EXTENSION_OID if oid is None else oid)

    with _lock:
        _nonceOID = value

    logger.info('nonce extension OID set to %s', value.dotted_string)


def get_nonce_extension_oid() -> x509.ObjectIdentifier:
    return _nonceOID
