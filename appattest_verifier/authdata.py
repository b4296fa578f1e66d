#
# Fixed-offset reader for App Attest authenticator data
#
# Layout follows the description of Authenticator Data in:
#	https://www.w3.org/TR/webauthn/#sctn-authenticator-data
#
# with Apple's App Attest specifics: the aaguid is the ASCII string
# "appattest" (zero-padded) or "appattestdevelop", and the credential
# id is the 32-byte key identifier.
#

import struct

from typing import Optional

from .utils import hexbytes

RP_ID_HASH_LENGTH = 32
SIGN_COUNT_OFFSET = 33
AAGUID_OFFSET = 37
CREDENTIAL_ID_LENGTH_OFFSET = 53
CREDENTIAL_ID_OFFSET = 55
CREDENTIAL_ID_LENGTH = 32

AAGUID_DEVELOPMENT = b'appattestdevelop'
AAGUID_PRODUCTION = b'appattest\0\0\0\0\0\0\0'


def expected_aaguid(development_env: bool) -> bytes:
    return AAGUID_DEVELOPMENT if development_env else AAGUID_PRODUCTION


class AuthenticatorData:
    __slots__ = [ '_raw', '_rpid', '_flags', '_counter', '_aaguid', '_credentialIdLength', '_credentialId' ]

    FLAG_UP = 0x01
    FLAG_RFU1 = 0x02
    FLAG_UV = 0x04
    FLAG_RFU2 = 0x38
    FLAG_AT = 0x40
    FLAG_ED = 0x80

    _authData_format = '> 32s B I'
    _authData_format1 = '> 16s H'

    def __init__(self, data: bytes):
        _size = struct.calcsize(AuthenticatorData._authData_format)
        if len(data) < _size:
            raise ValueError('authenticator data has %d bytes, need at least %d' % (len(data), _size))

        self._raw = bytes(data)
        self._rpid, self._flags, self._counter = struct.unpack_from(AuthenticatorData._authData_format, data, 0)

        # Apple sets the AT flag on assertions too, so the attested
        # credential data is recognised by length rather than by flag.
        if len(data) >= CREDENTIAL_ID_OFFSET:
            self._aaguid, self._credentialIdLength = struct.unpack_from(AuthenticatorData._authData_format1, data, AAGUID_OFFSET)
            self._credentialId = self._raw[CREDENTIAL_ID_OFFSET : CREDENTIAL_ID_OFFSET + self._credentialIdLength]
        else:
            self._aaguid = self._credentialIdLength = self._credentialId = None

    def __repr__(self) -> str:
        _s = 'AuthenticatorData(%s, %#x, %d' % (hexbytes(self._rpid), self._flags, self._counter)
        if self._aaguid is not None:
            _s += ', %r' % self._aaguid
        if self._credentialId is not None:
            _s += ', %s' % hexbytes(self._credentialId)
        _s += ')'
        return _s

    @property
    def raw(self) -> bytes:
        return self._raw

    @property
    def rp_id_hash(self) -> bytes:
        return self._rpid

    @property
    def flags(self) -> int:
        return self._flags

    @property
    def sign_count(self) -> int:
        return self._counter

    @property
    def aaguid(self) -> Optional[bytes]:
        return self._aaguid

    @property
    def credential_id_length(self) -> Optional[int]:
        return self._credentialIdLength

    @property
    def credential_id(self) -> Optional[bytes]:
        return self._credentialId
