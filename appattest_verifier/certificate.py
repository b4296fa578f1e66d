#
# Thin facade over cryptography's X.509 certificate
#
# Only what the App Attest pipelines need: the subject public key in its
# various encodings, raw extension lookup and a bare signature check
# against a supplied issuer key.
#
# Signature checking deliberately stops at the signature: there is no
# name chaining, key usage, or CRL/OCSP revocation check here.  A validity
# window check is available separately through valid_at().
#

import datetime

from pyasn1.type import univ, namedtype, tag

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed448, ed25519, rsa

from typing import Optional, Union

nonceTag = 1


class noncePayload(univ.Sequence):
    """Value of Apple's nonce extension: SEQUENCE { [1] EXPLICIT OCTET STRING }"""
    componentType = namedtype.NamedTypes(
        namedtype.NamedType('nonce', univ.OctetString().subtype(explicitTag=tag.Tag(tag.tagClassContext, tag.tagFormatConstructed, nonceTag))),
    )


PublicKey = Union[ec.EllipticCurvePublicKey, rsa.RSAPublicKey, ed25519.Ed25519PublicKey, ed448.Ed448PublicKey]


class Certificate:
    __slots__ = [ '_cert' ]

    def __init__(self, cert: x509.Certificate):
        self._cert = cert

    @classmethod
    def from_der(cls, data: bytes) -> 'Certificate':
        return cls(x509.load_der_x509_certificate(bytes(data)))

    @classmethod
    def from_pem(cls, data: Union[str, bytes]) -> 'Certificate':
        if isinstance(data, str):
            data = data.encode('ascii')
        return cls(x509.load_pem_x509_certificate(data.strip() + b'\n'))

    def __repr__(self) -> str:
        return 'Certificate(%s)' % self._cert.subject.rfc4514_string()

    @property
    def cert(self) -> x509.Certificate:
        return self._cert

    @property
    def public_key(self) -> PublicKey:
        return self._cert.public_key()

    def public_key_raw(self) -> bytes:
        """SubjectPublicKeyInfo, DER encoded."""
        return self.public_key.public_bytes(
            serialization.Encoding.DER,
            serialization.PublicFormat.SubjectPublicKeyInfo)

    def public_key_pem(self) -> str:
        """SubjectPublicKeyInfo, PEM encoded."""
        return self.public_key.public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo).decode('ascii')

    def public_key_point(self) -> bytes:
        """The subject key as an X9.62 uncompressed point (0x04 || x || y).

        This is what Apple hashes to form the key identifier, not the DER of
        the SubjectPublicKeyInfo.  Raises TypeError for non-EC keys.
        """
        pk = self.public_key
        if not isinstance(pk, ec.EllipticCurvePublicKey):
            raise TypeError('subject key is %s, not an EC key' % type(pk).__name__)

        return pk.public_bytes(
            serialization.Encoding.X962,
            serialization.PublicFormat.UncompressedPoint)

    def get_extension(self, oid: Union[str, x509.ObjectIdentifier]) -> Optional[bytes]:
        """DER contents of the extension's extnValue, or None if absent."""
        if isinstance(oid, str):
            oid = x509.ObjectIdentifier(oid)

        try:
            ext = self._cert.extensions.get_extension_for_oid(oid)
        except x509.ExtensionNotFound:
            return None

        # private extensions come back as UnrecognizedExtension
        value = ext.value
        if isinstance(value, x509.UnrecognizedExtension):
            return value.value
        return value.public_bytes()

    def verify(self, issuer: Union[PublicKey, 'Certificate']) -> bool:
        """Check this certificate's signature with the issuer's public key.

        ``issuer`` is either the key itself or the issuing Certificate, whose
        key is then loaded here so that a malformed one reads as a failed
        check.  The algorithm follows the issuer key type; the certificate's
        own signature algorithm only contributes the hash and padding.
        """
        cert = self._cert

        try:
            if isinstance(issuer, Certificate):
                issuer_public_key = issuer.public_key
            else:
                issuer_public_key = issuer

            if isinstance(issuer_public_key, ec.EllipticCurvePublicKey):
                issuer_public_key.verify(
                    cert.signature,
                    cert.tbs_certificate_bytes,
                    ec.ECDSA(cert.signature_hash_algorithm),
                )
            elif isinstance(issuer_public_key, rsa.RSAPublicKey):
                issuer_public_key.verify(
                    cert.signature,
                    cert.tbs_certificate_bytes,
                    cert.signature_algorithm_parameters,
                    cert.signature_hash_algorithm,
                )
            elif isinstance(issuer_public_key, (ed25519.Ed25519PublicKey, ed448.Ed448PublicKey)):
                issuer_public_key.verify(cert.signature, cert.tbs_certificate_bytes)
            else:
                return False
        except (InvalidSignature, UnsupportedAlgorithm, ValueError, TypeError):
            return False

        return True

    def valid_at(self, when: datetime.datetime) -> bool:
        if when.tzinfo is None:
            when = when.replace(tzinfo=datetime.timezone.utc)

        return self._cert.not_valid_before_utc <= when <= self._cert.not_valid_after_utc
