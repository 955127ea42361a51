"""Issuer key identifiers and RSA public key encodings."""

import hashlib

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from pyasn1.codec.der import decoder, encoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import univ
from pyasn1_modules import rfc5280

from .types import MalformedInputError

RSA_ENCRYPTION_OID = univ.ObjectIdentifier("1.2.840.113549.1.1.1")
RSASSA_PSS_OID = univ.ObjectIdentifier("1.2.840.113549.1.1.10")

# DER of rsaEncryption parameters (NULL)
_RSA_ENCRYPTION_PARAMETERS = encoder.encode(univ.Null(""))

# DER of RSASSA-PSS-params: SHA-384, MGF1 with SHA-384, salt length 48
_RSASSA_PSS_SHA384_PARAMETERS = bytes.fromhex(
    "3030"
    "a00d300b0609608648016503040202"
    "a11a301806092a864886f70d010108300b0609608648016503040202"
    "a203020130"
)


def token_key_id(public_key: bytes) -> bytes:
    """
    Derive the token key ID of an issuer public key.

    Args:
        public_key: Issuer public key in its wire encoding

    Returns:
        32-byte SHA-256 digest
    """
    return hashlib.sha256(public_key).digest()


def truncate_token_key_id(key_id: bytes) -> int:
    """Least significant byte of a token key ID, in network byte order."""
    if not key_id:
        raise MalformedInputError("Token key ID is empty")
    return key_id[-1]


def _decode_spki(spki: bytes) -> rfc5280.SubjectPublicKeyInfo:
    try:
        decoded, rest = decoder.decode(spki, asn1Spec=rfc5280.SubjectPublicKeyInfo())
    except PyAsn1Error as e:
        raise MalformedInputError(f"Invalid SubjectPublicKeyInfo: {e}") from e

    if rest:
        raise MalformedInputError(f"Trailing data after SubjectPublicKeyInfo: {len(rest)} bytes")

    return decoded


def _replace_algorithm(
    decoded: rfc5280.SubjectPublicKeyInfo, oid: univ.ObjectIdentifier, parameters: bytes
) -> bytes:
    algorithm = rfc5280.AlgorithmIdentifier()
    algorithm["algorithm"] = oid
    algorithm["parameters"] = univ.Any(parameters)

    converted = rfc5280.SubjectPublicKeyInfo()
    converted["algorithm"] = algorithm
    converted["subjectPublicKey"] = decoded["subjectPublicKey"]

    return encoder.encode(converted)


def to_rsassa_pss_spki(spki: bytes) -> bytes:
    """
    Convert an rsaEncryption public key to the RSASSA-PSS encoding.

    The PSS form is the issuer key encoding for Blind RSA tokens and the
    input of the token key ID.

    Args:
        spki: DER SubjectPublicKeyInfo with either OID

    Returns:
        DER SubjectPublicKeyInfo tagged id-RSASSA-PSS

    Raises:
        MalformedInputError: If spki is not an RSA public key
    """
    decoded = _decode_spki(spki)
    oid = decoded["algorithm"]["algorithm"]

    if oid == RSASSA_PSS_OID:
        return bytes(spki)

    if oid != RSA_ENCRYPTION_OID:
        raise MalformedInputError(f"Not an RSA public key: {oid}")

    return _replace_algorithm(decoded, RSASSA_PSS_OID, _RSASSA_PSS_SHA384_PARAMETERS)


def to_rsa_encryption_spki(spki: bytes) -> bytes:
    """
    Convert an RSASSA-PSS public key to the rsaEncryption encoding.

    Needed because key importers generally refuse the PSS OID.

    Args:
        spki: DER SubjectPublicKeyInfo with either OID

    Returns:
        DER SubjectPublicKeyInfo tagged rsaEncryption

    Raises:
        MalformedInputError: If spki is not an RSA public key
    """
    decoded = _decode_spki(spki)
    oid = decoded["algorithm"]["algorithm"]

    if oid == RSA_ENCRYPTION_OID:
        return bytes(spki)

    if oid != RSASSA_PSS_OID:
        raise MalformedInputError(f"Not an RSA public key: {oid}")

    return _replace_algorithm(decoded, RSA_ENCRYPTION_OID, _RSA_ENCRYPTION_PARAMETERS)


def rsa_public_key_bytes(public_key: rsa.RSAPublicKey) -> bytes:
    """Encode an RSA public key as RSASSA-PSS SubjectPublicKeyInfo."""
    spki = public_key.public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return to_rsassa_pss_spki(spki)


def load_rsa_public_key(public_key: bytes) -> rsa.RSAPublicKey:
    """
    Import an RSA public key from either SubjectPublicKeyInfo encoding.

    Raises:
        MalformedInputError: If the key cannot be imported
    """
    spki = to_rsa_encryption_spki(public_key)

    try:
        key = serialization.load_der_public_key(spki)
    except (ValueError, TypeError) as e:
        raise MalformedInputError(f"Invalid RSA public key: {e}") from e

    if not isinstance(key, rsa.RSAPublicKey):
        raise MalformedInputError(f"Expected an RSA public key, got {type(key).__name__}")

    return key
