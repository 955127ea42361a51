"""Tests for token key IDs and RSA public key encodings."""

import hashlib

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from privacypass.keys import (
    RSASSA_PSS_OID,
    load_rsa_public_key,
    rsa_public_key_bytes,
    to_rsa_encryption_spki,
    to_rsassa_pss_spki,
    token_key_id,
    truncate_token_key_id,
)
from privacypass.types import MalformedInputError


@pytest.fixture(scope="module")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def spki_of(public_key) -> bytes:
    return public_key.public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )


class TestTokenKeyId:
    """Key ID derivation."""

    def test_key_id_is_sha256(self) -> None:
        """Token key ID is SHA-256 of the public key."""
        public_key = bytes([42] * 49)
        assert token_key_id(public_key) == hashlib.sha256(public_key).digest()

    def test_truncated_key_id_is_last_byte(self) -> None:
        """Truncation keeps the last byte."""
        key_id = bytes(range(32))
        assert truncate_token_key_id(key_id) == 31

    def test_truncate_empty_rejected(self) -> None:
        """An empty key ID cannot be truncated."""
        with pytest.raises(MalformedInputError):
            truncate_token_key_id(b"")


class TestKeyFormatTranslation:
    """rsaEncryption <-> RSASSA-PSS SubjectPublicKeyInfo."""

    def test_pss_encoding_differs_from_rsa_encryption(self, rsa_key) -> None:
        """Conversion tags the key with the RSASSA-PSS OID."""
        plain = spki_of(rsa_key.public_key())
        pss = to_rsassa_pss_spki(plain)

        assert pss != plain
        # DER of the id-RSASSA-PSS OID
        assert bytes.fromhex("06092a864886f70d01010a") in pss

    def test_round_trip(self, rsa_key) -> None:
        """Converting to PSS and back restores the original encoding."""
        plain = spki_of(rsa_key.public_key())

        assert to_rsa_encryption_spki(to_rsassa_pss_spki(plain)) == plain

    def test_conversion_is_idempotent(self, rsa_key) -> None:
        """Converting an already-converted key is a no-op."""
        plain = spki_of(rsa_key.public_key())
        pss = to_rsassa_pss_spki(plain)

        assert to_rsassa_pss_spki(pss) == pss
        assert to_rsa_encryption_spki(plain) == plain

    def test_export_and_import(self, rsa_key) -> None:
        """Exported keys import to the same numbers."""
        encoded = rsa_public_key_bytes(rsa_key.public_key())
        loaded = load_rsa_public_key(encoded)

        assert loaded.public_numbers() == rsa_key.public_key().public_numbers()

    def test_import_accepts_rsa_encryption(self, rsa_key) -> None:
        """Plain rsaEncryption keys import too."""
        loaded = load_rsa_public_key(spki_of(rsa_key.public_key()))
        assert loaded.public_numbers() == rsa_key.public_key().public_numbers()

    def test_non_rsa_key_rejected(self) -> None:
        """EC keys are not RSA keys."""
        ec_key = ec.generate_private_key(ec.SECP256R1())
        with pytest.raises(MalformedInputError):
            to_rsassa_pss_spki(spki_of(ec_key.public_key()))

    def test_garbage_rejected(self) -> None:
        """Invalid DER is rejected."""
        with pytest.raises(MalformedInputError):
            load_rsa_public_key(b"\x30\x03\x02\x01")

    def test_oid_constant(self) -> None:
        """The PSS OID is 1.2.840.113549.1.1.10."""
        assert str(RSASSA_PSS_OID) == "1.2.840.113549.1.1.10"
