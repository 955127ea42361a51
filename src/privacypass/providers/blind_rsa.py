"""
Blind RSA provider for publicly verifiable tokens.

Implements RSABSSA-SHA384-PSS-Deterministic and
RSABSSA-SHA384-PSSZERO-Deterministic from RFC 9474. Keys and signature
verification come from the cryptography package; blinding and unblinding
are modular arithmetic on the key's public and private numbers.
"""

import hashlib
import logging
import math
import os
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from ..group import RandomSource, i2osp
from ..keys import load_rsa_public_key, rsa_public_key_bytes
from ..messages import BlindRSATokenResponse
from ..token_types import BLIND_RSA
from ..types import MalformedInputError, MechanismError
from .base import BlindResult, KeyPair, MechanismProvider

logger = logging.getLogger(__name__)

HASH_SIZE = 48  # SHA-384


class BlindRSAMode(IntEnum):
    """PSS salt length used by the issuer."""
    PSS_ZERO = 0  # RSABSSA-SHA384-PSSZERO-Deterministic
    PSS = 48  # RSABSSA-SHA384-PSS-Deterministic


@dataclass
class BlindRSAKeyParams:
    """Configuration for issuer key generation."""

    modulus_length: int = 2048
    """RSA modulus size in bits."""

    public_exponent: int = 65537
    """RSA public exponent."""

    @classmethod
    def from_exponent_bytes(cls, exponent: bytes, modulus_length: int = 2048) -> "BlindRSAKeyParams":
        """Build params from a big-endian exponent such as bytes([1, 0, 1])."""
        return cls(modulus_length=modulus_length, public_exponent=int.from_bytes(exponent, "big"))


@dataclass(frozen=True)
class BlindRSASecret:
    """Client secret kept between blind and finalize."""
    public_key: rsa.RSAPublicKey
    token_input: bytes
    inv: bytes


def _mgf1(seed: bytes, length: int) -> bytes:
    output = b""
    counter = 0
    while len(output) < length:
        output += hashlib.sha384(seed + i2osp(counter, 4)).digest()
        counter += 1
    return output[:length]


def emsa_pss_encode(msg: bytes, em_bits: int, salt: bytes) -> bytes:
    """
    EMSA-PSS encoding with SHA-384 and MGF1-SHA-384 (RFC 8017, 9.1.1).

    Args:
        msg: Message to encode
        em_bits: Maximal bit length of the encoded integer (modulus bits - 1)
        salt: Salt, of the configured salt length

    Returns:
        Encoded message of ceil(em_bits / 8) bytes
    """
    m_hash = hashlib.sha384(msg).digest()
    em_len = -(-em_bits // 8)
    if em_len < HASH_SIZE + len(salt) + 2:
        raise MechanismError("Encoding error: modulus too small")

    h = hashlib.sha384(bytes(8) + m_hash + salt).digest()
    db = bytes(em_len - len(salt) - HASH_SIZE - 2) + b"\x01" + salt
    masked_db = bytearray(x ^ y for x, y in zip(db, _mgf1(h, em_len - HASH_SIZE - 1)))
    masked_db[0] &= 0xFF >> (8 * em_len - em_bits)

    return bytes(masked_db) + h + b"\xbc"


class BlindRSAProvider(MechanismProvider[BlindRSASecret]):
    """Blind RSA mechanism for token type 0x0002."""

    token_type = BLIND_RSA
    response_type = BlindRSATokenResponse

    def __init__(
        self,
        mode: BlindRSAMode = BlindRSAMode.PSS_ZERO,
        key_params: Optional[BlindRSAKeyParams] = None,
        random_bytes: Optional[RandomSource] = None,
    ) -> None:
        self.mode = BlindRSAMode(mode)
        self.key_params = key_params or BlindRSAKeyParams()
        self._random_bytes = random_bytes or os.urandom

    @property
    def salt_length(self) -> int:
        return int(self.mode)

    def pss_padding(self) -> padding.PSS:
        """Padding that verifies finalized signatures of this mode."""
        return padding.PSS(mgf=padding.MGF1(hashes.SHA384()), salt_length=self.salt_length)

    # MARK: - Keys

    async def key_gen(self) -> KeyPair:
        private_key = rsa.generate_private_key(
            public_exponent=self.key_params.public_exponent,
            key_size=self.key_params.modulus_length,
        )
        return KeyPair(
            private_key=private_key,
            public_key=rsa_public_key_bytes(private_key.public_key()),
        )

    def _import_key(self, public_key: Union[bytes, rsa.RSAPublicKey]) -> rsa.RSAPublicKey:
        if isinstance(public_key, rsa.RSAPublicKey):
            key = public_key
        else:
            try:
                key = load_rsa_public_key(public_key)
            except MalformedInputError as e:
                raise MechanismError(f"Issuer public key import failed: {e}") from e

        if key.key_size != self.token_type.nk * 8:
            raise MechanismError(f"Unsupported RSA key size: {key.key_size} bits")

        return key

    def _random_below(self, n: int) -> int:
        size = -(-n.bit_length() // 8)
        excess = 8 * size - n.bit_length()
        while True:
            candidate = int.from_bytes(self._random_bytes(size), "big") >> excess
            if 0 < candidate < n:
                return candidate

    # MARK: - Client

    async def blind(self, public_key: Union[bytes, rsa.RSAPublicKey], token_input: bytes) -> BlindResult[BlindRSASecret]:
        """
        Blind token_input for the issuer holding public_key.

        Raises:
            MechanismError: If the key cannot be imported or blinding fails
        """
        key = self._import_key(public_key)
        numbers = key.public_numbers()
        n, e = numbers.n, numbers.e
        k_len = self.token_type.nk

        salt = self._random_bytes(self.salt_length)
        encoded = emsa_pss_encode(token_input, n.bit_length() - 1, salt)
        m = int.from_bytes(encoded, "big")
        if math.gcd(m, n) != 1:
            raise MechanismError("Invalid input: encoded message shares a factor with the modulus")

        while True:
            r = self._random_below(n)
            try:
                inv = pow(r, -1, n)
                break
            except ValueError:
                continue

        blinded = m * pow(r, e, n) % n

        return BlindResult(
            blinded_msg=i2osp(blinded, k_len),
            secret=BlindRSASecret(public_key=key, token_input=token_input, inv=i2osp(inv, k_len)),
        )

    async def finalize(self, secret: BlindRSASecret, response: BlindRSATokenResponse) -> bytes:
        """
        Unblind the issuer signature and check it against the token input.

        Raises:
            MechanismError: If the unblinded signature does not verify
        """
        n = secret.public_key.public_numbers().n
        z = int.from_bytes(response.blind_sig, "big")
        inv = int.from_bytes(secret.inv, "big")
        signature = i2osp(z * inv % n, self.token_type.nk)

        try:
            secret.public_key.verify(signature, secret.token_input, self.pss_padding(), hashes.SHA384())
        except InvalidSignature as e:
            logger.warning("Unblinded signature failed verification")
            raise MechanismError("Invalid signature after unblinding") from e

        return signature

    # MARK: - Issuer

    async def issue(self, private_key: rsa.RSAPrivateKey, blinded_msg: bytes) -> BlindRSATokenResponse:
        return await self.blind_sign(private_key, blinded_msg)

    async def blind_sign(self, private_key: rsa.RSAPrivateKey, blinded_msg: bytes) -> BlindRSATokenResponse:
        """
        Sign a blinded message with the issuer private key.

        Args:
            private_key: Issuer RSA private key
            blinded_msg: Nk-byte blinded message from the TokenRequest

        Returns:
            BlindRSATokenResponse carrying the blind signature

        Raises:
            MechanismError: If the message is out of range or signing fails
        """
        if private_key.key_size != self.token_type.nk * 8:
            raise MechanismError(f"Unsupported RSA key size: {private_key.key_size} bits")

        private_numbers = private_key.private_numbers()
        n = private_numbers.public_numbers.n
        e = private_numbers.public_numbers.e

        m = int.from_bytes(blinded_msg, "big")
        if m >= n:
            raise MechanismError("Blinded message out of range")

        s = pow(m, private_numbers.d, n)
        if pow(s, e, n) != m:
            raise MechanismError("Signing failure")

        return BlindRSATokenResponse(blind_sig=i2osp(s, self.token_type.nk))

    # MARK: - Verification

    async def verify(self, key: Union[bytes, rsa.RSAPublicKey], token_input: bytes, authenticator: bytes) -> bool:
        """
        Verify a finalized token signature with the issuer public key.

        Returns:
            True if the signature is valid for this mode, False otherwise

        Raises:
            MechanismError: If the public key cannot be imported
        """
        public_key = self._import_key(key)

        if len(authenticator) != self.token_type.nk:
            return False

        try:
            public_key.verify(authenticator, token_input, self.pss_padding(), hashes.SHA384())
            return True
        except InvalidSignature:
            return False
