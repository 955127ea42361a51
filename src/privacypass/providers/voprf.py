"""
VOPRF(P-384, SHA-384) provider for privately verifiable tokens.

Implements the VOPRF mode of RFC 9497: the issuer evaluates its PRF on a
blinded element and attaches a DLEQ proof that the evaluation used the key
behind its public key. Only the private key holder can verify tokens.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Optional

from ..group import SCALAR_SIZE, P384Group, RandomSource, i2osp, length_prefixed
from ..messages import VOPRFTokenResponse
from ..token_types import VOPRF
from ..types import MalformedInputError, MechanismError, ProofVerificationError
from .base import BlindResult, KeyPair, MechanismProvider

logger = logging.getLogger(__name__)

MODE_VOPRF = 0x01
SUITE_IDENTIFIER = b"P384-SHA384"
CONTEXT_STRING = b"OPRFV1-" + i2osp(MODE_VOPRF, 1) + b"-" + SUITE_IDENTIFIER


@dataclass(frozen=True)
class VOPRFFinalizeData:
    """Client secret kept between blind and finalize."""
    public_key: bytes  # issuer element the proof is checked against
    token_input: bytes
    blind: int
    blinded_element: bytes


class VOPRFProvider(MechanismProvider[VOPRFFinalizeData]):
    """VOPRF mechanism for token type 0x0001."""

    token_type = VOPRF
    response_type = VOPRFTokenResponse

    def __init__(self, random_bytes: Optional[RandomSource] = None) -> None:
        self.group = P384Group(random_bytes)
        self._hash_to_group_dst = b"HashToGroup-" + CONTEXT_STRING
        self._hash_to_scalar_dst = b"HashToScalar-" + CONTEXT_STRING
        self._seed_dst = b"Seed-" + CONTEXT_STRING

    # MARK: - Keys

    async def key_gen(self) -> KeyPair:
        return self._key_pair(self.group.random_scalar())

    def derive_key_pair(self, seed: bytes, info: bytes) -> KeyPair:
        """
        Deterministically derive a key pair from a seed.

        Args:
            seed: 32-byte secret seed
            info: Public key info string

        Returns:
            KeyPair with a 48-byte private scalar and a 49-byte public element

        Raises:
            MechanismError: If no non-zero scalar is found within 256 attempts
        """
        derive_input = seed + length_prefixed(info)
        dst = b"DeriveKeyPair" + CONTEXT_STRING

        for counter in range(256):
            sk = self.group.hash_to_scalar(derive_input + i2osp(counter, 1), dst)
            if sk != 0:
                return self._key_pair(sk)

        raise MechanismError("Key pair derivation failed")

    def public_key(self, private_key: bytes) -> bytes:
        """Public element matching a serialized private key."""
        return self.group.serialize_element(self.group.generator * self._private_scalar(private_key))

    def _key_pair(self, sk: int) -> KeyPair:
        return KeyPair(
            private_key=self.group.serialize_scalar(sk),
            public_key=self.group.serialize_element(self.group.generator * sk),
        )

    def _private_scalar(self, private_key: bytes) -> int:
        try:
            sk = self.group.deserialize_scalar(private_key)
        except MalformedInputError as e:
            raise MechanismError(f"Invalid VOPRF private key: {e}") from e
        if sk == 0:
            raise MechanismError("Invalid VOPRF private key: zero scalar")
        return sk

    def _element(self, data: bytes, what: str):
        try:
            return self.group.deserialize_element(data)
        except MalformedInputError as e:
            raise MechanismError(f"Invalid {what}: {e}") from e

    # MARK: - Client

    async def blind(self, public_key: bytes, token_input: bytes) -> BlindResult[VOPRFFinalizeData]:
        self._element(public_key, "VOPRF public key")

        input_element = self.group.hash_to_group(token_input, self._hash_to_group_dst)
        if self.group.is_identity(input_element):
            raise MechanismError("Token input maps to the identity element")

        blind = self.group.random_scalar()
        blinded_element = self.group.serialize_element(input_element * blind)

        return BlindResult(
            blinded_msg=blinded_element,
            secret=VOPRFFinalizeData(
                public_key=public_key,
                token_input=token_input,
                blind=blind,
                blinded_element=blinded_element,
            ),
        )

    async def finalize(self, secret: VOPRFFinalizeData, response: VOPRFTokenResponse) -> bytes:
        """
        Verify the evaluation proof and unblind the evaluated element.

        Raises:
            ProofVerificationError: If the DLEQ proof does not verify
            MechanismError: If an element in the response is invalid
        """
        pk = self._element(secret.public_key, "VOPRF public key")
        blinded = self._element(secret.blinded_element, "blinded element")
        evaluated = self._element(response.evaluate_msg, "evaluated element")

        if not self._verify_proof(pk, blinded, evaluated, response.evaluate_proof):
            logger.warning("VOPRF evaluation proof rejected")
            raise ProofVerificationError("VOPRF evaluation proof is invalid")

        unblinded = evaluated * pow(secret.blind, -1, self.group.order)
        return self._finalize_hash(secret.token_input, self.group.serialize_element(unblinded))

    # MARK: - Issuer

    async def issue(self, private_key: bytes, blinded_msg: bytes) -> VOPRFTokenResponse:
        return await self.blind_evaluate(private_key, blinded_msg)

    async def blind_evaluate(self, private_key: bytes, blinded_msg: bytes) -> VOPRFTokenResponse:
        """
        Evaluate the PRF on a blinded element and prove correctness.

        Args:
            private_key: 48-byte issuer scalar
            blinded_msg: 49-byte blinded element from the TokenRequest

        Returns:
            VOPRFTokenResponse with the evaluated element and DLEQ proof

        Raises:
            MechanismError: If the key or the blinded element is invalid
        """
        sk = self._private_scalar(private_key)
        blinded = self._element(blinded_msg, "blinded element")

        pk = self.group.generator * sk
        evaluated = blinded * sk
        proof = self._generate_proof(sk, pk, blinded, evaluated)

        return VOPRFTokenResponse(
            evaluate_msg=self.group.serialize_element(evaluated),
            evaluate_proof=proof,
        )

    async def verify(self, key: bytes, token_input: bytes, authenticator: bytes) -> bool:
        """Recompute the PRF output with the private key and compare."""
        sk = self._private_scalar(key)

        input_element = self.group.hash_to_group(token_input, self._hash_to_group_dst)
        if self.group.is_identity(input_element):
            return False

        issued = self.group.serialize_element(input_element * sk)
        expected = self._finalize_hash(token_input, issued)
        return hmac.compare_digest(expected, authenticator)

    # MARK: - Helpers

    @staticmethod
    def _finalize_hash(token_input: bytes, element: bytes) -> bytes:
        return hashlib.sha384(
            length_prefixed(token_input) + length_prefixed(element) + b"Finalize"
        ).digest()

    def _composite_scalar(self, pk_bytes: bytes, blinded, evaluated) -> int:
        seed = hashlib.sha384(length_prefixed(pk_bytes) + length_prefixed(self._seed_dst)).digest()
        transcript = (
            length_prefixed(seed)
            + i2osp(0, 2)
            + length_prefixed(self.group.serialize_element(blinded))
            + length_prefixed(self.group.serialize_element(evaluated))
            + b"Composite"
        )
        return self.group.hash_to_scalar(transcript, self._hash_to_scalar_dst)

    def _challenge(self, pk_bytes: bytes, m, z, t2, t3) -> int:
        transcript = (
            length_prefixed(pk_bytes)
            + length_prefixed(self.group.serialize_element(m))
            + length_prefixed(self.group.serialize_element(z))
            + length_prefixed(self.group.serialize_element(t2))
            + length_prefixed(self.group.serialize_element(t3))
            + b"Challenge"
        )
        return self.group.hash_to_scalar(transcript, self._hash_to_scalar_dst)

    def _generate_proof(self, sk: int, pk, blinded, evaluated) -> bytes:
        pk_bytes = self.group.serialize_element(pk)

        d = self._composite_scalar(pk_bytes, blinded, evaluated)
        m = blinded * d
        z = m * sk

        r = self.group.random_scalar()
        t2 = self.group.generator * r
        t3 = m * r

        c = self._challenge(pk_bytes, m, z, t2, t3)
        s = (r - c * sk) % self.group.order

        return self.group.serialize_scalar(c) + self.group.serialize_scalar(s)

    def _verify_proof(self, pk, blinded, evaluated, proof: bytes) -> bool:
        try:
            c = self.group.deserialize_scalar(proof[:SCALAR_SIZE])
            s = self.group.deserialize_scalar(proof[SCALAR_SIZE:])
        except MalformedInputError:
            return False

        pk_bytes = self.group.serialize_element(pk)
        d = self._composite_scalar(pk_bytes, blinded, evaluated)
        m = blinded * d
        z = evaluated * d

        t2 = self.group.generator * s + pk * c
        t3 = m * s + z * c
        if self.group.is_identity(t2) or self.group.is_identity(t3):
            return False

        expected = self._challenge(pk_bytes, m, z, t2, t3)
        return hmac.compare_digest(
            self.group.serialize_scalar(expected), self.group.serialize_scalar(c)
        )
