"""TokenRequest and TokenResponse encoding and decoding."""

from dataclasses import dataclass
from typing import Optional, Union

from .token_types import BLIND_RSA, VOPRF, TokenTypeEntry, get_token_type
from .types import (
    MAX_U8,
    TOKEN_TYPE_SIZE,
    TRUNCATED_KEY_ID_SIZE,
    MalformedInputError,
    UnsupportedTokenTypeError,
)

REQUEST_HEADER_SIZE = TOKEN_TYPE_SIZE + TRUNCATED_KEY_ID_SIZE


@dataclass(frozen=True)
class TokenRequest:
    """Client to issuer request carrying a blinded token input.

    Wire format:
        [0..1]  token_type (big-endian uint16)
        [2]     truncated_token_key_id (uint8)
        [3..]   blinded_msg (Ne bytes for VOPRF, Nk bytes for Blind RSA)
    """

    token_type: int
    truncated_token_key_id: int
    blinded_msg: bytes

    def __post_init__(self) -> None:
        entry = get_token_type(self.token_type)

        if not 0 <= self.truncated_token_key_id <= MAX_U8:
            raise MalformedInputError(
                f"Truncated token key ID out of range: {self.truncated_token_key_id}"
            )

        if len(self.blinded_msg) != entry.blinded_msg_size:
            raise MalformedInputError(
                f"Blinded message must be {entry.blinded_msg_size} bytes for {entry}, "
                f"got {len(self.blinded_msg)}"
            )

    def serialize(self) -> bytes:
        """Encode to bytes."""
        return (
            self.token_type.to_bytes(TOKEN_TYPE_SIZE, byteorder="big")
            + bytes([self.truncated_token_key_id])
            + self.blinded_msg
        )

    @classmethod
    def deserialize(
        cls, data: bytes, token_type: Optional[TokenTypeEntry] = None
    ) -> "TokenRequest":
        """
        Decode bytes into a TokenRequest.

        Args:
            data: Encoded request bytes
            token_type: Expected token type, or None to accept any registered type

        Returns:
            Decoded TokenRequest

        Raises:
            MalformedInputError: If the type tag is unexpected or the length is wrong
        """
        if len(data) < REQUEST_HEADER_SIZE:
            raise MalformedInputError(
                f"Data too short: {len(data)} bytes (minimum {REQUEST_HEADER_SIZE})"
            )

        value = int.from_bytes(data[:TOKEN_TYPE_SIZE], byteorder="big")
        if token_type is not None and value != token_type.value:
            raise UnsupportedTokenTypeError(value, "mismatch of token type")

        entry = get_token_type(value)
        expected = REQUEST_HEADER_SIZE + entry.blinded_msg_size
        if len(data) != expected:
            raise MalformedInputError(
                f"Token request must be {expected} bytes for {entry}, got {len(data)}"
            )

        return cls(
            token_type=value,
            truncated_token_key_id=data[TOKEN_TYPE_SIZE],
            blinded_msg=bytes(data[REQUEST_HEADER_SIZE:]),
        )


@dataclass(frozen=True)
class VOPRFTokenResponse:
    """Issuer response for the VOPRF token type.

    Wire format:
        [0..Ne-1]       evaluate_msg (Ne bytes)
        [Ne..Ne+2Ns-1]  evaluate_proof (2 * Ns bytes)
    """

    evaluate_msg: bytes
    evaluate_proof: bytes

    token_type = VOPRF

    def __post_init__(self) -> None:
        if len(self.evaluate_msg) != VOPRF.ne:
            raise MalformedInputError(
                f"evaluate_msg must be {VOPRF.ne} bytes, got {len(self.evaluate_msg)}"
            )

        if len(self.evaluate_proof) != 2 * VOPRF.ns:
            raise MalformedInputError(
                f"evaluate_proof must be {2 * VOPRF.ns} bytes, got {len(self.evaluate_proof)}"
            )

    def serialize(self) -> bytes:
        """Encode to bytes."""
        return self.evaluate_msg + self.evaluate_proof

    @classmethod
    def deserialize(cls, data: bytes) -> "VOPRFTokenResponse":
        """
        Decode bytes into a VOPRFTokenResponse.

        Raises:
            MalformedInputError: If the length is wrong
        """
        expected = VOPRF.ne + 2 * VOPRF.ns
        if len(data) != expected:
            raise MalformedInputError(f"Token response must be {expected} bytes, got {len(data)}")

        return cls(evaluate_msg=bytes(data[: VOPRF.ne]), evaluate_proof=bytes(data[VOPRF.ne :]))


@dataclass(frozen=True)
class BlindRSATokenResponse:
    """Issuer response for the Blind RSA token type.

    Wire format:
        [0..Nk-1]  blind_sig (Nk bytes)
    """

    blind_sig: bytes

    token_type = BLIND_RSA

    def __post_init__(self) -> None:
        if len(self.blind_sig) != BLIND_RSA.nk:
            raise MalformedInputError(
                f"Blind signature must be {BLIND_RSA.nk} bytes, got {len(self.blind_sig)}"
            )

    def serialize(self) -> bytes:
        """Encode to bytes."""
        return self.blind_sig

    @classmethod
    def deserialize(cls, data: bytes) -> "BlindRSATokenResponse":
        """
        Decode bytes into a BlindRSATokenResponse.

        Raises:
            MalformedInputError: If the length is wrong
        """
        if len(data) != BLIND_RSA.nk:
            raise MalformedInputError(
                f"Token response must be {BLIND_RSA.nk} bytes, got {len(data)}"
            )

        return cls(blind_sig=bytes(data))


TokenResponse = Union[VOPRFTokenResponse, BlindRSATokenResponse]
