"""AuthenticatorInput and Token encoding and decoding."""

from dataclasses import dataclass, field

from .token_types import TokenTypeEntry, get_token_type
from .types import (
    CHALLENGE_DIGEST_SIZE,
    NONCE_SIZE,
    TOKEN_TYPE_SIZE,
    MalformedInputError,
)


@dataclass(frozen=True)
class AuthenticatorInput:
    """Message bound into a token's authenticator.

    Wire format:
        [0..1]    token_type (big-endian uint16)
        [2..33]   nonce (32 bytes)
        [34..65]  challenge_digest (32 bytes)
        [66..]    token_key_id (Nid bytes)
    """

    token_type: TokenTypeEntry
    nonce: bytes  # 32 bytes
    challenge_digest: bytes  # 32 bytes
    token_key_id: bytes  # Nid bytes
    type_value: int = field(default=-1)

    def __post_init__(self) -> None:
        if self.type_value == -1:
            object.__setattr__(self, "type_value", self.token_type.value)
        elif self.type_value != self.token_type.value:
            raise MalformedInputError(
                f"Token type mismatch: 0x{self.type_value:04x} != 0x{self.token_type.value:04x}"
            )

        if len(self.nonce) != NONCE_SIZE:
            raise MalformedInputError(f"Nonce must be {NONCE_SIZE} bytes, got {len(self.nonce)}")

        if len(self.challenge_digest) != CHALLENGE_DIGEST_SIZE:
            raise MalformedInputError(
                f"Challenge digest must be {CHALLENGE_DIGEST_SIZE} bytes, "
                f"got {len(self.challenge_digest)}"
            )

        if len(self.token_key_id) != self.token_type.nid:
            raise MalformedInputError(
                f"Token key ID must be {self.token_type.nid} bytes, got {len(self.token_key_id)}"
            )

    @staticmethod
    def size_for(token_type: TokenTypeEntry) -> int:
        """Encoded size of an AuthenticatorInput of the given type."""
        return TOKEN_TYPE_SIZE + NONCE_SIZE + CHALLENGE_DIGEST_SIZE + token_type.nid

    def serialize(self) -> bytes:
        """Encode to bytes."""
        return (
            self.type_value.to_bytes(TOKEN_TYPE_SIZE, byteorder="big")
            + self.nonce
            + self.challenge_digest
            + self.token_key_id
        )

    @classmethod
    def deserialize(cls, data: bytes) -> "AuthenticatorInput":
        """
        Decode bytes into an AuthenticatorInput.

        Args:
            data: Encoded bytes

        Returns:
            Decoded AuthenticatorInput

        Raises:
            MalformedInputError: If the type is unknown or the length is wrong
        """
        if len(data) < TOKEN_TYPE_SIZE:
            raise MalformedInputError(f"Data too short: {len(data)} bytes")

        token_type = get_token_type(int.from_bytes(data[:TOKEN_TYPE_SIZE], byteorder="big"))

        expected = cls.size_for(token_type)
        if len(data) != expected:
            raise MalformedInputError(
                f"Authenticator input must be {expected} bytes, got {len(data)}"
            )

        offset = TOKEN_TYPE_SIZE
        nonce = data[offset : offset + NONCE_SIZE]
        offset += NONCE_SIZE

        challenge_digest = data[offset : offset + CHALLENGE_DIGEST_SIZE]
        offset += CHALLENGE_DIGEST_SIZE

        token_key_id = data[offset : offset + token_type.nid]

        return cls(
            token_type=token_type,
            nonce=bytes(nonce),
            challenge_digest=bytes(challenge_digest),
            token_key_id=bytes(token_key_id),
        )


@dataclass(frozen=True)
class Token:
    """A finalized token: authenticator input plus the mechanism output.

    Wire format:
        [0..65+Nid]  AuthenticatorInput
        [..]         authenticator (Nk bytes)
    """

    token_type: TokenTypeEntry
    auth_input: AuthenticatorInput
    authenticator: bytes  # Nk bytes

    def __post_init__(self) -> None:
        if self.auth_input.token_type != self.token_type:
            raise MalformedInputError(
                f"Authenticator input is for {self.auth_input.token_type}, token is {self.token_type}"
            )

        if len(self.authenticator) != self.token_type.nk:
            raise MalformedInputError(
                f"Authenticator must be {self.token_type.nk} bytes, got {len(self.authenticator)}"
            )

    def serialize(self) -> bytes:
        """Encode to bytes."""
        return self.auth_input.serialize() + self.authenticator

    @classmethod
    def deserialize(cls, data: bytes) -> "Token":
        """
        Decode bytes into a Token, dispatching on the leading token type.

        Args:
            data: Encoded token bytes

        Returns:
            Decoded Token

        Raises:
            MalformedInputError: If the type is unknown or the length is wrong
        """
        if len(data) < TOKEN_TYPE_SIZE:
            raise MalformedInputError(f"Data too short: {len(data)} bytes")

        token_type = get_token_type(int.from_bytes(data[:TOKEN_TYPE_SIZE], byteorder="big"))

        input_size = AuthenticatorInput.size_for(token_type)
        expected = input_size + token_type.nk
        if len(data) != expected:
            raise MalformedInputError(f"Token must be {expected} bytes, got {len(data)}")

        auth_input = AuthenticatorInput.deserialize(data[:input_size])

        return cls(
            token_type=token_type,
            auth_input=auth_input,
            authenticator=bytes(data[input_size:]),
        )
