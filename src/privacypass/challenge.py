"""TokenChallenge encoding and decoding."""

import hashlib
from dataclasses import dataclass
from typing import Optional

from .token_types import get_token_type
from .types import (
    MAX_U16,
    ORIGIN_INFO_SEPARATOR,
    REDEMPTION_CONTEXT_SIZE,
    TOKEN_TYPE_SIZE,
    MalformedInputError,
)


@dataclass(frozen=True)
class TokenChallenge:
    """Origin-issued challenge describing the token it will accept.

    Wire format:
        [0..1]   token_type (big-endian uint16)
        [2..3]   issuer_name length (uint16), followed by UTF-8 issuer_name
        [n]      redemption_context length (uint8, 0 or 32), followed by context
        [m..m+1] origin_info length (uint16), followed by the comma-joined origins
    """

    token_type: int
    issuer_name: str
    redemption_context: bytes = b""
    origin_info: Optional[tuple[str, ...]] = None

    def __post_init__(self) -> None:
        get_token_type(self.token_type)

        if not 0 < len(self._issuer_name_bytes()) <= MAX_U16:
            raise MalformedInputError("Issuer name must be 1 to 65535 bytes")

        object.__setattr__(self, "redemption_context", bytes(self.redemption_context))
        if len(self.redemption_context) not in (0, REDEMPTION_CONTEXT_SIZE):
            raise MalformedInputError(
                f"Redemption context must be 0 or {REDEMPTION_CONTEXT_SIZE} bytes, "
                f"got {len(self.redemption_context)}"
            )

        if self.origin_info is not None:
            if isinstance(self.origin_info, (str, bytes)):
                raise MalformedInputError("Origin info must be a sequence of origin names")
            # Stored as a tuple, never the caller's list
            object.__setattr__(self, "origin_info", tuple(self.origin_info))
            for origin in self.origin_info:
                if not origin or ORIGIN_INFO_SEPARATOR in origin:
                    raise MalformedInputError(f"Invalid origin name: {origin!r}")
            if not self.origin_info:
                object.__setattr__(self, "origin_info", None)

        if len(self._origin_info_bytes()) > MAX_U16:
            raise MalformedInputError("Origin info too long")

    def _issuer_name_bytes(self) -> bytes:
        return self.issuer_name.encode("utf-8")

    def _origin_info_bytes(self) -> bytes:
        if not self.origin_info:
            return b""
        return ORIGIN_INFO_SEPARATOR.join(self.origin_info).encode("utf-8")

    def serialize(self) -> bytes:
        """Encode the challenge to bytes."""
        issuer_name = self._issuer_name_bytes()
        origin_info = self._origin_info_bytes()
        return (
            self.token_type.to_bytes(TOKEN_TYPE_SIZE, byteorder="big")
            + len(issuer_name).to_bytes(2, byteorder="big")
            + issuer_name
            + bytes([len(self.redemption_context)])
            + self.redemption_context
            + len(origin_info).to_bytes(2, byteorder="big")
            + origin_info
        )

    def digest(self) -> bytes:
        """SHA-256 of the serialized challenge, as bound into AuthenticatorInput."""
        return hashlib.sha256(self.serialize()).digest()

    @classmethod
    def deserialize(cls, data: bytes) -> "TokenChallenge":
        """
        Decode bytes into a challenge.

        Args:
            data: Encoded challenge bytes

        Returns:
            Decoded TokenChallenge

        Raises:
            MalformedInputError: If data is truncated, has trailing bytes or
                names an unknown token type
        """
        reader = _Reader(data)

        token_type = reader.uint(2)
        issuer_name_bytes = reader.take(reader.uint(2))
        redemption_context = reader.take(reader.uint(1))
        origin_info_bytes = reader.take(reader.uint(2))

        if reader.remaining:
            raise MalformedInputError(
                f"Trailing data after token challenge: {reader.remaining} bytes"
            )

        try:
            issuer_name = issuer_name_bytes.decode("utf-8")
            origin_info_str = origin_info_bytes.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedInputError(f"Invalid UTF-8 in token challenge: {e}") from e

        origin_info = tuple(origin_info_str.split(ORIGIN_INFO_SEPARATOR)) if origin_info_str else None

        return cls(
            token_type=token_type,
            issuer_name=issuer_name,
            redemption_context=redemption_context,
            origin_info=origin_info,
        )


class _Reader:
    """Cursor over a byte string that fails on truncation."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._offset = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def take(self, size: int) -> bytes:
        if size > self.remaining:
            raise MalformedInputError(
                f"Data too short: needed {size} bytes at offset {self._offset}, "
                f"{self.remaining} available"
            )
        chunk = self._data[self._offset : self._offset + size]
        self._offset += size
        return chunk

    def uint(self, size: int) -> int:
        return int.from_bytes(self.take(size), byteorder="big")
