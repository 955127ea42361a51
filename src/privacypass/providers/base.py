"""
Mechanism provider interface.

A provider wraps the cryptographic operations of one token type. Client and
Issuer receive a provider at construction and never switch mechanism during
a session.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from ..messages import TokenResponse
from ..token_types import TokenTypeEntry

SecretT = TypeVar("SecretT")


@dataclass(frozen=True)
class KeyPair:
    """Issuer key pair. public_key is the wire encoding hashed into the token key ID."""
    private_key: Any
    public_key: bytes


@dataclass(frozen=True)
class BlindResult(Generic[SecretT]):
    """Output of blinding: the request payload and the client-only secret."""
    blinded_msg: bytes
    secret: SecretT


class MechanismProvider(ABC, Generic[SecretT]):
    """Abstract base class for the operations of one token type."""

    token_type: TokenTypeEntry
    response_type: type

    @abstractmethod
    async def key_gen(self) -> KeyPair:
        """Generate an issuer key pair."""
        pass

    @abstractmethod
    async def blind(self, public_key: bytes, token_input: bytes) -> BlindResult[SecretT]:
        """Blind a token input for the issuer holding public_key."""
        pass

    @abstractmethod
    async def issue(self, private_key: Any, blinded_msg: bytes) -> TokenResponse:
        """Evaluate or sign a blinded message."""
        pass

    @abstractmethod
    async def finalize(self, secret: SecretT, response: TokenResponse) -> bytes:
        """Unblind an issuer response into the token authenticator."""
        pass

    @abstractmethod
    async def verify(self, key: Any, token_input: bytes, authenticator: bytes) -> bool:
        """Check an authenticator over token_input."""
        pass

    def deserialize_response(self, data: bytes) -> TokenResponse:
        """Decode an issuer response of this provider's token type."""
        return self.response_type.deserialize(data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.token_type})"
