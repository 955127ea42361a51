"""Token type registry.

Each supported issuance mechanism is described by an immutable
TokenTypeEntry. The wire codec and the client/issuer read field sizes from
here, so a new mechanism needs a new entry and a provider, nothing else.
"""

from dataclasses import dataclass
from typing import Optional

from .types import UnsupportedTokenTypeError


@dataclass(frozen=True)
class TokenTypeEntry:
    """Parameters of one token type.

    Attributes:
        value: 16-bit token type identifier.
        name: Human readable name.
        nid: Size of the token key ID (hash of the issuer public key).
        nk: Size of the token authenticator.
        public_verifiable: Whether anyone holding the issuer public key can verify.
        public_metadata: Whether tokens carry public metadata.
        private_metadata: Whether tokens carry private metadata.
        ne: Serialized group element size (VOPRF only).
        ns: Serialized scalar size (VOPRF only).
    """

    value: int
    name: str
    nid: int
    nk: int
    public_verifiable: bool
    public_metadata: bool = False
    private_metadata: bool = False
    ne: Optional[int] = None
    ns: Optional[int] = None

    @property
    def blinded_msg_size(self) -> int:
        """Size of TokenRequest.blinded_msg.

        A VOPRF request carries a group element, a Blind RSA request an
        integer modulo the RSA modulus.
        """
        return self.ne if self.ne is not None else self.nk

    def __str__(self) -> str:
        return f"{self.name} (0x{self.value:04x})"


# Token Type VOPRF (P-384, SHA-384)
VOPRF = TokenTypeEntry(
    value=0x0001,
    name="VOPRF (P-384, SHA-384)",
    nid=32,
    nk=48,
    public_verifiable=False,
    ne=49,
    ns=48,
)

# Token Type Blind RSA (2048-bit)
BLIND_RSA = TokenTypeEntry(
    value=0x0002,
    name="Blind RSA (2048)",
    nid=32,
    nk=256,
    public_verifiable=True,
)

TOKEN_TYPES: dict[int, TokenTypeEntry] = {
    VOPRF.value: VOPRF,
    BLIND_RSA.value: BLIND_RSA,
}


def get_token_type(value: int) -> TokenTypeEntry:
    """
    Look up a registry entry by its 16-bit value.

    Args:
        value: Token type value

    Returns:
        The matching TokenTypeEntry

    Raises:
        UnsupportedTokenTypeError: If no entry is registered for value
    """
    try:
        return TOKEN_TYPES[value]
    except KeyError:
        raise UnsupportedTokenTypeError(value) from None
