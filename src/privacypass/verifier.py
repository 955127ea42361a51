"""
Token verification without session state.

Blind RSA tokens can be checked by anyone holding the issuer public key.
VOPRF tokens need the issuer private key, so verify_private_token is only
useful to the issuer itself.
"""

from typing import Optional, Union

from cryptography.hazmat.primitives.asymmetric import rsa

from .providers.blind_rsa import BlindRSAMode, BlindRSAProvider
from .providers.voprf import VOPRFProvider
from .token import Token
from .token_types import BLIND_RSA, VOPRF
from .types import UnsupportedTokenTypeError


async def verify_token(
    token: Token,
    issuer_public_key: Union[bytes, rsa.RSAPublicKey],
    mode: BlindRSAMode = BlindRSAMode.PSS_ZERO,
) -> bool:
    """
    Verify a publicly verifiable token.

    Args:
        token: Token to check
        issuer_public_key: Issuer key as SubjectPublicKeyInfo bytes or a key object
        mode: Salt mode the issuer signs with

    Returns:
        True if the authenticator is a valid signature over the token's
        authenticator input, False otherwise

    Raises:
        UnsupportedTokenTypeError: If the token type is not publicly verifiable
        MechanismError: If the public key cannot be imported
    """
    if token.token_type != BLIND_RSA:
        raise UnsupportedTokenTypeError(token.token_type.value, "token type is not publicly verifiable")

    provider = BlindRSAProvider(mode)
    return await provider.verify(issuer_public_key, token.auth_input.serialize(), token.authenticator)


async def verify_private_token(
    token: Token,
    issuer_private_key: bytes,
    provider: Optional[VOPRFProvider] = None,
) -> bool:
    """
    Verify a privately verifiable token with the issuer private key.

    Returns:
        True if the authenticator matches the PRF output, False otherwise

    Raises:
        UnsupportedTokenTypeError: If the token is not a VOPRF token
        MechanismError: If the private key is invalid
    """
    if token.token_type != VOPRF:
        raise UnsupportedTokenTypeError(token.token_type.value, "token type is not VOPRF")

    provider = provider or VOPRFProvider()
    return await provider.verify(issuer_private_key, token.auth_input.serialize(), token.authenticator)
