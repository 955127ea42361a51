"""
Privacy Pass issuer.

The Issuer answers TokenRequests for its key and verifies tokens it issued.
It keeps no per-request state: tracking redeemed tokens belongs to the
surrounding redemption store.
"""

import logging
from typing import Any

from .keys import token_key_id, truncate_token_key_id
from .messages import TokenRequest, TokenResponse
from .providers.base import MechanismProvider
from .token import Token
from .types import UnknownTokenKeyError, UnsupportedTokenTypeError

logger = logging.getLogger(__name__)


class Issuer:
    """
    Issuer side of the issuance protocol.

    Example usage:
        ```python
        provider = VOPRFProvider()
        keys = await provider.key_gen()
        issuer = Issuer("issuer.com", keys.private_key, keys.public_key, provider)

        response = await issuer.issue(request)
        valid = await issuer.verify(token)
        ```
    """

    def __init__(
        self,
        name: str,
        private_key: Any,
        public_key: bytes,
        provider: MechanismProvider,
    ) -> None:
        """
        Initialize the issuer.

        Args:
            name: Issuer name, as used in TokenChallenge.issuer_name.
            private_key: Private key in the provider's representation.
            public_key: Public key in its wire encoding.
            provider: Mechanism provider for the issuer's token type.
        """
        self.name = name
        self.public_key = public_key
        self.provider = provider
        self._private_key = private_key
        self.token_key_id = token_key_id(public_key)

    @property
    def token_type(self):
        """Registry entry of the provider's token type."""
        return self.provider.token_type

    @property
    def truncated_token_key_id(self) -> int:
        """Key selection hint clients put in their requests."""
        return truncate_token_key_id(self.token_key_id)

    async def issue(self, request: TokenRequest) -> TokenResponse:
        """
        Evaluate or sign the blinded message of a request.

        Args:
            request: TokenRequest from a client.

        Returns:
            The TokenResponse for the client to finalize.

        Raises:
            UnsupportedTokenTypeError: If the request is for another token type.
            UnknownTokenKeyError: If the request targets another issuer key.
            MechanismError: If evaluation or signing fails.
        """
        if request.token_type != self.token_type.value:
            raise UnsupportedTokenTypeError(
                request.token_type, f"issuer {self.name} handles {self.token_type}, request is"
            )

        if request.truncated_token_key_id != self.truncated_token_key_id:
            logger.warning(
                "Rejected request for unknown key id=0x%02x", request.truncated_token_key_id
            )
            raise UnknownTokenKeyError(request.truncated_token_key_id)

        response = await self.provider.issue(self._private_key, request.blinded_msg)
        logger.debug("Issued response type=0x%04x issuer=%s", request.token_type, self.name)

        return response

    async def verify(self, token: Token) -> bool:
        """
        Check that a token was issued under this issuer's key.

        VOPRF tokens are checked with the private key, Blind RSA tokens
        with the public key.

        Returns:
            True if the token is valid, False otherwise.
        """
        if token.token_type != self.token_type:
            return False

        if token.auth_input.token_key_id != self.token_key_id:
            return False

        key = self.public_key if self.token_type.public_verifiable else self._private_key
        return await self.provider.verify(key, token.auth_input.serialize(), token.authenticator)
