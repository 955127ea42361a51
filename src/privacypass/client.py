"""
Privacy Pass client.

The Client turns a TokenChallenge into a TokenRequest, and the issuer's
TokenResponse into a Token, for the single mechanism of its provider.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from .challenge import TokenChallenge
from .keys import token_key_id, truncate_token_key_id
from .messages import TokenRequest, TokenResponse
from .providers.base import MechanismProvider
from .token import AuthenticatorInput, Token
from .types import (
    NONCE_SIZE,
    MalformedInputError,
    PrivacyPassError,
    SessionStateError,
    UnsupportedTokenTypeError,
)

logger = logging.getLogger(__name__)


class SessionStatus(Enum):
    """Lifecycle of one issuance session."""
    REQUEST_CREATED = "request_created"
    FINALIZED = "finalized"
    FAILED = "failed"


@dataclass
class ClientSession:
    """Per-request client state, consumed by exactly one finalize call.

    Holds the provider's blinding secret, so it must stay in the process
    that created it.
    """
    auth_input: AuthenticatorInput
    secret: Any
    token_request: TokenRequest
    status: SessionStatus = SessionStatus.REQUEST_CREATED
    token: Optional[Token] = field(default=None, repr=False)

    @property
    def is_open(self) -> bool:
        """Whether the session still awaits its TokenResponse."""
        return self.status is SessionStatus.REQUEST_CREATED


class Client:
    """
    Client side of the issuance protocol.

    Example usage:
        ```python
        client = Client(BlindRSAProvider(BlindRSAMode.PSS))

        session, request = await client.create_token_request(challenge, issuer_public_key)
        response = await issuer.issue(request)  # over the caller's transport
        token = await client.finalize(session, response)
        ```

    Sessions are independent: a client may have many in flight. A retried
    transport request must reuse its session instead of creating a new one.
    """

    def __init__(
        self,
        provider: MechanismProvider,
        random_bytes: Optional[Callable[[int], bytes]] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            provider: Mechanism provider for the token type this client handles.
            random_bytes: Secure random source for nonces (default: os.urandom).
        """
        self.provider = provider
        self._random_bytes = random_bytes or os.urandom

    @property
    def token_type(self):
        """Registry entry of the provider's token type."""
        return self.provider.token_type

    async def create_token_request(
        self, challenge: TokenChallenge, issuer_public_key: bytes
    ) -> tuple[ClientSession, TokenRequest]:
        """
        Build a TokenRequest for a challenge.

        Args:
            challenge: Challenge received from the origin.
            issuer_public_key: Issuer public key in its wire encoding.

        Returns:
            The session to pass to finalize, and the request to send.

        Raises:
            UnsupportedTokenTypeError: If the challenge is for another token type.
            MechanismError: If blinding fails.
        """
        if challenge.token_type != self.token_type.value:
            raise UnsupportedTokenTypeError(
                challenge.token_type, f"client handles {self.token_type}, challenge asks for"
            )

        nonce = self._random_bytes(NONCE_SIZE)
        if len(nonce) != NONCE_SIZE:
            raise MalformedInputError(f"Random source returned {len(nonce)} bytes")

        key_id = token_key_id(issuer_public_key)
        auth_input = AuthenticatorInput(
            token_type=self.token_type,
            nonce=nonce,
            challenge_digest=challenge.digest(),
            token_key_id=key_id,
        )

        blinded = await self.provider.blind(issuer_public_key, auth_input.serialize())

        request = TokenRequest(
            token_type=self.token_type.value,
            truncated_token_key_id=truncate_token_key_id(key_id),
            blinded_msg=blinded.blinded_msg,
        )
        logger.debug(
            "Created token request type=0x%04x key_id=0x%02x",
            request.token_type,
            request.truncated_token_key_id,
        )

        session = ClientSession(auth_input=auth_input, secret=blinded.secret, token_request=request)
        return session, request

    async def finalize(self, session: ClientSession, response: TokenResponse) -> Token:
        """
        Turn the issuer's response into a Token.

        Args:
            session: Session returned by create_token_request.
            response: TokenResponse from the issuer.

        Returns:
            The finalized Token.

        Raises:
            SessionStateError: If the session was already finalized or failed.
            MalformedInputError: If the response is for another token type.
            ProofVerificationError: If the VOPRF proof does not verify.
            MechanismError: If unblinding fails.
        """
        if not session.is_open:
            raise SessionStateError(f"Session is {session.status.value}, expected request_created")

        if not isinstance(response, self.provider.response_type):
            raise MalformedInputError(
                f"Expected {self.provider.response_type.__name__}, got {type(response).__name__}"
            )

        try:
            authenticator = await self.provider.finalize(session.secret, response)
        except PrivacyPassError:
            session.status = SessionStatus.FAILED
            raise

        token = Token(
            token_type=self.token_type,
            auth_input=session.auth_input,
            authenticator=authenticator,
        )
        session.status = SessionStatus.FINALIZED
        session.token = token
        logger.debug("Finalized token type=0x%04x", self.token_type.value)

        return token
