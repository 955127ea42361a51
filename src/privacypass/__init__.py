"""
privacypass - Privacy Pass token issuance

Python implementation of the Privacy Pass client and issuer for the
VOPRF (P-384, SHA-384) and Blind RSA (2048-bit) token types.
"""

from .types import (
    NONCE_SIZE,
    PrivacyPassError,
    MalformedInputError,
    UnsupportedTokenTypeError,
    UnknownTokenKeyError,
    MechanismError,
    ProofVerificationError,
    SessionStateError,
)
from .token_types import TokenTypeEntry, VOPRF, BLIND_RSA, TOKEN_TYPES, get_token_type
from .challenge import TokenChallenge
from .token import AuthenticatorInput, Token
from .messages import (
    TokenRequest,
    TokenResponse,
    VOPRFTokenResponse,
    BlindRSATokenResponse,
)
from .keys import (
    token_key_id,
    truncate_token_key_id,
    to_rsassa_pss_spki,
    to_rsa_encryption_spki,
    rsa_public_key_bytes,
    load_rsa_public_key,
)
from .providers import (
    MechanismProvider,
    KeyPair,
    BlindResult,
    VOPRFProvider,
    VOPRFFinalizeData,
    BlindRSAProvider,
    BlindRSAMode,
    BlindRSAKeyParams,
    BlindRSASecret,
)
from .client import Client, ClientSession, SessionStatus
from .issuer import Issuer
from .verifier import verify_token, verify_private_token

__version__ = "0.1.0"

__all__ = [
    # Types
    "NONCE_SIZE",
    # Errors
    "PrivacyPassError",
    "MalformedInputError",
    "UnsupportedTokenTypeError",
    "UnknownTokenKeyError",
    "MechanismError",
    "ProofVerificationError",
    "SessionStateError",
    # Token types
    "TokenTypeEntry",
    "VOPRF",
    "BLIND_RSA",
    "TOKEN_TYPES",
    "get_token_type",
    # Wire structures
    "TokenChallenge",
    "AuthenticatorInput",
    "Token",
    "TokenRequest",
    "TokenResponse",
    "VOPRFTokenResponse",
    "BlindRSATokenResponse",
    # Keys
    "token_key_id",
    "truncate_token_key_id",
    "to_rsassa_pss_spki",
    "to_rsa_encryption_spki",
    "rsa_public_key_bytes",
    "load_rsa_public_key",
    # Providers
    "MechanismProvider",
    "KeyPair",
    "BlindResult",
    "VOPRFProvider",
    "VOPRFFinalizeData",
    "BlindRSAProvider",
    "BlindRSAMode",
    "BlindRSAKeyParams",
    "BlindRSASecret",
    # Client / Issuer
    "Client",
    "ClientSession",
    "SessionStatus",
    "Issuer",
    # Verification
    "verify_token",
    "verify_private_token",
]
