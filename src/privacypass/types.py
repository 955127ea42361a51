"""Type definitions for Privacy Pass."""

# Protocol constants
NONCE_SIZE = 32
CHALLENGE_DIGEST_SIZE = 32
REDEMPTION_CONTEXT_SIZE = 32
TOKEN_TYPE_SIZE = 2
TRUNCATED_KEY_ID_SIZE = 1

# Separator used to join origin names in a TokenChallenge
ORIGIN_INFO_SEPARATOR = ","

# Upper bounds of the length prefixes
MAX_U8 = 0xFF
MAX_U16 = 0xFFFF


# Exception types
class PrivacyPassError(Exception):
    """Base exception for Privacy Pass errors."""
    pass


class MalformedInputError(PrivacyPassError):
    """Wire structure has a wrong type tag or a wrong field length."""
    pass


class UnsupportedTokenTypeError(MalformedInputError):
    """Token type is unknown or not handled by this party."""

    def __init__(self, token_type: int, reason: str = "unsupported token type") -> None:
        self.token_type = token_type
        super().__init__(f"{reason}: 0x{token_type:04x}")


class UnknownTokenKeyError(MalformedInputError):
    """Truncated token key ID does not match any issuer key."""

    def __init__(self, truncated_token_key_id: int) -> None:
        self.truncated_token_key_id = truncated_token_key_id
        super().__init__(
            f"No issuer key matches truncated token key ID 0x{truncated_token_key_id:02x}"
        )


class MechanismError(PrivacyPassError):
    """Blind, evaluate, sign or finalize operation failed."""
    pass


class ProofVerificationError(PrivacyPassError):
    """VOPRF evaluation proof did not verify."""
    pass


class SessionStateError(PrivacyPassError):
    """Client session used outside of its single request/finalize cycle."""
    pass
