"""Tests for wire structure encoding and decoding."""

import hashlib

import pytest

from privacypass.challenge import TokenChallenge
from privacypass.messages import (
    BlindRSATokenResponse,
    TokenRequest,
    VOPRFTokenResponse,
)
from privacypass.token import AuthenticatorInput, Token
from privacypass.token_types import BLIND_RSA, VOPRF, get_token_type
from privacypass.types import MalformedInputError, UnsupportedTokenTypeError
from .test_vectors import (
    EMPTY_CHALLENGE_HEX,
    ISSUER_NAME,
    ORIGIN_INFO,
    ZERO_REDEMPTION_CONTEXT,
)


def make_auth_input(token_type=BLIND_RSA) -> AuthenticatorInput:
    return AuthenticatorInput(
        token_type=token_type,
        nonce=bytes(range(32)),
        challenge_digest=bytes(range(32, 64)),
        token_key_id=bytes(range(64, 96)),
    )


class TestTokenTypes:
    """Registry lookups."""

    def test_lookup_known_types(self) -> None:
        """Both registered values resolve to their entries."""
        assert get_token_type(0x0001) is VOPRF
        assert get_token_type(0x0002) is BLIND_RSA

    def test_lookup_unknown_type(self) -> None:
        """Unregistered values raise UnsupportedTokenTypeError."""
        with pytest.raises(UnsupportedTokenTypeError):
            get_token_type(0x0003)

    def test_blinded_msg_sizes(self) -> None:
        """VOPRF blinds into Ne bytes, Blind RSA into Nk bytes."""
        assert VOPRF.blinded_msg_size == VOPRF.ne == 49
        assert BLIND_RSA.blinded_msg_size == BLIND_RSA.nk == 256

    def test_verifiability_flags(self) -> None:
        """Only Blind RSA is publicly verifiable; neither carries metadata."""
        assert VOPRF.public_verifiable is False
        assert BLIND_RSA.public_verifiable is True
        assert not VOPRF.public_metadata and not VOPRF.private_metadata
        assert not BLIND_RSA.public_metadata and not BLIND_RSA.private_metadata


class TestTokenChallenge:
    """TokenChallenge encode/decode."""

    def test_round_trip(self) -> None:
        """Encoding then decoding gives back the original."""
        original = TokenChallenge(
            token_type=VOPRF.value,
            issuer_name=ISSUER_NAME,
            redemption_context=ZERO_REDEMPTION_CONTEXT,
            origin_info=ORIGIN_INFO,
        )

        decoded = TokenChallenge.deserialize(original.serialize())

        assert decoded == original
        assert decoded.origin_info == tuple(ORIGIN_INFO)

    def test_known_encoding(self) -> None:
        """Challenge without context or origins has the expected bytes."""
        challenge = TokenChallenge(token_type=BLIND_RSA.value, issuer_name=ISSUER_NAME)
        assert challenge.serialize().hex() == EMPTY_CHALLENGE_HEX

    def test_origin_info_joined_with_comma(self) -> None:
        """Origins are comma-joined behind a two-byte length."""
        challenge = TokenChallenge(
            token_type=BLIND_RSA.value,
            issuer_name=ISSUER_NAME,
            redemption_context=ZERO_REDEMPTION_CONTEXT,
            origin_info=ORIGIN_INFO,
        )
        joined = b"origin.example.com,origin2.example.com"

        encoded = challenge.serialize()

        assert encoded.endswith(len(joined).to_bytes(2, "big") + joined)

    def test_digest_is_sha256_of_encoding(self) -> None:
        """digest is SHA-256 over the serialized challenge."""
        challenge = TokenChallenge(token_type=VOPRF.value, issuer_name=ISSUER_NAME)
        assert challenge.digest() == hashlib.sha256(challenge.serialize()).digest()

    def test_empty_origin_list_normalized(self) -> None:
        """An empty origin list is stored as None."""
        challenge = TokenChallenge(token_type=VOPRF.value, issuer_name=ISSUER_NAME, origin_info=[])
        assert challenge.origin_info is None

    def test_origin_info_detached_from_caller_list(self) -> None:
        """Changing the caller's list does not change the challenge."""
        origins = ["origin.example.com"]
        challenge = TokenChallenge(
            token_type=VOPRF.value, issuer_name=ISSUER_NAME, origin_info=origins
        )

        origins.append("a.com,b.com")

        assert challenge.origin_info == ("origin.example.com",)
        assert TokenChallenge.deserialize(challenge.serialize()) == challenge

    def test_challenge_is_hashable(self) -> None:
        """Challenges are hashable values, whatever sequence type built them."""
        first = TokenChallenge(
            token_type=VOPRF.value, issuer_name=ISSUER_NAME, origin_info=["o.example"]
        )
        second = TokenChallenge(
            token_type=VOPRF.value, issuer_name=ISSUER_NAME, origin_info=("o.example",)
        )

        assert first == second
        assert hash(first) == hash(second)

    def test_bare_string_origin_info_rejected(self) -> None:
        """A single string is not a list of origins."""
        with pytest.raises(MalformedInputError):
            TokenChallenge(token_type=VOPRF.value, issuer_name=ISSUER_NAME, origin_info="o.example")

    def test_empty_issuer_name_rejected(self) -> None:
        """Issuer name must be at least one byte."""
        with pytest.raises(MalformedInputError):
            TokenChallenge(token_type=VOPRF.value, issuer_name="")

    def test_empty_issuer_name_rejected_at_parse(self) -> None:
        """A zero-length issuer name on the wire is rejected."""
        with pytest.raises(MalformedInputError):
            TokenChallenge.deserialize(bytes.fromhex("0001" "0000" "00" "0000"))

    def test_invalid_redemption_context_length(self) -> None:
        """Redemption context must be 0 or 32 bytes."""
        with pytest.raises(MalformedInputError):
            TokenChallenge(
                token_type=VOPRF.value, issuer_name=ISSUER_NAME, redemption_context=bytes(16)
            )

    def test_origin_with_separator_rejected(self) -> None:
        """Origins containing a comma are rejected."""
        with pytest.raises(MalformedInputError):
            TokenChallenge(
                token_type=VOPRF.value, issuer_name=ISSUER_NAME, origin_info=["a.com,b.com"]
            )

    def test_unknown_token_type_rejected(self) -> None:
        """Challenges for unregistered types are rejected."""
        with pytest.raises(UnsupportedTokenTypeError):
            TokenChallenge(token_type=0x00FF, issuer_name=ISSUER_NAME)

    def test_truncated_data_rejected(self) -> None:
        """A truncated challenge is rejected."""
        encoded = bytes.fromhex(EMPTY_CHALLENGE_HEX)
        with pytest.raises(MalformedInputError):
            TokenChallenge.deserialize(encoded[:-1])

    def test_trailing_data_rejected(self) -> None:
        """Bytes after the challenge are rejected."""
        encoded = bytes.fromhex(EMPTY_CHALLENGE_HEX)
        with pytest.raises(MalformedInputError):
            TokenChallenge.deserialize(encoded + b"\x00")


class TestAuthenticatorInput:
    """AuthenticatorInput encode/decode."""

    def test_round_trip(self) -> None:
        """Encoding then decoding gives back the original."""
        original = make_auth_input()

        encoded = original.serialize()
        decoded = AuthenticatorInput.deserialize(encoded)

        assert len(encoded) == 2 + 32 + 32 + 32
        assert encoded[:2] == b"\x00\x02"
        assert decoded == original

    def test_type_value_mirrors_entry(self) -> None:
        """type_value defaults to the entry value."""
        auth_input = make_auth_input(VOPRF)
        assert auth_input.type_value == VOPRF.value

    def test_type_value_mismatch_rejected(self) -> None:
        """An explicit type_value must match the entry."""
        with pytest.raises(MalformedInputError):
            AuthenticatorInput(
                token_type=VOPRF,
                nonce=bytes(32),
                challenge_digest=bytes(32),
                token_key_id=bytes(32),
                type_value=BLIND_RSA.value,
            )

    @pytest.mark.parametrize("field", ["nonce", "challenge_digest", "token_key_id"])
    def test_short_field_rejected(self, field) -> None:
        """Fixed-size fields must have their exact size."""
        values = dict(nonce=bytes(32), challenge_digest=bytes(32), token_key_id=bytes(32))
        values[field] = bytes(31)

        with pytest.raises(MalformedInputError):
            AuthenticatorInput(token_type=VOPRF, **values)


class TestToken:
    """Token encode/decode."""

    @pytest.mark.parametrize("token_type", [VOPRF, BLIND_RSA])
    def test_round_trip(self, token_type) -> None:
        """Encoding then decoding gives back the original."""
        original = Token(
            token_type=token_type,
            auth_input=make_auth_input(token_type),
            authenticator=bytes([0x5A] * token_type.nk),
        )

        encoded = original.serialize()
        decoded = Token.deserialize(encoded)

        assert len(encoded) == 98 + token_type.nk
        assert decoded == original

    def test_wrong_authenticator_length_rejected(self) -> None:
        """Authenticator must be Nk bytes."""
        with pytest.raises(MalformedInputError):
            Token(token_type=VOPRF, auth_input=make_auth_input(VOPRF), authenticator=bytes(47))

    def test_mismatched_auth_input_rejected(self) -> None:
        """Authenticator input must be of the token's type."""
        with pytest.raises(MalformedInputError):
            Token(token_type=VOPRF, auth_input=make_auth_input(BLIND_RSA), authenticator=bytes(48))

    def test_truncated_token_rejected(self) -> None:
        """A truncated token is rejected."""
        token = Token(
            token_type=BLIND_RSA,
            auth_input=make_auth_input(),
            authenticator=bytes(256),
        )
        with pytest.raises(MalformedInputError):
            Token.deserialize(token.serialize()[:-1])


class TestTokenRequest:
    """TokenRequest encode/decode."""

    @pytest.mark.parametrize("token_type", [VOPRF, BLIND_RSA])
    def test_round_trip(self, token_type) -> None:
        """Encoding then decoding gives back the original."""
        original = TokenRequest(
            token_type=token_type.value,
            truncated_token_key_id=0xAB,
            blinded_msg=bytes([7] * token_type.blinded_msg_size),
        )

        encoded = original.serialize()
        decoded = TokenRequest.deserialize(encoded, token_type)

        assert encoded[:3] == token_type.value.to_bytes(2, "big") + b"\xab"
        assert len(encoded) == 3 + token_type.blinded_msg_size
        assert decoded == original

    def test_wrong_length_rejected_at_construction(self) -> None:
        """Blinded message size is checked at construction."""
        with pytest.raises(MalformedInputError):
            TokenRequest(token_type=BLIND_RSA.value, truncated_token_key_id=0, blinded_msg=bytes(49))

    def test_wrong_length_rejected_at_parse(self) -> None:
        """Blinded message size is checked when decoding."""
        encoded = b"\x00\x01\x00" + bytes(VOPRF.ne + 1)
        with pytest.raises(MalformedInputError):
            TokenRequest.deserialize(encoded)

    def test_type_mismatch_rejected(self) -> None:
        """Decoding with a pinned type rejects other types."""
        request = TokenRequest(token_type=VOPRF.value, truncated_token_key_id=1, blinded_msg=bytes(49))
        with pytest.raises(MalformedInputError):
            TokenRequest.deserialize(request.serialize(), BLIND_RSA)

    def test_truncated_key_id_range(self) -> None:
        """Truncated key ID must fit one byte."""
        with pytest.raises(MalformedInputError):
            TokenRequest(token_type=VOPRF.value, truncated_token_key_id=256, blinded_msg=bytes(49))


class TestTokenResponses:
    """VOPRF and Blind RSA TokenResponse encode/decode."""

    def test_voprf_round_trip(self) -> None:
        """VOPRF responses survive encoding."""
        original = VOPRFTokenResponse(evaluate_msg=bytes([1] * 49), evaluate_proof=bytes([2] * 96))

        decoded = VOPRFTokenResponse.deserialize(original.serialize())

        assert decoded == original

    def test_voprf_short_proof_rejected_at_construction(self) -> None:
        """Proof must be 2 * Ns bytes."""
        with pytest.raises(MalformedInputError):
            VOPRFTokenResponse(evaluate_msg=bytes(49), evaluate_proof=bytes(95))

    def test_voprf_wrong_length_rejected_at_parse(self) -> None:
        """VOPRF response length is checked when decoding."""
        with pytest.raises(MalformedInputError):
            VOPRFTokenResponse.deserialize(bytes(49 + 95))

    def test_blind_rsa_round_trip(self) -> None:
        """Blind RSA responses survive encoding."""
        original = BlindRSATokenResponse(blind_sig=bytes(range(256)))

        decoded = BlindRSATokenResponse.deserialize(original.serialize())

        assert decoded == original

    def test_blind_rsa_wrong_length_rejected(self) -> None:
        """Blind signature must be Nk bytes."""
        with pytest.raises(MalformedInputError):
            BlindRSATokenResponse(blind_sig=bytes(255))
        with pytest.raises(MalformedInputError):
            BlindRSATokenResponse.deserialize(bytes(257))
