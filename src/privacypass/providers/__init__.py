"""Mechanism providers, one per token type."""

from .base import BlindResult, KeyPair, MechanismProvider
from .blind_rsa import (
    BlindRSAKeyParams,
    BlindRSAMode,
    BlindRSAProvider,
    BlindRSASecret,
    emsa_pss_encode,
)
from .voprf import CONTEXT_STRING, VOPRFFinalizeData, VOPRFProvider

__all__ = [
    "BlindResult",
    "KeyPair",
    "MechanismProvider",
    "BlindRSAKeyParams",
    "BlindRSAMode",
    "BlindRSAProvider",
    "BlindRSASecret",
    "emsa_pss_encode",
    "CONTEXT_STRING",
    "VOPRFFinalizeData",
    "VOPRFProvider",
]
