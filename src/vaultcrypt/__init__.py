"""
Local string encryption core (educational).

This package provides:
- AES-256 block transform and key schedule (pure Python).
- CBC chaining with PKCS#7 padding and base64 text tokens.
- Passphrase-to-key/IV derivation (legacy mixing scheme or PBKDF2-HMAC-SHA256).
- A closed set of algorithm variants (AES, XOR, none) selected by config.

DISCLAIMER: no integrity protection and no constant-time guarantees. Tokens
under one key share a fixed IV, so equal plaintexts give equal tokens.
"""

from .aes import AES256, expand_key
from .cipher import SimpleCipher, new_cipher
from .config import CipherConfig
from .errors import (
    CipherError,
    InvalidCiphertextLength,
    InvalidIVLength,
    InvalidKeyLength,
    InvalidPadding,
    InvalidToken,
)
from .kdf import KeyMaterial, derive_key_material, generate_key_material, pbkdf2_sha256
from .strategy import Strategy, build_strategy, describe

__all__ = [
    "AES256",
    "expand_key",
    "SimpleCipher",
    "new_cipher",
    "CipherConfig",
    "CipherError",
    "InvalidCiphertextLength",
    "InvalidIVLength",
    "InvalidKeyLength",
    "InvalidPadding",
    "InvalidToken",
    "KeyMaterial",
    "derive_key_material",
    "generate_key_material",
    "pbkdf2_sha256",
    "Strategy",
    "build_strategy",
    "describe",
]
