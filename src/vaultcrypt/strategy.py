"""
Algorithm selection for callers that store tokens from more than one scheme.

The set of variants is closed: ``build_strategy`` maps the configured
algorithm name to a :class:`Strategy` record. Callers use the record's
``encrypt``/``decrypt`` callables and metadata without knowing which variant
they hold.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .cipher import SimpleCipher
from .config import CipherConfig
from .kdf import KeyMaterial

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Strategy:
    kind: str  # "aes-256-cbc" | "xor" | "none"
    algorithm_name: str
    key_strength: int  # bits
    needs_initialization: bool
    encrypt: Callable[[bytes], str]
    decrypt: Callable[[str], bytes]


def _xor_bytes(key: bytes, data: bytes) -> bytes:
    return bytes(b ^ key[i % len(key)] for i, b in enumerate(data))


def xor_encrypt(key: bytes, plaintext: bytes) -> str:
    if not plaintext:
        return ""
    return _xor_bytes(key, plaintext).hex()


def xor_decrypt(key: bytes, token: str) -> bytes:
    if not token:
        return b""
    return _xor_bytes(key, bytes.fromhex(token))


def _passthrough_encrypt(plaintext: bytes) -> str:
    # undecodable bytes survive as lone surrogates
    return bytes(plaintext).decode("utf-8", errors="surrogateescape")


def _passthrough_decrypt(token: str) -> bytes:
    return token.encode("utf-8", errors="surrogateescape")


def build_strategy(config: Optional[CipherConfig] = None, material: Optional[KeyMaterial] = None) -> Strategy:
    cfg = config or CipherConfig()
    if cfg.algorithm == "aes-256-cbc":
        if material is None:
            raise ValueError("aes-256-cbc requires key material")
        cipher = SimpleCipher.from_material(material, strict_decode=cfg.strict_decode)
        strategy = Strategy(
            kind=cfg.algorithm,
            algorithm_name=cipher.algorithm_name,
            key_strength=cipher.key_strength,
            needs_initialization=True,
            encrypt=cipher.encrypt,
            decrypt=cipher.decrypt,
        )
    elif cfg.algorithm == "xor":
        key = cfg.xor_key.encode("utf-8")
        strategy = Strategy(
            kind=cfg.algorithm,
            algorithm_name="XOR (educational only, not secure)",
            key_strength=len(key) * 8,
            needs_initialization=False,
            encrypt=lambda data: xor_encrypt(key, data),
            decrypt=lambda token: xor_decrypt(key, token),
        )
    else:
        strategy = Strategy(
            kind="none",
            algorithm_name="None (plaintext)",
            key_strength=0,
            needs_initialization=False,
            encrypt=_passthrough_encrypt,
            decrypt=_passthrough_decrypt,
        )
    logger.debug("Strategy selected: %s", strategy.kind)
    return strategy


def describe(strategy: Strategy) -> str:
    text = f"Algorithm: {strategy.algorithm_name}"
    if strategy.key_strength > 0:
        text += f" | Key Strength: {strategy.key_strength} bits"
    return text
