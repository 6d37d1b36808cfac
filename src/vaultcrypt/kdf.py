"""
Passphrase-based key/IV derivation.

Two schemes produce the same shape (passphrase + salt -> 32-byte key and
16-byte IV):

- ``"mix"``: the legacy iterative mixing function. It is NOT a reviewed key
  derivation primitive; it is the default so tokens stored under it remain
  readable.
- ``"pbkdf2"``: PBKDF2-HMAC-SHA256 via hashlib.

Note that the IV is derived from the same inputs as the key, so every message
under one passphrase/salt shares a fixed IV. Equal plaintexts therefore give
equal ciphertexts.
"""
from __future__ import annotations

import hashlib
import logging
import secrets
from dataclasses import dataclass
from typing import Optional, Union

from .errors import InvalidIVLength, InvalidKeyLength

logger = logging.getLogger(__name__)

KEY_SIZE = 32
IV_SIZE = 16
MATERIAL_SIZE = KEY_SIZE + IV_SIZE

MIX_ITERATIONS = 1000
PBKDF2_ITERATIONS = 200_000

_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193
_MASK32 = 0xFFFFFFFF

SCHEMES = ("mix", "pbkdf2")


@dataclass(frozen=True)
class KeyMaterial:
    key: bytes
    iv: bytes

    def __post_init__(self) -> None:
        if len(self.key) != KEY_SIZE:
            raise InvalidKeyLength(len(self.key), KEY_SIZE)
        if len(self.iv) != IV_SIZE:
            raise InvalidIVLength(len(self.iv), IV_SIZE)

    @classmethod
    def from_bytes(cls, blob: bytes) -> "KeyMaterial":
        if len(blob) != MATERIAL_SIZE:
            raise ValueError(f"key material must be {MATERIAL_SIZE} bytes")
        return cls(key=bytes(blob[:KEY_SIZE]), iv=bytes(blob[KEY_SIZE:]))

    def to_bytes(self) -> bytes:
        return self.key + self.iv


def _as_bytes(value: Union[str, bytes, bytearray], name: str) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    raise TypeError(f"{name} must be str or bytes")


def mix_derive(
    passphrase: Union[str, bytes],
    salt: bytes,
    iterations: int = MIX_ITERATIONS,
    length: int = MATERIAL_SIZE,
) -> bytes:
    """Legacy mixing derivation.

    Each iteration advances a 32-bit FNV-1a style accumulator, folds every
    byte of the working buffer with a byte of that accumulator and a
    position-dependent bit rotation, then XORs the first ``length`` bytes of
    the buffer into the result. A final pass XORs each result byte with the
    sum of its two following neighbours (wrapping).
    """
    pw = _as_bytes(passphrase, "passphrase")
    salt = _as_bytes(salt, "salt")
    if iterations <= 0:
        raise ValueError("iterations must be positive")
    if length <= 0:
        raise ValueError("length must be positive")

    seed = pw + salt or b"\x00"
    buf = bytearray((seed * (length // len(seed) + 1))[: max(length, len(seed))])
    result = bytearray(length)
    h = _FNV_OFFSET
    for i in range(iterations):
        h = ((h ^ i) * _FNV_PRIME) & _MASK32
        for j in range(len(buf)):
            v = buf[j] ^ ((h >> (8 * (j & 3))) & 0xFF)
            s = (i + j) & 7
            buf[j] = ((v << s) | (v >> (8 - s))) & 0xFF
            h = ((h ^ buf[j]) * _FNV_PRIME) & _MASK32
        for k in range(length):
            result[k] ^= buf[k]

    for k in range(length):
        result[k] ^= (result[(k + 1) % length] + result[(k + 2) % length]) & 0xFF
    return bytes(result)


def pbkdf2_sha256(password: bytes, salt: bytes, iterations: int, dklen: int = KEY_SIZE) -> bytes:
    if not isinstance(password, (bytes, bytearray)):
        raise TypeError("password must be bytes")
    if not isinstance(salt, (bytes, bytearray)):
        raise TypeError("salt must be bytes")
    if iterations <= 0:
        raise ValueError("iterations must be positive")
    return hashlib.pbkdf2_hmac("sha256", password, salt, iterations, dklen=dklen)


def derive_key_material(
    passphrase: Union[str, bytes],
    salt: bytes,
    *,
    scheme: str = "mix",
    iterations: Optional[int] = None,
) -> KeyMaterial:
    """Derive a key and IV from ``passphrase`` and ``salt`` using ``scheme``."""
    if scheme == "mix":
        rounds = MIX_ITERATIONS if iterations is None else iterations
        blob = mix_derive(passphrase, salt, rounds, MATERIAL_SIZE)
    elif scheme == "pbkdf2":
        rounds = PBKDF2_ITERATIONS if iterations is None else iterations
        blob = pbkdf2_sha256(_as_bytes(passphrase, "passphrase"), _as_bytes(salt, "salt"), rounds, MATERIAL_SIZE)
    else:
        raise ValueError(f"unknown derivation scheme: {scheme}")
    logger.debug("Derived key material: scheme=%s, iterations=%d", scheme, rounds)
    return KeyMaterial.from_bytes(blob)


def generate_key_material() -> KeyMaterial:
    """Fresh random key and IV from the OS CSPRNG."""
    return KeyMaterial(key=secrets.token_bytes(KEY_SIZE), iv=secrets.token_bytes(IV_SIZE))
