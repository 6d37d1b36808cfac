"""PKCS#7 padding and cipher-block chaining over a 16-byte block transform."""
from __future__ import annotations

import logging
from typing import Protocol

from .errors import InvalidCiphertextLength, InvalidIVLength, InvalidPadding

logger = logging.getLogger(__name__)

BLOCK_SIZE = 16


class BlockTransform(Protocol):
    def encrypt_block(self, block: bytes) -> bytes: ...

    def decrypt_block(self, block: bytes) -> bytes: ...


def _xor(a: bytes, b: bytes) -> bytes:
    return bytes(x ^ y for x, y in zip(a, b))


def pkcs7_pad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    # always 1..block_size bytes, a full block when already aligned
    pad_len = block_size - (len(data) % block_size)
    return bytes(data) + bytes([pad_len] * pad_len)


def pkcs7_unpad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    if not data:
        raise InvalidPadding("cannot unpad empty data")
    pad_len = data[-1]
    if pad_len < 1 or pad_len > block_size or pad_len > len(data):
        raise InvalidPadding(f"invalid pad length {pad_len}")
    if data[-pad_len:] != bytes([pad_len] * pad_len):
        raise InvalidPadding("inconsistent padding bytes")
    return bytes(data[:-pad_len])


def cbc_encrypt(transform: BlockTransform, iv: bytes, data: bytes) -> bytes:
    """Chain already-padded ``data`` through ``transform`` starting from ``iv``."""
    if len(iv) != BLOCK_SIZE:
        raise InvalidIVLength(len(iv), BLOCK_SIZE)
    if len(data) % BLOCK_SIZE != 0:
        raise ValueError("plaintext must be padded to a multiple of 16 bytes")
    out = bytearray()
    prev = bytes(iv)
    for i in range(0, len(data), BLOCK_SIZE):
        enc = transform.encrypt_block(_xor(data[i:i + BLOCK_SIZE], prev))
        out.extend(enc)
        prev = enc
    logger.debug("cbc_encrypt: %d blocks", len(data) // BLOCK_SIZE)
    return bytes(out)


def cbc_decrypt(transform: BlockTransform, iv: bytes, data: bytes) -> bytes:
    """Reverse :func:`cbc_encrypt`. Padding is left in place."""
    if len(iv) != BLOCK_SIZE:
        raise InvalidIVLength(len(iv), BLOCK_SIZE)
    if len(data) % BLOCK_SIZE != 0:
        raise InvalidCiphertextLength(len(data), BLOCK_SIZE)
    out = bytearray()
    prev = bytes(iv)
    for i in range(0, len(data), BLOCK_SIZE):
        block = bytes(data[i:i + BLOCK_SIZE])
        out.extend(_xor(transform.decrypt_block(block), prev))
        prev = block
    logger.debug("cbc_decrypt: %d blocks", len(data) // BLOCK_SIZE)
    return bytes(out)
