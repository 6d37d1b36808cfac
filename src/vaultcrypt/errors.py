"""Typed failures raised by the cipher core.

All of them derive from ``ValueError`` so callers that already guard crypto
calls with ``except ValueError`` keep working.
"""
from __future__ import annotations


class CipherError(ValueError):
    """Base class for every failure surfaced by vaultcrypt."""


class InvalidKeyLength(CipherError):
    def __init__(self, length: int, expected: int = 32) -> None:
        super().__init__(f"key must be {expected} bytes, got {length}")
        self.length = length
        self.expected = expected


class InvalidIVLength(CipherError):
    def __init__(self, length: int, expected: int = 16) -> None:
        super().__init__(f"IV must be {expected} bytes, got {length}")
        self.length = length
        self.expected = expected


class InvalidCiphertextLength(CipherError):
    def __init__(self, length: int, block_size: int = 16) -> None:
        super().__init__(f"ciphertext length {length} is not a multiple of {block_size}")
        self.length = length
        self.block_size = block_size


class InvalidPadding(CipherError):
    pass


class InvalidToken(CipherError):
    """Raised by the strict text decoder for characters outside the alphabet."""
