"""
Printable text encoding for raw ciphertext (standard base64 alphabet).

Encoding always emits '=' padding so tokens are a multiple of 4 characters.
Decoding is lenient by default: it stops at the first character outside the
alphabet (including '=') and decodes what came before. ``strict=True``
rejects anything that is not a canonical padded token.
"""
from __future__ import annotations

import base64
import binascii
import string

from .errors import InvalidToken

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "+/"
_ALPHABET_SET = frozenset(ALPHABET)


def encode(data: bytes) -> str:
    return base64.b64encode(bytes(data)).decode("ascii")


def _valid_prefix(token: str) -> str:
    for i, ch in enumerate(token):
        if ch not in _ALPHABET_SET:
            return token[:i]
    return token


def decode(token: str, strict: bool = False) -> bytes:
    if not isinstance(token, str):
        raise TypeError("token must be str")
    if strict:
        if len(token) % 4 != 0:
            raise InvalidToken("token length must be a multiple of 4")
        try:
            return base64.b64decode(token, validate=True)
        except binascii.Error as e:
            raise InvalidToken(f"malformed token: {e}") from e
    body = _valid_prefix(token)
    # a lone trailing symbol carries fewer than 8 bits
    if len(body) % 4 == 1:
        body = body[:-1]
    if not body:
        return b""
    return base64.b64decode(body + "=" * (-len(body) % 4))
