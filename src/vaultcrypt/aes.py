"""
AES-256 key schedule and single-block transform (pure Python).

The state is a 16-byte buffer laid out column-major: byte ``4*c + r`` holds
row ``r`` of column ``c``. Blocks are processed one at a time; chaining and
padding live in :mod:`vaultcrypt.cbc`.

DISCLAIMER: table lookups are not constant-time. This implementation is not
hardened against timing side channels.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

from .errors import InvalidKeyLength
from .tables import INV_SBOX, MUL2, MUL3, MUL9, MUL11, MUL13, MUL14, RCON, SBOX

KEY_SIZE = 32
BLOCK_SIZE = 16
ROUNDS = 14

_NK = KEY_SIZE // 4  # key words
_NB = 4  # words per block
_SCHEDULE_WORDS = _NB * (ROUNDS + 1)  # 60

# state index permutations for row rotation
_SHIFT = tuple(r + 4 * ((c + r) % 4) for c in range(4) for r in range(4))
_INV_SHIFT = tuple(r + 4 * ((c - r) % 4) for c in range(4) for r in range(4))


def _sub_word(w: int) -> int:
    return (
        (SBOX[(w >> 24) & 0xFF] << 24)
        | (SBOX[(w >> 16) & 0xFF] << 16)
        | (SBOX[(w >> 8) & 0xFF] << 8)
        | SBOX[w & 0xFF]
    )


def _rot_word(w: int) -> int:
    return ((w << 8) & 0xFFFFFFFF) | ((w >> 24) & 0xFF)


def expand_key(key: bytes) -> List[int]:
    """Expand a 32-byte key into the 60-word round-key schedule."""
    if len(key) != KEY_SIZE:
        raise InvalidKeyLength(len(key), KEY_SIZE)
    words = [0] * _SCHEDULE_WORDS
    for i in range(_NK):
        words[i] = int.from_bytes(key[4 * i:4 * i + 4], "big")
    for i in range(_NK, _SCHEDULE_WORDS):
        temp = words[i - 1]
        if i % _NK == 0:
            temp = _sub_word(_rot_word(temp)) ^ (RCON[i // _NK] << 24)
        elif i % _NK == 4:
            temp = _sub_word(temp)
        words[i] = words[i - _NK] ^ temp
    return words


def _round_key_bytes(words: List[int]) -> Tuple[bytes, ...]:
    return tuple(
        b"".join(words[_NB * rnd + c].to_bytes(4, "big") for c in range(_NB))
        for rnd in range(ROUNDS + 1)
    )


def _add_round_key(state: bytearray, round_key: bytes) -> None:
    for i in range(BLOCK_SIZE):
        state[i] ^= round_key[i]


def _sub_bytes(state: bytearray) -> None:
    for i in range(BLOCK_SIZE):
        state[i] = SBOX[state[i]]


def _inv_sub_bytes(state: bytearray) -> None:
    for i in range(BLOCK_SIZE):
        state[i] = INV_SBOX[state[i]]


def _shift_rows(state: bytearray) -> None:
    s = bytes(state)
    for i in range(BLOCK_SIZE):
        state[i] = s[_SHIFT[i]]


def _inv_shift_rows(state: bytearray) -> None:
    s = bytes(state)
    for i in range(BLOCK_SIZE):
        state[i] = s[_INV_SHIFT[i]]


def _mix_columns(state: bytearray) -> None:
    # [[2,3,1,1],[1,2,3,1],[1,1,2,3],[3,1,1,2]]
    for c in range(0, BLOCK_SIZE, 4):
        a0, a1, a2, a3 = state[c], state[c + 1], state[c + 2], state[c + 3]
        state[c] = MUL2[a0] ^ MUL3[a1] ^ a2 ^ a3
        state[c + 1] = a0 ^ MUL2[a1] ^ MUL3[a2] ^ a3
        state[c + 2] = a0 ^ a1 ^ MUL2[a2] ^ MUL3[a3]
        state[c + 3] = MUL3[a0] ^ a1 ^ a2 ^ MUL2[a3]


def _inv_mix_columns(state: bytearray) -> None:
    # [[14,11,13,9],[9,14,11,13],[13,9,14,11],[11,13,9,14]]
    for c in range(0, BLOCK_SIZE, 4):
        a0, a1, a2, a3 = state[c], state[c + 1], state[c + 2], state[c + 3]
        state[c] = MUL14[a0] ^ MUL11[a1] ^ MUL13[a2] ^ MUL9[a3]
        state[c + 1] = MUL9[a0] ^ MUL14[a1] ^ MUL11[a2] ^ MUL13[a3]
        state[c + 2] = MUL13[a0] ^ MUL9[a1] ^ MUL14[a2] ^ MUL11[a3]
        state[c + 3] = MUL11[a0] ^ MUL13[a1] ^ MUL9[a2] ^ MUL14[a3]


@dataclass(frozen=True)
class AES256:
    """AES-256 block transform bound to one key.

    The round-key schedule is expanded once in ``__post_init__`` and reused
    for every block. Instances are immutable; build a new one to change key.
    """

    key: bytes
    schedule: Tuple[int, ...] = field(init=False, repr=False, compare=False)
    _round_keys: Tuple[bytes, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.key, (bytes, bytearray)):
            raise TypeError("key must be bytes")
        key = bytes(self.key)
        words = expand_key(key)
        object.__setattr__(self, "key", key)
        object.__setattr__(self, "schedule", tuple(words))
        object.__setattr__(self, "_round_keys", _round_key_bytes(words))

    def encrypt_block(self, block: bytes) -> bytes:
        if len(block) != BLOCK_SIZE:
            raise ValueError("block must be 16 bytes")
        rk = self._round_keys
        state = bytearray(block)
        _add_round_key(state, rk[0])
        for rnd in range(1, ROUNDS):
            _sub_bytes(state)
            _shift_rows(state)
            _mix_columns(state)
            _add_round_key(state, rk[rnd])
        # final round has no column mix
        _sub_bytes(state)
        _shift_rows(state)
        _add_round_key(state, rk[ROUNDS])
        return bytes(state)

    def decrypt_block(self, block: bytes) -> bytes:
        if len(block) != BLOCK_SIZE:
            raise ValueError("block must be 16 bytes")
        rk = self._round_keys
        state = bytearray(block)
        _add_round_key(state, rk[ROUNDS])
        for rnd in range(ROUNDS - 1, 0, -1):
            _inv_shift_rows(state)
            _inv_sub_bytes(state)
            _add_round_key(state, rk[rnd])
            _inv_mix_columns(state)
        _inv_shift_rows(state)
        _inv_sub_bytes(state)
        _add_round_key(state, rk[0])
        return bytes(state)
