"""
AES-256-CBC string cipher: the encrypt/decrypt boundary used by callers.

encrypt: plaintext bytes -> PKCS#7 pad -> CBC (AES-256) -> base64 token
decrypt: token -> base64 decode -> length check -> CBC inverse -> unpad

One instance owns a key, an IV and the expanded round-key schedule. The IV is
fixed per instance, so identical plaintexts encrypt to identical tokens.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional, Union

from . import codec
from .aes import AES256, BLOCK_SIZE, KEY_SIZE
from .cbc import cbc_decrypt, cbc_encrypt, pkcs7_pad, pkcs7_unpad
from .config import CipherConfig
from .errors import CipherError, InvalidCiphertextLength, InvalidIVLength, InvalidKeyLength
from .kdf import KeyMaterial, derive_key_material, generate_key_material

logger = logging.getLogger(__name__)

IV_SIZE = BLOCK_SIZE


def _check_material(key: bytes, iv: bytes) -> None:
    if not isinstance(key, (bytes, bytearray)):
        raise TypeError("key must be bytes")
    if not isinstance(iv, (bytes, bytearray)):
        raise TypeError("iv must be bytes")
    if len(key) != KEY_SIZE:
        raise InvalidKeyLength(len(key), KEY_SIZE)
    if len(iv) != IV_SIZE:
        raise InvalidIVLength(len(iv), IV_SIZE)


class SimpleCipher:
    """AES-256-CBC with PKCS#7 padding and base64 tokens.

    Encryption and decryption read the current (key, IV, schedule) triple
    under a lock, so :meth:`rotate_key` is safe to call while other threads
    use the instance.
    """

    algorithm_name = "AES-256-CBC"
    key_strength = 256

    def __init__(self, key: bytes, iv: bytes, *, strict_decode: bool = False) -> None:
        _check_material(key, iv)
        self._lock = threading.Lock()
        self._aes = AES256(bytes(key))
        self._iv = bytes(iv)
        self.strict_decode = strict_decode
        logger.info("Cipher constructed: %s", self.algorithm_name)

    @classmethod
    def from_material(cls, material: KeyMaterial, *, strict_decode: bool = False) -> "SimpleCipher":
        return cls(material.key, material.iv, strict_decode=strict_decode)

    @classmethod
    def from_passphrase(
        cls,
        passphrase: Union[str, bytes],
        salt: bytes,
        config: Optional[CipherConfig] = None,
    ) -> "SimpleCipher":
        cfg = config or CipherConfig()
        material = derive_key_material(passphrase, salt, scheme=cfg.kdf, iterations=cfg.iterations)
        return cls.from_material(material, strict_decode=cfg.strict_decode)

    @classmethod
    def generate(cls, *, strict_decode: bool = False) -> "SimpleCipher":
        return cls.from_material(generate_key_material(), strict_decode=strict_decode)

    @property
    def key(self) -> bytes:
        return self._aes.key

    @property
    def iv(self) -> bytes:
        return self._iv

    def rotate_key(self, key: bytes, iv: Optional[bytes] = None) -> None:
        """Replace the key (and optionally the IV), recomputing the schedule."""
        new_iv = self._iv if iv is None else iv
        _check_material(key, new_iv)
        aes = AES256(bytes(key))
        with self._lock:
            self._aes = aes
            self._iv = bytes(new_iv)
        logger.info("Cipher key rotated")

    def _snapshot(self):
        with self._lock:
            return self._aes, self._iv

    def encrypt(self, plaintext: bytes) -> str:
        if not isinstance(plaintext, (bytes, bytearray)):
            raise TypeError("plaintext must be bytes")
        if not plaintext:
            return ""
        aes, iv = self._snapshot()
        raw = cbc_encrypt(aes, iv, pkcs7_pad(bytes(plaintext), BLOCK_SIZE))
        return codec.encode(raw)

    def decrypt(self, token: str) -> bytes:
        if not isinstance(token, str):
            raise TypeError("token must be str")
        if not token:
            return b""
        raw = codec.decode(token, strict=self.strict_decode)
        if len(raw) % BLOCK_SIZE != 0:
            raise InvalidCiphertextLength(len(raw), BLOCK_SIZE)
        aes, iv = self._snapshot()
        return pkcs7_unpad(cbc_decrypt(aes, iv, raw), BLOCK_SIZE)

    def encrypt_text(self, text: str) -> str:
        return self.encrypt(text.encode("utf-8"))

    def decrypt_text(self, token: str) -> str:
        data = self.decrypt(token)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CipherError(f"decrypted data is not valid UTF-8: {e}") from e

    def __repr__(self) -> str:
        return f"SimpleCipher(algorithm={self.algorithm_name!r})"


def new_cipher(key: bytes, iv: bytes) -> SimpleCipher:
    return SimpleCipher(key, iv)
