import os
import sys
import threading
import unittest

# Ensure src is importable when running tests from repo root
THIS_DIR = os.path.dirname(__file__)
SRC_DIR = os.path.abspath(os.path.join(THIS_DIR, "..", "src"))
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from vaultcrypt import codec  # noqa: E402
from vaultcrypt.cbc import cbc_decrypt, cbc_encrypt, pkcs7_pad, pkcs7_unpad  # noqa: E402
from vaultcrypt.cipher import SimpleCipher, new_cipher  # noqa: E402
from vaultcrypt.config import CipherConfig  # noqa: E402
from vaultcrypt.errors import (  # noqa: E402
    CipherError,
    InvalidCiphertextLength,
    InvalidIVLength,
    InvalidKeyLength,
    InvalidPadding,
    InvalidToken,
)

KEY = bytes(range(32))
IV = bytes.fromhex("000102030405060708090a0b0c0d0e0f")


def _token_for_raw_block(cipher: SimpleCipher, block: bytes) -> str:
    # encrypt a block without padding so its decrypted tail is under test control
    return codec.encode(cbc_encrypt(cipher._aes, cipher.iv, block))


class PaddingTests(unittest.TestCase):
    def test_pad_lengths(self):
        self.assertEqual(pkcs7_pad(b""), b"\x10" * 16)
        self.assertEqual(pkcs7_pad(b"A" * 15), b"A" * 15 + b"\x01")
        self.assertEqual(pkcs7_pad(b"A" * 16), b"A" * 16 + b"\x10" * 16)
        self.assertEqual(len(pkcs7_pad(b"A" * 17)), 32)

    def test_unpad(self):
        self.assertEqual(pkcs7_unpad(b"hello" + b"\x0b" * 11), b"hello")
        for bad in (b"", b"A" * 15 + b"\x00", b"A" * 15 + b"\x11", b"A" * 13 + b"\x01\x03\x03"):
            with self.assertRaises(InvalidPadding):
                pkcs7_unpad(bad)


class SimpleCipherTests(unittest.TestCase):
    def setUp(self):
        self.cipher = new_cipher(KEY, IV)

    def test_construction_lengths(self):
        with self.assertRaises(InvalidKeyLength):
            SimpleCipher(b"\x00" * 16, IV)
        with self.assertRaises(InvalidIVLength):
            SimpleCipher(KEY, b"\x00" * 8)
        with self.assertRaises(TypeError):
            SimpleCipher("k" * 32, IV)

    def test_round_trip_grid(self):
        samples = [
            b"",
            b"a",
            b"hello world",
            "pässwörd ✓ 日本語".encode("utf-8"),
            bytes(range(256)),
            b"0123456789abcdef" * 3,
            os.urandom(5000),
        ]
        for p in samples:
            with self.subTest(length=len(p)):
                token = self.cipher.encrypt(p)
                self.assertEqual(len(token) % 4, 0)
                if p:
                    self.assertEqual(len(codec.decode(token)) % 16, 0)
                self.assertEqual(self.cipher.decrypt(token), p)

    def test_empty_maps_to_empty(self):
        self.assertEqual(self.cipher.encrypt(b""), "")
        self.assertEqual(self.cipher.decrypt(""), b"")

    def test_deterministic_with_fixed_iv(self):
        a = self.cipher.encrypt(b"same input")
        b = new_cipher(KEY, IV).encrypt(b"same input")
        self.assertEqual(a, b)
        # shared first block shows through under a static IV
        x = codec.decode(self.cipher.encrypt(b"A" * 16 + b"tail one"))
        y = codec.decode(self.cipher.encrypt(b"A" * 16 + b"other tail"))
        self.assertEqual(x[:16], y[:16])
        self.assertNotEqual(x[16:], y[16:])

    def test_aligned_plaintext_gets_full_pad_block(self):
        p = b"exactly16bytes!!"
        token = self.cipher.encrypt(p)
        self.assertEqual(len(codec.decode(token)), 32)
        self.assertEqual(self.cipher.decrypt(token), p)

    def test_tamper_propagates_to_next_block_only(self):
        p = bytes(range(64))
        raw = bytearray(codec.decode(self.cipher.encrypt(p)))
        self.assertEqual(len(raw), 80)
        raw[16 + 3] ^= 0x01  # block 1
        out = self.cipher.decrypt(codec.encode(bytes(raw)))
        self.assertEqual(len(out), 64)
        self.assertEqual(out[:16], p[:16])
        self.assertNotEqual(out[16:32], p[16:32])
        self.assertNotEqual(out[32:48], p[32:48])
        # the next block differs in exactly the flipped bit
        self.assertEqual(out[32 + 3], p[32 + 3] ^ 0x01)
        self.assertEqual(out[48:], p[48:])

    def test_tamper_raw_chain(self):
        raw = bytearray(cbc_encrypt(self.cipher._aes, IV, bytes(48)))
        raw[5] ^= 0x80
        out = cbc_decrypt(self.cipher._aes, IV, bytes(raw))
        self.assertNotEqual(out[:16], bytes(16))
        self.assertEqual(out[16:32], bytes(5) + b"\x80" + bytes(10))
        self.assertEqual(out[32:], bytes(16))

    def test_invalid_ciphertext_length(self):
        with self.assertRaises(InvalidCiphertextLength):
            self.cipher.decrypt(codec.encode(b"\x00" * 15))
        with self.assertRaises(InvalidCiphertextLength):
            self.cipher.decrypt(codec.encode(b"\x00" * 33))

    def test_token_with_no_data_fails_unpadding(self):
        # zero decoded bytes is block-aligned, so it fails at the unpad step
        for token in ("====", "A", "#"):
            with self.subTest(token=token):
                with self.assertRaises(InvalidPadding):
                    self.cipher.decrypt(token)

    def test_invalid_padding(self):
        for block in (b"A" * 15 + b"\x00", b"A" * 15 + b"\x11", b"A" * 13 + b"\x01\x03\x03"):
            with self.subTest(tail=block[-3:]):
                with self.assertRaises(InvalidPadding):
                    self.cipher.decrypt(_token_for_raw_block(self.cipher, block))

    def test_errors_are_value_errors(self):
        with self.assertRaises(ValueError):
            self.cipher.decrypt(codec.encode(b"\x00" * 15))

    def test_lenient_and_strict_decode(self):
        token = self.cipher.encrypt(b"secret")
        self.assertEqual(self.cipher.decrypt(token + "\n#trailing"), b"secret")
        strict = SimpleCipher(KEY, IV, strict_decode=True)
        self.assertEqual(strict.decrypt(token), b"secret")
        with self.assertRaises(InvalidToken):
            strict.decrypt(token + "!")

    def test_text_helpers(self):
        token = self.cipher.encrypt_text("hunter2 ✓")
        self.assertEqual(self.cipher.decrypt_text(token), "hunter2 ✓")
        bad = self.cipher.encrypt(b"\xff\xfe")
        with self.assertRaises(CipherError):
            self.cipher.decrypt_text(bad)

    def test_rotate_key(self):
        before = self.cipher.encrypt(b"payload")
        new_key = bytes(reversed(KEY))
        self.cipher.rotate_key(new_key)
        self.assertEqual(self.cipher.key, new_key)
        self.assertEqual(self.cipher.iv, IV)
        after = self.cipher.encrypt(b"payload")
        self.assertNotEqual(before, after)
        self.assertEqual(self.cipher.decrypt(after), b"payload")
        with self.assertRaises(InvalidKeyLength):
            self.cipher.rotate_key(b"short")
        self.assertEqual(self.cipher.key, new_key)

    def test_rotate_key_while_other_threads_encrypt(self):
        key_b = bytes(reversed(KEY))
        iv_b = bytes(reversed(IV))
        message = b"concurrent payload"
        token_a = new_cipher(KEY, IV).encrypt(message)
        token_b = new_cipher(key_b, iv_b).encrypt(message)
        errors = []
        stop = threading.Event()

        def worker():
            while not stop.is_set():
                token = self.cipher.encrypt(message)
                # a key paired with the other IV would give a third token
                if token not in (token_a, token_b):
                    errors.append(token)
                    return

        def rotator():
            for i in range(50):
                if i % 2 == 0:
                    self.cipher.rotate_key(key_b, iv_b)
                else:
                    self.cipher.rotate_key(KEY, IV)
            stop.set()

        threads = [threading.Thread(target=worker) for _ in range(3)]
        threads.append(threading.Thread(target=rotator))
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)
        stop.set()
        self.assertEqual(errors, [])
        self.assertEqual(self.cipher.decrypt(token_a), message)

    def test_from_passphrase_and_generate(self):
        cfg = CipherConfig(kdf_iterations=50)
        a = SimpleCipher.from_passphrase("correct horse", b"salt", cfg)
        b = SimpleCipher.from_passphrase("correct horse", b"salt", cfg)
        self.assertEqual(a.key, b.key)
        self.assertEqual(a.iv, b.iv)
        self.assertEqual(b.decrypt(a.encrypt(b"note")), b"note")
        g = SimpleCipher.generate()
        self.assertEqual(len(g.key), 32)
        self.assertEqual(len(g.iv), 16)
        self.assertNotIn(g.key.hex(), repr(g))


if __name__ == "__main__":
    unittest.main(verbosity=2)
