from __future__ import annotations

import argparse
import json
import logging
from typing import List, Optional

from .config import ALGORITHMS, CipherConfig
from .errors import CipherError
from .kdf import SCHEMES, KeyMaterial, derive_key_material, generate_key_material
from .strategy import build_strategy, describe


def _bhex(s: str) -> bytes:
    try:
        return bytes.fromhex(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid hex: {e}")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Local string encryption (educational)")
    p.add_argument("--op", choices=["encrypt", "decrypt", "keygen"], required=True)
    p.add_argument("--algorithm", choices=list(ALGORITHMS), default="aes-256-cbc")
    p.add_argument("--json", action="store_true", help="Output JSON to stdout")
    p.add_argument("--verbose", action="store_true", help="Enable debug logging on stderr")

    # Input forms
    p.add_argument("--in", dest="in_text", type=str, help="Input text (UTF-8 plaintext or token)")
    p.add_argument("--in_hex", dest="in_hex", type=_bhex, help="Input as hex bytes (plaintext or UTF-8 token)")

    # Key material
    p.add_argument("--key", type=_bhex, help="Raw AES-256 key in hex (32 bytes)")
    p.add_argument("--iv", type=_bhex, help="IV in hex (16 bytes)")
    p.add_argument("--password", type=str, help="Passphrase to derive key and IV from")
    p.add_argument("--salt", type=_bhex, help="Salt in hex")
    p.add_argument("--kdf", choices=list(SCHEMES), default="mix")
    p.add_argument("--iterations", type=int, help="Derivation iterations (scheme default if omitted)")
    p.add_argument("--strict", action="store_true", help="Reject tokens with characters outside the alphabet")

    p.add_argument("--xor_key", type=str, default="DefaultKey")
    return p


def _emit(args: argparse.Namespace, out: dict, *fields: str) -> None:
    if args.json:
        print(json.dumps(out))
    else:
        for f in fields:
            print(f"{f}={out[f]}")


def _fail(args: argparse.Namespace, message: str, code: int) -> int:
    if args.json:
        print(json.dumps({"error": message}), flush=True)
    else:
        print(f"Error: {message}", flush=True)
    return code


def _build_config(args: argparse.Namespace) -> CipherConfig:
    kwargs = {
        "algorithm": args.algorithm,
        "kdf": args.kdf,
        "strict_decode": args.strict,
        "xor_key": args.xor_key,
    }
    if args.iterations is not None:
        kwargs["kdf_iterations" if args.kdf == "mix" else "pbkdf2_iterations"] = args.iterations
    return CipherConfig(**kwargs)


def _key_material(args: argparse.Namespace, cfg: CipherConfig) -> Optional[KeyMaterial]:
    if cfg.algorithm != "aes-256-cbc":
        return None
    if args.key is not None:
        if args.iv is None:
            raise ValueError("--iv is required with --key")
        return KeyMaterial(key=args.key, iv=args.iv)
    if args.password is not None and args.salt is not None:
        return derive_key_material(args.password, args.salt, scheme=cfg.kdf, iterations=cfg.iterations)
    raise ValueError("either --key/--iv or --password/--salt is required")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.op == "keygen":
        material = generate_key_material()
        _emit(args, {"op": "keygen", "key": material.key.hex(), "iv": material.iv.hex()}, "key", "iv")
        return 0

    try:
        cfg = _build_config(args)
        strategy = build_strategy(cfg, _key_material(args, cfg))
    except (CipherError, ValueError) as e:
        return _fail(args, str(e), 2)

    if args.op == "encrypt":
        if args.in_hex is not None:
            data = args.in_hex
        elif args.in_text is not None:
            data = args.in_text.encode("utf-8")
        else:
            return _fail(args, "--in or --in_hex is required", 2)
        try:
            token = strategy.encrypt(data)
        except (CipherError, ValueError) as e:
            return _fail(args, str(e), 1)
        _emit(args, {"op": "encrypt", "algorithm": describe(strategy), "ciphertext": token}, "ciphertext")
        return 0

    if args.in_hex is not None:
        try:
            token = args.in_hex.decode("utf-8")
        except UnicodeDecodeError:
            return _fail(args, "--in_hex token is not valid UTF-8", 2)
    elif args.in_text is not None:
        token = args.in_text
    else:
        return _fail(args, "--in or --in_hex is required", 2)
    try:
        pt = strategy.decrypt(token)
    except (CipherError, ValueError) as e:
        return _fail(args, str(e), 1)
    _emit(args, {"op": "decrypt", "algorithm": describe(strategy), "plaintext": pt.decode("utf-8", errors="replace")}, "plaintext")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
