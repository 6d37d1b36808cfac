from __future__ import annotations

from dataclasses import dataclass

from .kdf import MIX_ITERATIONS, PBKDF2_ITERATIONS, SCHEMES

ALGORITHMS = ("aes-256-cbc", "xor", "none")


@dataclass(frozen=True)
class CipherConfig:
    # which variant build_strategy() returns
    algorithm: str = "aes-256-cbc"
    # passphrase derivation: "mix" (legacy) or "pbkdf2"
    kdf: str = "mix"
    kdf_iterations: int = MIX_ITERATIONS
    pbkdf2_iterations: int = PBKDF2_ITERATIONS
    # reject tokens with stray characters instead of truncating at them
    strict_decode: bool = False
    xor_key: str = "DefaultKey"

    def __post_init__(self) -> None:
        if self.algorithm not in ALGORITHMS:
            raise ValueError(f"unknown algorithm: {self.algorithm}")
        if self.kdf not in SCHEMES:
            raise ValueError(f"unknown kdf: {self.kdf}")
        if self.kdf_iterations <= 0 or self.pbkdf2_iterations <= 0:
            raise ValueError("iteration counts must be positive")
        if not self.xor_key:
            raise ValueError("xor_key must be non-empty")

    @property
    def iterations(self) -> int:
        """Iteration count for the configured kdf."""
        return self.kdf_iterations if self.kdf == "mix" else self.pbkdf2_iterations
