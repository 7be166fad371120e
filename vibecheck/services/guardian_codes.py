"""One-time guardian verification codes: generation, hashing, comparison."""

from __future__ import annotations

import hashlib
import hmac
import secrets

from vibecheck import config

CODE_LENGTH = 6


def generate_code() -> str:
    """Generate a uniformly random 6-digit code, zero-padded (e.g. '004217')."""
    return f"{secrets.randbelow(10**CODE_LENGTH):0{CODE_LENGTH}d}"


def hash_code(code: str) -> str:
    """Keyed SHA-256 hex digest of the exact code string."""
    key = config.settings.GUARDIAN_CODE_SECRET.encode()
    return hmac.new(key, code.encode(), hashlib.sha256).hexdigest()


def code_matches(candidate: str, code_hash: str | None) -> bool:
    """Compare a submitted code against a stored digest in constant time."""
    if not code_hash:
        return False
    return hmac.compare_digest(hash_code(candidate).encode(), code_hash.encode())
