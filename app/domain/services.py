# app/domain/services.py
from __future__ import annotations

import hmac
import secrets

MIN_CODE_LENGTH = 4


def generate_code(length: int = 6) -> str:
    """Zero-padded numeric one-time code of ``length`` digits."""
    if length < MIN_CODE_LENGTH:
        raise ValueError(f"code length must be >= {MIN_CODE_LENGTH}")
    return f"{secrets.randbelow(10**length):0{length}d}"


def generate_reset_token() -> str:
    """64 hex chars (32 random bytes)."""
    return secrets.token_hex(32)


def generate_session_id() -> str:
    return secrets.token_hex(16)


def secure_compare(a: str, b: str) -> bool:
    """
    Constant-time comparison for secrets.
    Accepts strings; falls back to bytes if needed.
    """
    try:
        # hmac.compare_digest supports str if types match
        return hmac.compare_digest(a, b)
    except TypeError:
        return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))
