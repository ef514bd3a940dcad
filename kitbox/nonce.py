"""Cryptographically secure random byte generation."""

import secrets

__all__ = ["generate_nonce"]


def generate_nonce(length: int) -> bytes:
    """Return ``length`` bytes from a cryptographically secure source.

    Raises ``ValueError`` when ``length`` is negative.
    """
    if length < 0:
        raise ValueError(f"length must not be negative: {length}")
    return secrets.token_bytes(length)