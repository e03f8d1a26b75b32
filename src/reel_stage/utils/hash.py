# src/reel_stage/utils/hash.py
"""Hashing helpers built on BLAKE3."""

from __future__ import annotations

import secrets
import time

from blake3 import blake3


def blake3_hexdigest(data: bytes) -> str:
    """Return the hexadecimal digest of the supplied data."""
    return blake3(data).hexdigest()


def generate_entity_id(actor_uid: str, *scope: str) -> str:
    """Return an unguessable 64-character identifier.

    The digest covers the acting user, a nanosecond timestamp, a random
    nonce, and any extra scope (for example the parent video of a comment).
    Collisions would require a BLAKE3 collision on the random component.
    """
    parts = [actor_uid, str(time.time_ns()), secrets.token_hex(16), *scope]
    return blake3_hexdigest("\x1f".join(parts).encode("utf-8"))
