"""Deterministic seed tokens for reproducible workout generation."""

import hashlib
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from ..config import config

SEPARATOR = ":"


@dataclass(frozen=True)
class SeedParts:
    """Inputs a seed token is derived from."""
    user_hash: str
    day: str
    focus: Optional[str] = None
    nonce: Optional[int] = None


def hash_user_id(user_id: str, salt: Optional[str] = None, length: int = 12) -> str:
    """Short, stable, non-reversible handle for a user id."""
    salt = config.USER_HASH_SALT if salt is None else salt
    digest = hashlib.sha256(f"{salt}:{user_id}".encode()).hexdigest()
    return digest[:length]


def derive_seed(parts: SeedParts) -> str:
    """Build the seed token "{userHash}:{day}:{focus}:{nonce}".

    Fields always appear in that order; focus may be empty and nonce defaults
    to 0, so the same parts always give the same token. Fields containing
    the ":" separator are rejected so distinct parts never share a token.
    """
    nonce = 0 if parts.nonce is None else int(parts.nonce)
    focus = parts.focus or ""
    for name, value in (("user_hash", parts.user_hash), ("day", parts.day), ("focus", focus)):
        if SEPARATOR in value:
            raise ValueError(f"Seed {name} must not contain {SEPARATOR!r}: {value!r}")
    return SEPARATOR.join([parts.user_hash, parts.day, focus, str(nonce)])


def seed_for(user_id: str, day: Union[date, str], focus: Optional[str] = None,
             nonce: Optional[int] = None) -> str:
    """Derive the seed token for a raw user id and day."""
    day_str = day.isoformat() if isinstance(day, date) else str(day)
    return derive_seed(SeedParts(hash_user_id(user_id), day_str, focus, nonce))
