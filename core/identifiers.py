# ============================================================================
# IDENTIFIERS
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - Client-visible id and key generation
# PURPOSE: Kebab-case ids from names, short random suffixes, registration keys
# CREATED: 19 OCT 2026
# ============================================================================
"""
Identifier helpers.

    name_to_client_id("Weather Station #1")  -> "weather-station-1"
    generate_client_id_suffix()              -> e.g. "k7q"
    generate_registration_key()              -> e.g. "7HQ2MX9KCT"
"""

import re
import secrets
import string
from typing import Optional

from core.config import get_defaults

_NOT_ALLOWED = re.compile(r"[^a-z0-9-]")
_REPEATED_HYPHENS = re.compile(r"-{2,}")

# Ambiguous characters (0/O, 1/I) are left out of registration keys
REGISTRATION_KEY_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def name_to_client_id(name: str, max_length: Optional[int] = None) -> str:
    """Lowercase, spaces to hyphens, anything outside [a-z0-9-] dropped."""
    client_id = name.strip().lower().replace(" ", "-")
    client_id = _NOT_ALLOWED.sub("", client_id)
    client_id = _REPEATED_HYPHENS.sub("-", client_id).strip("-")
    if max_length:
        client_id = client_id[:max_length].rstrip("-")
    return client_id


def generate_client_id_suffix() -> str:
    """Letter, digit, letter; lowercase."""
    return (
        secrets.choice(string.ascii_lowercase)
        + secrets.choice(string.digits)
        + secrets.choice(string.ascii_lowercase)
    )


def with_suffix(base_id: str, max_length: Optional[int] = None) -> str:
    """Append a random suffix, truncating the base so the result still fits."""
    suffix = generate_client_id_suffix()
    max_length = max_length or get_defaults().context.max_platform_id_length
    base = base_id[: max_length - len(suffix) - 1].rstrip("-")
    return f"{base}-{suffix}" if base else suffix


def generate_registration_key(length: Optional[int] = None) -> str:
    length = length or get_defaults().context.registration_key_length
    return "".join(secrets.choice(REGISTRATION_KEY_ALPHABET) for _ in range(length))


__all__ = [
    "name_to_client_id",
    "generate_client_id_suffix",
    "with_suffix",
    "generate_registration_key",
    "REGISTRATION_KEY_ALPHABET",
]
