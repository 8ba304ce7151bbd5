"""
Per-room random number generation.

Every random decision a room makes (question pool order, offered categories,
tie-breaks, answer shuffling) comes from one `random.Random` seeded from a
hex seed, so a room's game is reproducible from its seed alone.
"""

import hashlib
import random
import secrets

SEED_BYTES = 32
_DOMAIN_PREFIX = b"sounds-legit-room-v1:"


def generate_seed() -> str:
    """Generate a cryptographically random hex seed."""
    return secrets.token_hex(SEED_BYTES)


def validate_seed_hex(seed_hex: str) -> None:
    """Raise ValueError unless the seed is a non-empty hex string."""
    if not isinstance(seed_hex, str):
        raise TypeError(f"Seed must be a string, got {type(seed_hex).__name__}")
    if not seed_hex:
        raise ValueError("Seed must not be empty")
    try:
        bytes.fromhex(seed_hex)
    except ValueError:
        raise ValueError("Seed contains invalid hex characters") from None


def create_rng(seed_hex: str) -> random.Random:
    """Derive a room RNG from a hex seed with domain separation."""
    validate_seed_hex(seed_hex)
    material = hashlib.sha512(_DOMAIN_PREFIX + bytes.fromhex(seed_hex)).digest()
    return random.Random(material)
