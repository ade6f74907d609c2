"""Short id generation and slug derivation."""

import re
import secrets

ENTITY_ID_LENGTH = 7
ENTITY_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
SLUG_MAX_LENGTH = 100

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")
_SLUG_PATTERN = re.compile(r"^[a-z0-9-]{1,100}$")


def create_entity_id(
    length: int = ENTITY_ID_LENGTH, alphabet: str = ENTITY_ID_ALPHABET
) -> str:
    """Generate an id such as "a7k2m9x"."""
    return "".join(secrets.choice(alphabet) for _ in range(length))


def is_valid_entity_id(value: object, length: int = ENTITY_ID_LENGTH) -> bool:
    if not isinstance(value, str) or len(value) != length:
        return False
    return bool(re.fullmatch(r"[a-z0-9]+", value))


def is_valid_slug(slug: str, pattern: str | None = None) -> bool:
    regex = re.compile(pattern) if pattern else _SLUG_PATTERN
    return bool(regex.fullmatch(slug))


def create_slug(text: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    slug = _NON_SLUG_CHARS.sub("-", text.lower().strip()).strip("-")
    return slug[:max_length]


def create_unique_slug(text: str, existing_slugs: list[str] | set[str]) -> str:
    """Derive a slug from text, appending -1, -2, ... until it is unused."""
    base = create_slug(text)
    taken = set(existing_slugs)
    slug = base
    counter = 1
    while slug in taken:
        slug = f"{base}-{counter}"
        counter += 1
    return slug
