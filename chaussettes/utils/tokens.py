import re
import secrets
import unicodedata

SLUG_SUFFIX_BYTES = 4


def generate_secure_token() -> str:
    """Jeton aléatoire de 64 caractères hexadécimaux (256 bits)"""
    return secrets.token_hex(32)


def tokens_match(expected: str, supplied: str) -> bool:
    return secrets.compare_digest(expected.encode(), supplied.encode())


def slugify(value: str) -> str:
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-zA-Z0-9]+", "-", value.lower())
    return value.strip("-")


def generate_unique_slug(titre: str) -> str:
    base = slugify(titre) or "concert"
    return f"{base[:200]}-{secrets.token_hex(SLUG_SUFFIX_BYTES)}"
