from typing import Optional

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from chaussettes.config import settings
from chaussettes.utils.sanitize import sanitize_text, sanitize_phone, is_valid_phone

# Les clients envoient du camelCase (nombrePersonnes, concertId...)
CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def clean_required_text(value: str, label: str, max_length: int) -> str:
    cleaned = sanitize_text(value)
    if not cleaned:
        raise ValueError(f"{label} est requis")
    if len(cleaned) > max_length:
        raise ValueError(f"{label} est trop long (max {max_length} caractères)")
    return cleaned


def clean_optional_text(value: Optional[str], max_length: int, label: str = "Le texte") -> Optional[str]:
    if value is None:
        return None
    cleaned = sanitize_text(value)
    if len(cleaned) > max_length:
        raise ValueError(f"{label} est trop long (max {max_length} caractères)")
    return cleaned or None


def clean_phone(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    cleaned = sanitize_phone(value)
    if not cleaned or not is_valid_phone(cleaned):
        raise ValueError("Numéro de téléphone invalide")
    return cleaned


def check_party_size(value: int) -> int:
    if value < 1:
        raise ValueError("Minimum 1 personne")
    if value > settings.MAX_PARTY_SIZE:
        raise ValueError(f"Maximum {settings.MAX_PARTY_SIZE} personnes")
    return value


def check_note(value: int) -> int:
    if value < 1 or value > 5:
        raise ValueError("La note doit être comprise entre 1 et 5")
    return value
