from pydantic import BaseModel, field_validator
from typing import List, Optional
from datetime import datetime

from chaussettes.config import settings
from chaussettes.concerts.models import ConcertStatus
from chaussettes.utils.clock import as_utc, is_past
from chaussettes.utils.validators import CAMEL_CONFIG, clean_required_text, clean_optional_text


def _check_max_invites(v: Optional[int]) -> Optional[int]:
    if v is None:
        return None
    if v < 1:
        raise ValueError("Minimum 1 invité")
    if v > settings.MAX_INVITES_CEILING:
        raise ValueError(f"Maximum {settings.MAX_INVITES_CEILING} invités")
    return v


class ConcertBase(BaseModel):
    model_config = CAMEL_CONFIG

    description: Optional[str] = None
    adresse_complete: Optional[str] = None
    adresse_publique: Optional[str] = None
    ville: Optional[str] = None
    groupe_id: Optional[str] = None
    max_invites: Optional[int] = None

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        return clean_optional_text(v, 5000, "La description")

    @field_validator('adresse_complete', 'adresse_publique', 'ville')
    @classmethod
    def validate_adresse(cls, v):
        return clean_optional_text(v, 255)

    @field_validator('groupe_id')
    @classmethod
    def empty_groupe(cls, v):
        return v or None

    @field_validator('max_invites')
    @classmethod
    def validate_max_invites(cls, v):
        return _check_max_invites(v)


class ConcertCreate(ConcertBase):
    titre: str
    date: datetime
    show_groupe: bool = True
    status: ConcertStatus = ConcertStatus.DRAFT

    @field_validator('titre')
    @classmethod
    def validate_titre(cls, v):
        return clean_required_text(v, "Le titre", 200)

    @field_validator('date')
    @classmethod
    def date_in_future(cls, v):
        if is_past(v):
            raise ValueError("La date doit être dans le futur")
        return as_utc(v)

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v not in (ConcertStatus.DRAFT, ConcertStatus.PUBLISHED):
            raise ValueError("Statut invalide")
        return v


class ConcertUpdate(ConcertBase):
    titre: Optional[str] = None
    date: Optional[datetime] = None
    show_groupe: Optional[bool] = None
    status: Optional[ConcertStatus] = None

    @field_validator('titre')
    @classmethod
    def validate_titre(cls, v):
        return None if v is None else clean_required_text(v, "Le titre", 200)

    @field_validator('date')
    @classmethod
    def normalize_date(cls, v):
        return None if v is None else as_utc(v)

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v == ConcertStatus.PAST:
            raise ValueError("Statut invalide")
        return v


class ConcertOut(BaseModel):
    model_config = CAMEL_CONFIG

    id: str
    organisateur_id: str
    groupe_id: Optional[str] = None
    titre: str
    description: Optional[str] = None
    date: datetime
    adresse_complete: Optional[str] = None
    adresse_publique: Optional[str] = None
    ville: Optional[str] = None
    slug: str
    show_groupe: bool
    max_invites: Optional[int] = None
    status: ConcertStatus
    created_at: datetime


class ConcertEnvelope(BaseModel):
    concert: ConcertOut


class ConcertList(BaseModel):
    concerts: List[ConcertOut]


class CapacitySummary(BaseModel):
    model_config = CAMEL_CONFIG

    max_invites: Optional[int] = None
    confirmed: int
    remaining: Optional[int] = None
    is_full: bool


class PublicGroupe(BaseModel):
    model_config = CAMEL_CONFIG

    id: str
    nom: str
    thumbnail_url: Optional[str] = None
    ville: Optional[str] = None


class PublicGuest(BaseModel):
    model_config = CAMEL_CONFIG

    display_name: str
    nombre_personnes: int


class ConcertPublic(BaseModel):
    model_config = CAMEL_CONFIG

    id: str
    titre: str
    description: Optional[str] = None
    date: datetime
    adresse_publique: Optional[str] = None
    ville: Optional[str] = None
    slug: str
    status: ConcertStatus
    organisateur_nom: str
    groupe: Optional[PublicGroupe] = None
    capacity: CapacitySummary
    guests: List[PublicGuest]


class MarkPastResult(BaseModel):
    updated: int
