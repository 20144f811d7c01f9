from pydantic import BaseModel, EmailStr, field_validator
from typing import List, Optional
from datetime import datetime
from uuid import UUID

from chaussettes.inscriptions.models import InscriptionStatus
from chaussettes.utils.sanitize import sanitize_email
from chaussettes.utils.validators import (
    CAMEL_CONFIG, clean_required_text, clean_phone, check_party_size,
)


# ===========================
# ENTRÉES
# ===========================
class AttendeeBase(BaseModel):
    model_config = CAMEL_CONFIG

    prenom: str
    nom: str
    email: EmailStr
    telephone: Optional[str] = None
    nombre_personnes: int = 1

    @field_validator('prenom')
    @classmethod
    def validate_prenom(cls, v):
        return clean_required_text(v, "Le prénom", 50)

    @field_validator('nom')
    @classmethod
    def validate_nom(cls, v):
        return clean_required_text(v, "Le nom", 100)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        return sanitize_email(v)

    @field_validator('telephone')
    @classmethod
    def validate_telephone(cls, v):
        return clean_phone(v)

    @field_validator('nombre_personnes')
    @classmethod
    def validate_nombre_personnes(cls, v):
        return check_party_size(v)


class InscriptionCreate(AttendeeBase):
    concert_id: UUID


class OrganizerInscriptionCreate(AttendeeBase):
    status: InscriptionStatus = InscriptionStatus.CONFIRMED

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v == InscriptionStatus.CANCELLED:
            raise ValueError("Statut invalide")
        return v


class InscriptionPatch(BaseModel):
    """Champs modifiables ; telephone=null efface le numéro."""
    model_config = CAMEL_CONFIG

    prenom: Optional[str] = None
    nom: Optional[str] = None
    telephone: Optional[str] = None
    nombre_personnes: Optional[int] = None

    @field_validator('prenom')
    @classmethod
    def validate_prenom(cls, v):
        return None if v is None else clean_required_text(v, "Le prénom", 50)

    @field_validator('nom')
    @classmethod
    def validate_nom(cls, v):
        return None if v is None else clean_required_text(v, "Le nom", 100)

    @field_validator('telephone')
    @classmethod
    def validate_telephone(cls, v):
        return clean_phone(v)

    @field_validator('nombre_personnes')
    @classmethod
    def validate_nombre_personnes(cls, v):
        return None if v is None else check_party_size(v)


class InscriptionUpdate(InscriptionPatch):
    show_in_guest_list: Optional[bool] = None


class OrganizerInscriptionUpdate(InscriptionPatch):
    status: Optional[InscriptionStatus] = None


class LookupRequest(BaseModel):
    model_config = CAMEL_CONFIG

    email: EmailStr
    concert_id: UUID

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        return sanitize_email(v)


# ===========================
# SORTIES
# ===========================
class InscriptionSummary(BaseModel):
    model_config = CAMEL_CONFIG

    id: str
    prenom: Optional[str] = None
    nom: str
    status: InscriptionStatus
    nombre_personnes: int


class InscriptionOut(InscriptionSummary):
    email: str
    telephone: Optional[str] = None
    show_in_guest_list: bool
    created_at: datetime


class InscriptionEnvelope(BaseModel):
    inscription: InscriptionOut


class LookupResponse(BaseModel):
    model_config = CAMEL_CONFIG

    found: bool = True
    inscription: InscriptionSummary
    management_url: str


class GroupeBrief(BaseModel):
    model_config = CAMEL_CONFIG

    nom: str
    thumbnail_url: Optional[str] = None


class OrganisateurBrief(BaseModel):
    nom: str


class ConcertForGuest(BaseModel):
    model_config = CAMEL_CONFIG

    id: str
    titre: str
    date: datetime
    adresse_publique: Optional[str] = None
    slug: str
    groupe: Optional[GroupeBrief] = None
    organisateur: OrganisateurBrief


class GuestInscriptionView(BaseModel):
    inscription: InscriptionOut
    concert: ConcertForGuest


class OrganizerInscriptionList(BaseModel):
    model_config = CAMEL_CONFIG

    inscriptions: List[InscriptionOut]
    confirmed_count: int
    waitlisted_count: int
    max_invites: Optional[int] = None
    remaining_places: Optional[int] = None


class MessageResponse(BaseModel):
    message: str


class GuestListEntry(BaseModel):
    model_config = CAMEL_CONFIG

    display_name: str
    nombre_personnes: int
