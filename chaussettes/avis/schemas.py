from pydantic import BaseModel, EmailStr, field_validator
from typing import List, Optional
from datetime import datetime
from uuid import UUID

from chaussettes.avis.models import AuteurType
from chaussettes.utils.sanitize import sanitize_email
from chaussettes.utils.validators import CAMEL_CONFIG, check_note, clean_optional_text


class NoteBase(BaseModel):
    model_config = CAMEL_CONFIG

    note: int
    commentaire: Optional[str] = None

    @field_validator('note')
    @classmethod
    def validate_note(cls, v):
        return check_note(v)

    @field_validator('commentaire')
    @classmethod
    def validate_commentaire(cls, v):
        return clean_optional_text(v, 1000, "Le commentaire")


class AvisOrganizerCreate(NoteBase):
    groupe_id: UUID
    concert_id: UUID


class AvisGuestCreate(NoteBase):
    email: EmailStr
    nom: Optional[str] = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        return sanitize_email(v)

    @field_validator('nom')
    @classmethod
    def validate_nom(cls, v):
        return clean_optional_text(v, 255, "Le nom")


class AvisInvitationCreate(NoteBase):
    pass


class AvisVisibilityUpdate(BaseModel):
    model_config = CAMEL_CONFIG

    is_visible: bool


# ===========================
# SORTIES
# ===========================
class AvisCreated(BaseModel):
    id: str
    success: bool = True


class AvisPublic(BaseModel):
    model_config = CAMEL_CONFIG

    id: str
    auteur_nom: Optional[str] = None
    auteur_type: AuteurType
    note: int
    commentaire: Optional[str] = None
    created_at: datetime


class AvisAdmin(AvisPublic):
    groupe_id: str
    concert_id: Optional[str] = None
    auteur_email: str
    is_visible: bool


class GroupeAvisStats(BaseModel):
    model_config = CAMEL_CONFIG

    avg_note: Optional[float] = None
    total: int
    avis: List[AvisPublic]


class ConcertBrief(BaseModel):
    id: str
    titre: str
    date: datetime


class GroupeBrief(BaseModel):
    model_config = CAMEL_CONFIG

    id: str
    nom: str
    thumbnail_url: Optional[str] = None


class AvisFormContext(BaseModel):
    model_config = CAMEL_CONFIG

    concert: ConcertBrief
    groupe: GroupeBrief
    auteur_nom: Optional[str] = None


class ReviewInvitationResult(BaseModel):
    sent: int
