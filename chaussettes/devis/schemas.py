from pydantic import BaseModel, EmailStr, field_validator
from typing import List, Optional
from datetime import datetime
from uuid import UUID

from chaussettes.utils.clock import as_utc
from chaussettes.utils.sanitize import sanitize_email
from chaussettes.utils.validators import CAMEL_CONFIG, clean_required_text, clean_optional_text, clean_phone


class DevisCreate(BaseModel):
    model_config = CAMEL_CONFIG

    groupe_id: UUID
    nom: str
    email: EmailStr
    telephone: Optional[str] = None
    date_souhaitee: datetime
    nombre_invites: Optional[str] = None
    lieu: str
    type_evenement: Optional[str] = None
    message: Optional[str] = None

    @field_validator('nom')
    @classmethod
    def validate_nom(cls, v):
        return clean_required_text(v, "Le nom", 255)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        return sanitize_email(v)

    @field_validator('telephone')
    @classmethod
    def validate_telephone(cls, v):
        return clean_phone(v)

    @field_validator('date_souhaitee')
    @classmethod
    def normalize_date(cls, v):
        return as_utc(v)

    @field_validator('nombre_invites')
    @classmethod
    def validate_nombre_invites(cls, v):
        return clean_optional_text(v, 20, "Le nombre d'invités")

    @field_validator('lieu')
    @classmethod
    def validate_lieu(cls, v):
        return clean_required_text(v, "Le lieu", 255)

    @field_validator('type_evenement')
    @classmethod
    def validate_type_evenement(cls, v):
        return clean_optional_text(v, 50, "Le type d'événement")

    @field_validator('message')
    @classmethod
    def validate_message(cls, v):
        return clean_optional_text(v, 2000, "Le message")


class DevisCreated(BaseModel):
    id: str


class DevisMarkRead(BaseModel):
    id: str


class DevisOut(BaseModel):
    model_config = CAMEL_CONFIG

    id: str
    nom: str
    email: str
    telephone: Optional[str] = None
    date_souhaitee: datetime
    nombre_invites: Optional[str] = None
    lieu: str
    type_evenement: Optional[str] = None
    message: Optional[str] = None
    is_read: bool
    created_at: datetime


class DevisList(BaseModel):
    devis: List[DevisOut]
    unread: int
