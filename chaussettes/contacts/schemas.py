from pydantic import BaseModel, EmailStr, field_validator
from typing import List, Optional
from datetime import datetime

from chaussettes.contacts.models import ContactSource
from chaussettes.utils.sanitize import sanitize_email
from chaussettes.utils.validators import CAMEL_CONFIG, clean_optional_text, clean_phone


class ContactCreate(BaseModel):
    model_config = CAMEL_CONFIG

    email: EmailStr
    nom: Optional[str] = None
    telephone: Optional[str] = None
    tags: List[str] = []

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        return sanitize_email(v)

    @field_validator('nom')
    @classmethod
    def validate_nom(cls, v):
        return clean_optional_text(v, 100, "Le nom")

    @field_validator('telephone')
    @classmethod
    def validate_telephone(cls, v):
        return clean_phone(v)


class ContactOut(BaseModel):
    model_config = CAMEL_CONFIG

    id: str
    email: str
    nom: Optional[str] = None
    telephone: Optional[str] = None
    tags: List[str] = []
    source_type: ContactSource
    nombre_participations: int
    dernier_concert_id: Optional[str] = None
    created_at: datetime


class ContactList(BaseModel):
    contacts: List[ContactOut]
    total: int
