from pydantic import BaseModel
from typing import List, Optional

from chaussettes.utils.validators import CAMEL_CONFIG


class GenreOut(BaseModel):
    model_config = CAMEL_CONFIG

    id: str
    nom: str


class GroupeCard(BaseModel):
    model_config = CAMEL_CONFIG

    id: str
    nom: str
    bio: Optional[str] = None
    thumbnail_url: Optional[str] = None
    ville: Optional[str] = None
    departement: Optional[str] = None
    region: Optional[str] = None
    youtube_videos: List[str] = []
    contact_email: Optional[str] = None
    contact_tel: Optional[str] = None
    contact_site: Optional[str] = None
    is_verified: bool
    is_boosted: bool
    genres: List[GenreOut] = []


class GroupeSearchResults(BaseModel):
    groupes: List[GroupeCard]
