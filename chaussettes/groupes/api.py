from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from chaussettes.db.session import get_db
from chaussettes.groupes.services import search_groupes
from chaussettes.groupes.schemas import GroupeSearchResults

router = APIRouter(prefix="/api/groupes", tags=["Groupes"])


@router.get("/search", response_model=GroupeSearchResults)
async def search(
    q: Optional[str] = Query(None, max_length=100),
    ville: Optional[str] = Query(None, max_length=100),
    departement: Optional[str] = Query(None, max_length=100),
    region: Optional[str] = Query(None, max_length=100),
    genres: Optional[str] = Query(None, description="Identifiants de genres séparés par des virgules"),
    db: AsyncSession = Depends(get_db),
):
    genre_ids = [g.strip() for g in (genres or "").split(",") if g.strip()]
    groupes = await search_groupes(db, q=q, ville=ville, departement=departement, region=region,
                                   genre_ids=genre_ids)
    return {"groupes": groupes}
