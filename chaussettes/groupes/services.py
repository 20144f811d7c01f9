"""
Annuaire public des groupes.

Seuls les groupes visibles apparaissent ; les groupes mis en avant (boost)
passent en tête, puis l'ordre est alphabétique.
"""
import logging
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chaussettes.accounts.models import Genre, Groupe

logger = logging.getLogger(__name__)


async def search_groupes(
    db: AsyncSession,
    q: Optional[str] = None,
    ville: Optional[str] = None,
    departement: Optional[str] = None,
    region: Optional[str] = None,
    genre_ids: Sequence[str] = (),
) -> List[Groupe]:
    query = select(Groupe).where(Groupe.is_visible.is_(True))

    for column, value in ((Groupe.nom, q), (Groupe.ville, ville),
                          (Groupe.departement, departement), (Groupe.region, region)):
        if value and value.strip():
            query = query.where(column.ilike(f"%{value.strip()}%"))

    if genre_ids:
        # Au moins un des genres demandés
        query = query.where(Groupe.genres.any(Genre.id.in_(list(genre_ids))))

    result = await db.execute(query.order_by(Groupe.is_boosted.desc(), Groupe.nom.asc()))
    groupes = list(result.scalars().all())
    logger.debug(f"Recherche groupes q={q!r} ville={ville!r} genres={list(genre_ids)}: {len(groupes)} résultat(s)")
    return groupes
