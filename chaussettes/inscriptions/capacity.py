"""
Comptabilité des places d'un concert.

Seules les inscriptions CONFIRMED consomment des places ; la liste d'attente
et les annulations n'entrent pas dans le décompte.
"""
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chaussettes.inscriptions.models import Inscription, InscriptionStatus
from chaussettes.utils.errors import ApiError


def compute_confirmed_count(inscriptions: Iterable[Inscription], exclude_id: Optional[str] = None) -> int:
    return sum(
        i.nombre_personnes
        for i in inscriptions
        if i.status == InscriptionStatus.CONFIRMED and i.id != exclude_id
    )


async def confirmed_count(db: AsyncSession, concert_id: str, exclude_id: Optional[str] = None) -> int:
    """Même calcul que compute_confirmed_count, fait par la base."""
    query = select(func.coalesce(func.sum(Inscription.nombre_personnes), 0)).where(
        Inscription.concert_id == concert_id,
        Inscription.status == InscriptionStatus.CONFIRMED,
    )
    if exclude_id is not None:
        query = query.where(Inscription.id != exclude_id)
    result = await db.execute(query)
    return int(result.scalar_one())


def decide_status(current_confirmed: int, requested_party_size: int,
                  max_invites: Optional[int]) -> InscriptionStatus:
    if max_invites is None:
        return InscriptionStatus.CONFIRMED
    if current_confirmed + requested_party_size <= max_invites:
        return InscriptionStatus.CONFIRMED
    return InscriptionStatus.WAITLISTED


def remaining_places(current_confirmed: int, max_invites: Optional[int]) -> Optional[int]:
    if max_invites is None:
        return None
    return max(0, max_invites - current_confirmed)


def ensure_fits(current_confirmed: int, requested_party_size: int, max_invites: Optional[int]):
    """Refuse une modification qui ferait dépasser la jauge."""
    if decide_status(current_confirmed, requested_party_size, max_invites) == InscriptionStatus.WAITLISTED:
        raise ApiError.bad_request(
            f"Il ne reste que {remaining_places(current_confirmed, max_invites)} place(s) disponible(s)"
        )
