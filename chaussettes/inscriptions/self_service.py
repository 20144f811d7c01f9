"""
Gestion d'une inscription sans compte.

L'invité reçoit un lien contenant un jeton secret (``management_token``). Le
jeton est créé à l'ajout par l'organisateur, ou au premier ``lookup`` pour une
inscription faite depuis la page publique.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chaussettes.config import settings
from chaussettes.inscriptions.models import Inscription, InscriptionStatus
from chaussettes.utils.errors import ApiError
from chaussettes.utils.sanitize import sanitize_email
from chaussettes.utils.tokens import generate_secure_token, tokens_match

logger = logging.getLogger(__name__)

INVALID_LINK_MESSAGE = "Lien invalide ou expiré"


def build_management_url(inscription: Inscription) -> str:
    return f"{settings.APP_URL}/inscription/{inscription.id}?token={inscription.management_token}"


async def verify(db: AsyncSession, inscription_id: str, supplied_token: Optional[str]) -> Optional[Inscription]:
    if not supplied_token:
        return None
    inscription = await db.get(Inscription, inscription_id)
    if inscription is None or not inscription.management_token:
        return None
    if not tokens_match(inscription.management_token, supplied_token):
        return None
    return inscription


async def verify_or_raise(db: AsyncSession, inscription_id: str, supplied_token: Optional[str]) -> Inscription:
    inscription = await verify(db, inscription_id, supplied_token)
    if inscription is None:
        logger.warning(f"Jeton de gestion refusé pour inscription={inscription_id}")
        raise ApiError.unauthorized(INVALID_LINK_MESSAGE)
    return inscription


async def lookup(db: AsyncSession, email: str, concert_id: str) -> dict:
    """
    Retrouve l'inscription d'un email pour un concert et renvoie son lien de gestion.

    Idempotent : le jeton n'est généré qu'une fois.
    """
    email = sanitize_email(email)
    result = await db.execute(
        select(Inscription)
        .where(Inscription.concert_id == concert_id, Inscription.email == email)
        .order_by(Inscription.created_at.desc())
    )
    matches = list(result.scalars().all())
    if not matches:
        raise ApiError.not_found("Aucune inscription trouvée avec cet email pour ce concert")

    active = next((i for i in matches if i.status != InscriptionStatus.CANCELLED), None)
    if active is None:
        raise ApiError.bad_request("Cette inscription a été annulée")

    if not active.management_token:
        active.management_token = generate_secure_token()
        await db.commit()
        await db.refresh(active)
        logger.info(f"Jeton de gestion créé pour inscription={active.id}")

    return {
        "found": True,
        "inscription": active,
        "management_url": build_management_url(active),
    }
