import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from chaussettes.config import settings
from chaussettes.accounts.models import Groupe, Organisateur
from chaussettes.concerts.models import Concert, ConcertStatus
from chaussettes.concerts.schemas import ConcertCreate, ConcertUpdate
from chaussettes.inscriptions import capacity
from chaussettes.inscriptions.services import InscriptionService
from chaussettes.utils.clock import now
from chaussettes.utils.errors import ApiError
from chaussettes.utils.tokens import generate_unique_slug

logger = logging.getLogger(__name__)


async def mark_past_concerts(db: AsyncSession, at: Optional[datetime] = None) -> int:
    """Passe en PAST les concerts publiés dont la date est dépassée."""
    at = at or now()
    result = await db.execute(
        update(Concert)
        .where(Concert.status == ConcertStatus.PUBLISHED, Concert.date < at)
        .values(status=ConcertStatus.PAST, updated_at=at)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    if result.rowcount:
        logger.info(f"{result.rowcount} concert(s) marqué(s) comme passé(s)")
    return result.rowcount or 0


class ConcertService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _check_quota(self, organisateur: Organisateur, is_premium: bool):
        if is_premium:
            return
        year = now().year
        start = datetime(year, 1, 1, tzinfo=timezone.utc)
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
        result = await self.db.execute(
            select(func.count(Concert.id)).where(
                Concert.organisateur_id == organisateur.id,
                Concert.date >= start,
                Concert.date < end,
            )
        )
        if result.scalar_one() >= settings.FREE_CONCERTS_LIMIT_PER_YEAR:
            logger.info(f"Quota freemium atteint pour organisateur={organisateur.id}")
            raise ApiError.forbidden(
                f"Limite de {settings.FREE_CONCERTS_LIMIT_PER_YEAR} concerts/an atteinte. "
                f"Passez en Premium pour créer plus de concerts."
            )

    async def _check_groupe(self, groupe_id: Optional[str]):
        if groupe_id and not await self.db.get(Groupe, groupe_id):
            raise ApiError.not_found("Groupe non trouvé")

    async def create(self, organisateur: Organisateur, data: ConcertCreate, is_premium: bool = False) -> Concert:
        await self._check_quota(organisateur, is_premium)
        await self._check_groupe(data.groupe_id)

        concert = Concert(
            organisateur_id=organisateur.id,
            groupe_id=data.groupe_id,
            titre=data.titre,
            description=data.description,
            date=data.date,
            adresse_complete=data.adresse_complete,
            adresse_publique=data.adresse_publique,
            ville=data.ville,
            slug=generate_unique_slug(data.titre),
            show_groupe=data.show_groupe,
            max_invites=data.max_invites,
            status=data.status,
        )
        self.db.add(concert)
        await self.db.commit()
        await self.db.refresh(concert)
        logger.info(f"Concert créé: id={concert.id}, titre={concert.titre}, organisateur={organisateur.id}")
        return concert

    async def list_mine(self, organisateur: Organisateur) -> List[Concert]:
        result = await self.db.execute(
            select(Concert).where(Concert.organisateur_id == organisateur.id).order_by(Concert.date.desc())
        )
        return list(result.scalars().all())

    async def get_owned(self, concert_id: str, organisateur: Organisateur) -> Concert:
        result = await self.db.execute(
            select(Concert).where(Concert.id == concert_id, Concert.organisateur_id == organisateur.id)
        )
        concert = result.scalars().first()
        if not concert:
            raise ApiError.not_found("Concert non trouvé")
        return concert

    async def update(self, concert_id: str, organisateur: Organisateur, data: ConcertUpdate) -> Concert:
        concert = await self.get_owned(concert_id, organisateur)
        fields = data.model_dump(exclude_unset=True)

        if fields.get("max_invites") is not None:
            confirmed = await capacity.confirmed_count(self.db, concert.id)
            if confirmed > fields["max_invites"]:
                raise ApiError.bad_request(
                    f"{confirmed} personne(s) déjà confirmée(s) : la jauge ne peut pas être inférieure"
                )
        if "groupe_id" in fields:
            await self._check_groupe(fields["groupe_id"])

        for field in ("titre", "date", "show_groupe", "status"):
            if fields.get(field) is not None:
                setattr(concert, field, fields[field])
        # Champs effaçables avec null
        for field in ("description", "adresse_complete", "adresse_publique", "ville", "groupe_id", "max_invites"):
            if field in fields:
                setattr(concert, field, fields[field])

        await self.db.commit()
        await self.db.refresh(concert)
        logger.info(f"Concert {concert.id} mis à jour (status={concert.status.value})")
        return concert

    async def delete(self, concert_id: str, organisateur: Organisateur):
        concert = await self.get_owned(concert_id, organisateur)
        await self.db.delete(concert)
        await self.db.commit()
        logger.info(f"Concert {concert_id} supprimé par organisateur={organisateur.id}")

    async def public_view(self, slug: str) -> dict:
        result = await self.db.execute(
            select(Concert)
            .options(selectinload(Concert.groupe), selectinload(Concert.organisateur))
            .where(
                Concert.slug == slug,
                Concert.status.in_([ConcertStatus.PUBLISHED, ConcertStatus.PAST]),
            )
        )
        concert = result.scalars().first()
        if not concert:
            raise ApiError.not_found("Concert non trouvé")

        confirmed = await capacity.confirmed_count(self.db, concert.id)
        remaining = capacity.remaining_places(confirmed, concert.max_invites)
        groupe = concert.groupe if concert.show_groupe and concert.groupe and concert.groupe.is_visible else None
        return {
            "id": concert.id,
            "titre": concert.titre,
            "description": concert.description,
            "date": concert.date,
            "adresse_publique": concert.adresse_publique,
            "ville": concert.ville,
            "slug": concert.slug,
            "status": concert.status,
            "organisateur_nom": concert.organisateur.nom,
            "groupe": groupe,
            "capacity": {
                "max_invites": concert.max_invites,
                "confirmed": confirmed,
                "remaining": remaining,
                "is_full": remaining == 0,
            },
            "guests": await InscriptionService(self.db).public_guest_list(concert.id),
        }
