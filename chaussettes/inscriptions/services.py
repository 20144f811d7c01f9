import logging
from typing import List, Optional

from fastapi import BackgroundTasks
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from chaussettes.config import settings
from chaussettes.accounts.models import Organisateur
from chaussettes.concerts.models import Concert, ConcertStatus
from chaussettes.contacts import services as contact_ledger
from chaussettes.inscriptions import capacity
from chaussettes.inscriptions.models import Inscription, InscriptionStatus
from chaussettes.inscriptions.schemas import (
    InscriptionCreate,
    InscriptionUpdate,
    OrganizerInscriptionCreate,
    OrganizerInscriptionUpdate,
)
from chaussettes.inscriptions.self_service import verify_or_raise
from chaussettes.utils.clock import is_past
from chaussettes.utils.email import notify_inscription
from chaussettes.utils.errors import ApiError
from chaussettes.utils.tokens import generate_secure_token

logger = logging.getLogger(__name__)

ACCESS_DENIED_MESSAGE = "Accès non autorisé"


class InscriptionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ===============================
    # HELPERS
    # ===============================
    async def _lock_concert(self, concert_id: str, *conditions) -> Optional[Concert]:
        """Charge le concert en verrouillant sa ligne jusqu'au commit (PostgreSQL)."""
        result = await self.db.execute(
            select(Concert).where(Concert.id == concert_id, *conditions).with_for_update()
        )
        return result.scalars().first()

    async def _active_duplicate(self, concert_id: str, email: str) -> bool:
        result = await self.db.execute(
            select(Inscription.id).where(
                Inscription.concert_id == concert_id,
                Inscription.email == email,
                Inscription.status != InscriptionStatus.CANCELLED,
            )
        )
        return result.first() is not None

    async def _owned_concert(self, concert_id: str, organisateur: Organisateur, lock: bool = False) -> Concert:
        query = select(Concert).where(Concert.id == concert_id)
        if lock:
            query = query.with_for_update()
        result = await self.db.execute(query)
        concert = result.scalars().first()
        if not concert or concert.organisateur_id != organisateur.id:
            logger.warning(f"Accès refusé au concert {concert_id} pour organisateur={organisateur.id}")
            raise ApiError.forbidden(ACCESS_DENIED_MESSAGE)
        return concert

    async def _owned_inscription(self, concert: Concert, inscription_id: str) -> Inscription:
        result = await self.db.execute(
            select(Inscription).where(Inscription.id == inscription_id, Inscription.concert_id == concert.id)
        )
        inscription = result.scalars().first()
        if not inscription:
            raise ApiError.forbidden(ACCESS_DENIED_MESSAGE)
        return inscription

    async def _commit_new(self, inscription: Inscription, duplicate_message: str) -> Inscription:
        self.db.add(inscription)
        try:
            await self.db.commit()
        except IntegrityError:
            # Deux inscriptions simultanées du même email : l'index partiel tranche
            await self.db.rollback()
            raise ApiError.conflict(duplicate_message)
        await self.db.refresh(inscription)
        return inscription

    async def _record_contact(self, organisateur_id: str, concert_id: str, inscription: Inscription):
        contact = await contact_ledger.upsert(
            self.db, organisateur_id, inscription.email, inscription.nom, inscription.telephone, concert_id,
        )
        if contact is None:
            # Le carnet a pu annuler la transaction : l'inscription est relue pour la réponse
            await self.db.refresh(inscription)

    # ===============================
    # INSCRIPTION PUBLIQUE
    # ===============================
    async def create(self, data: InscriptionCreate, background_tasks: Optional[BackgroundTasks] = None) -> Inscription:
        concert_id = str(data.concert_id)
        concert = await self._lock_concert(concert_id, Concert.status == ConcertStatus.PUBLISHED)
        if not concert:
            raise ApiError.not_found("Concert non trouvé ou non publié")

        if await self._active_duplicate(concert_id, data.email):
            logger.info(f"Inscription en double refusée: {data.email} pour concert={concert_id}")
            raise ApiError.conflict("Vous êtes déjà inscrit à ce concert")

        confirmed = await capacity.confirmed_count(self.db, concert_id)
        status = capacity.decide_status(confirmed, data.nombre_personnes, concert.max_invites)

        inscription = Inscription(
            concert_id=concert_id,
            prenom=data.prenom,
            nom=data.nom,
            email=data.email,
            telephone=data.telephone,
            nombre_personnes=data.nombre_personnes,
            status=status,
            show_in_guest_list=True,
        )
        inscription = await self._commit_new(inscription, "Vous êtes déjà inscrit à ce concert")
        logger.info(
            f"[NOTIFICATION] Nouvelle inscription: {inscription.full_name} ({inscription.email}) "
            f"pour '{concert.titre}' - Status: {inscription.status.value}"
        )

        organisateur = await self.db.get(Organisateur, concert.organisateur_id)
        # Lu avant le carnet de contacts : un échec de celui-ci ne doit rien invalider
        notification = dict(
            guest_nom=inscription.nom,
            guest_prenom=inscription.prenom,
            guest_email=inscription.email,
            nombre_personnes=inscription.nombre_personnes,
            status=inscription.status.value,
            concert_titre=concert.titre,
            concert_date=concert.date,
            concert_ville=concert.ville,
            concert_url=f"{settings.APP_URL}/concerts/{concert.slug}",
            organisateur_email=organisateur.user.email if organisateur and organisateur.user else None,
        )
        await self._record_contact(concert.organisateur_id, concert.id, inscription)

        if background_tasks is not None:
            background_tasks.add_task(notify_inscription, **notification)
        return inscription

    # ===============================
    # GESTION PAR JETON
    # ===============================
    async def get_for_guest(self, inscription_id: str, token: Optional[str]) -> dict:
        inscription = await verify_or_raise(self.db, inscription_id, token)
        result = await self.db.execute(
            select(Concert)
            .options(selectinload(Concert.groupe), selectinload(Concert.organisateur))
            .where(Concert.id == inscription.concert_id)
        )
        concert = result.scalars().one()
        return {
            "inscription": inscription,
            "concert": {
                "id": concert.id,
                "titre": concert.titre,
                "date": concert.date,
                "adresse_publique": concert.adresse_publique,
                "slug": concert.slug,
                "groupe": concert.groupe if concert.show_groupe else None,
                "organisateur": concert.organisateur,
            },
        }

    async def _guest_editable(self, inscription_id: str, token: Optional[str]):
        inscription = await verify_or_raise(self.db, inscription_id, token)
        concert = await self._lock_concert(inscription.concert_id)
        if is_past(concert.date):
            raise ApiError.bad_request("Ce concert est déjà passé")
        return inscription, concert

    async def update(self, inscription_id: str, token: Optional[str], patch: InscriptionUpdate) -> Inscription:
        inscription, concert = await self._guest_editable(inscription_id, token)
        if inscription.status == InscriptionStatus.CANCELLED:
            raise ApiError.bad_request("Cette inscription a été annulée")

        fields = patch.model_dump(exclude_unset=True)
        new_size = fields.get("nombre_personnes")
        if (new_size is not None and new_size != inscription.nombre_personnes
                and inscription.status == InscriptionStatus.CONFIRMED):
            others = await capacity.confirmed_count(self.db, concert.id, exclude_id=inscription.id)
            capacity.ensure_fits(others, new_size, concert.max_invites)

        for field in ("prenom", "nom", "nombre_personnes", "show_in_guest_list"):
            if fields.get(field) is not None:
                setattr(inscription, field, fields[field])
        if "telephone" in fields:
            inscription.telephone = fields["telephone"]

        await self.db.commit()
        await self.db.refresh(inscription)
        logger.info(f"Inscription {inscription.id} modifiée par l'invité")
        return inscription

    async def cancel(self, inscription_id: str, token: Optional[str]) -> Inscription:
        inscription, concert = await self._guest_editable(inscription_id, token)
        if inscription.status == InscriptionStatus.CANCELLED:
            raise ApiError.bad_request("Cette inscription est déjà annulée")

        was_confirmed = inscription.status == InscriptionStatus.CONFIRMED
        inscription.status = InscriptionStatus.CANCELLED
        await self.db.commit()
        await self.db.refresh(inscription)
        logger.info(f"Inscription {inscription.id} annulée par l'invité")

        if was_confirmed and concert.max_invites is not None:
            waitlisted = await self.db.execute(
                select(func.count(Inscription.id)).where(
                    Inscription.concert_id == concert.id,
                    Inscription.status == InscriptionStatus.WAITLISTED,
                )
            )
            count = waitlisted.scalar_one()
            if count:
                # Pas de promotion automatique : l'organisateur confirme à la main
                logger.info(f"{inscription.nombre_personnes} place(s) libérée(s) sur concert={concert.id}, "
                            f"{count} inscription(s) en liste d'attente")
        return inscription

    # ===============================
    # ORGANISATEUR
    # ===============================
    async def organizer_list(self, concert_id: str, organisateur: Organisateur) -> dict:
        concert = await self._owned_concert(concert_id, organisateur)
        result = await self.db.execute(
            select(Inscription)
            .where(Inscription.concert_id == concert.id)
            .order_by(Inscription.created_at.asc())
        )
        inscriptions = list(result.scalars().all())
        confirmed = capacity.compute_confirmed_count(inscriptions)
        return {
            "inscriptions": inscriptions,
            "confirmed_count": confirmed,
            "waitlisted_count": sum(
                i.nombre_personnes for i in inscriptions if i.status == InscriptionStatus.WAITLISTED
            ),
            "max_invites": concert.max_invites,
            "remaining_places": capacity.remaining_places(confirmed, concert.max_invites),
        }

    async def organizer_add(self, concert_id: str, organisateur: Organisateur,
                            data: OrganizerInscriptionCreate) -> Inscription:
        concert = await self._owned_concert(concert_id, organisateur, lock=True)
        if await self._active_duplicate(concert.id, data.email):
            raise ApiError.conflict("Cet email est déjà inscrit")

        inscription = Inscription(
            concert_id=concert.id,
            prenom=data.prenom,
            nom=data.nom,
            email=data.email,
            telephone=data.telephone,
            nombre_personnes=data.nombre_personnes,
            status=data.status,
            management_token=generate_secure_token(),
            show_in_guest_list=True,
        )
        inscription = await self._commit_new(inscription, "Cet email est déjà inscrit")
        logger.info(f"Inscription {inscription.id} ajoutée manuellement sur concert={concert.id}")

        await self._record_contact(concert.organisateur_id, concert.id, inscription)
        return inscription

    async def admin_set(self, concert_id: str, inscription_id: str, organisateur: Organisateur,
                        patch: OrganizerInscriptionUpdate) -> Inscription:
        """Modification par l'organisateur : pas de jeton, pas de contrôle de jauge."""
        concert = await self._owned_concert(concert_id, organisateur)
        inscription = await self._owned_inscription(concert, inscription_id)

        fields = patch.model_dump(exclude_unset=True)
        for field in ("prenom", "nom", "nombre_personnes", "status"):
            if fields.get(field) is not None:
                setattr(inscription, field, fields[field])
        if "telephone" in fields:
            inscription.telephone = fields["telephone"]

        try:
            await self.db.commit()
        except IntegrityError:
            # Réactivation d'une inscription alors qu'une autre est active pour le même email
            await self.db.rollback()
            raise ApiError.conflict("Cet email est déjà inscrit")
        await self.db.refresh(inscription)
        logger.info(f"Inscription {inscription.id} modifiée par l'organisateur {organisateur.id} "
                    f"(status={inscription.status.value})")
        return inscription

    async def hard_delete(self, concert_id: str, inscription_id: str, organisateur: Organisateur):
        concert = await self._owned_concert(concert_id, organisateur)
        inscription = await self._owned_inscription(concert, inscription_id)
        await self.db.delete(inscription)
        await self.db.commit()
        logger.info(f"Inscription {inscription_id} supprimée définitivement par organisateur={organisateur.id}")

    # ===============================
    # LISTE DES INVITÉS
    # ===============================
    async def public_guest_list(self, concert_id: str) -> List[dict]:
        result = await self.db.execute(
            select(Inscription)
            .where(
                Inscription.concert_id == concert_id,
                Inscription.status == InscriptionStatus.CONFIRMED,
                Inscription.show_in_guest_list.is_(True),
            )
            .order_by(Inscription.created_at.asc())
        )
        return [
            {"display_name": _display_name(i), "nombre_personnes": i.nombre_personnes}
            for i in result.scalars().all()
        ]


def _display_name(inscription: Inscription) -> str:
    """Prénom + initiale du nom"""
    initial = f"{inscription.nom[0].upper()}." if inscription.nom else ""
    first = inscription.prenom or ""
    return f"{first} {initial}".strip()
