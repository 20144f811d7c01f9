"""
Dépôt et modération des avis sur les groupes.

Un avis est unique par (concert, email) lorsqu'il porte sur un concert, sinon
par (groupe, email). Le contrôle est fait avant l'écriture, et les index
partiels de la table ``avis`` couvrent les soumissions simultanées.
"""
import logging
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from chaussettes.config import settings
from chaussettes.accounts.models import Groupe, Organisateur
from chaussettes.avis.models import Avis, AuteurType
from chaussettes.avis.schemas import AvisOrganizerCreate, AvisGuestCreate, AvisInvitationCreate
from chaussettes.concerts.models import Concert, ConcertStatus
from chaussettes.inscriptions.models import Inscription, InscriptionStatus
from chaussettes.utils.clock import now
from chaussettes.utils.email import notify_avis_received, notify_review_invitation
from chaussettes.utils.errors import ApiError
from chaussettes.utils.sanitize import sanitize_email
from chaussettes.utils.tokens import generate_secure_token

logger = logging.getLogger(__name__)

GUEST_DUPLICATE_MESSAGE = "Un avis a déjà été soumis pour cet email et ce concert"
ORGANIZER_DUPLICATE_MESSAGE = "Vous avez déjà laissé un avis pour ce concert"
NO_GROUPE_MESSAGE = "Aucun groupe associé à ce concert"
LATEST_AVIS_LIMIT = 20


class AvisService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ===============================
    # GARDE
    # ===============================
    async def _exists(self, groupe_id: str, concert_id: Optional[str], email: str) -> bool:
        query = select(Avis.id).where(Avis.auteur_email == email)
        if concert_id:
            query = query.where(Avis.concert_id == concert_id)
        else:
            query = query.where(Avis.groupe_id == groupe_id, Avis.concert_id.is_(None))
        result = await self.db.execute(query)
        return result.first() is not None

    async def submit(
        self,
        *,
        groupe_id: str,
        concert_id: Optional[str],
        auteur_type: AuteurType,
        auteur_email: str,
        auteur_nom: Optional[str],
        note: int,
        commentaire: Optional[str],
        duplicate_message: str,
        commit: bool = True,
    ) -> Avis:
        """Enregistre un avis si aucun n'existe déjà pour la même portée et le même email."""
        email = sanitize_email(auteur_email)
        if await self._exists(groupe_id, concert_id, email):
            logger.info(f"Avis en double refusé: {email} (groupe={groupe_id}, concert={concert_id})")
            raise ApiError.conflict(duplicate_message)

        avis = Avis(
            groupe_id=groupe_id,
            concert_id=concert_id,
            auteur_type=auteur_type,
            auteur_email=email,
            auteur_nom=auteur_nom or None,
            note=note,
            commentaire=commentaire or None,
        )
        self.db.add(avis)
        if commit:
            await self._commit(duplicate_message)
            await self.db.refresh(avis)
            logger.info(f"Avis {avis.id} enregistré pour groupe={groupe_id} (note={note})")
        return avis

    async def _commit(self, duplicate_message: str):
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ApiError.conflict(duplicate_message)

    def _notify(self, background_tasks: Optional[BackgroundTasks], groupe: Groupe, avis: Avis,
                concert_titre: Optional[str]):
        if background_tasks is None or not groupe.contact_email:
            return
        background_tasks.add_task(
            notify_avis_received,
            groupe_contact_email=groupe.contact_email,
            groupe_nom=groupe.nom,
            auteur_nom=avis.auteur_nom,
            auteur_type=avis.auteur_type.value,
            note=avis.note,
            commentaire=avis.commentaire,
            concert_titre=concert_titre,
        )

    async def _concert_with_groupe(self, concert_id: str) -> Optional[Concert]:
        result = await self.db.execute(
            select(Concert).options(selectinload(Concert.groupe)).where(Concert.id == concert_id)
        )
        return result.scalars().first()

    # ===============================
    # ORGANISATEUR
    # ===============================
    async def submit_organizer(self, organisateur: Organisateur, auteur_email: str, data: AvisOrganizerCreate,
                               background_tasks: Optional[BackgroundTasks] = None) -> Avis:
        concert_id, groupe_id = str(data.concert_id), str(data.groupe_id)
        result = await self.db.execute(
            select(Concert)
            .options(selectinload(Concert.groupe))
            .where(Concert.id == concert_id, Concert.organisateur_id == organisateur.id)
        )
        concert = result.scalars().first()
        if not concert:
            raise ApiError.not_found("Concert introuvable")
        if concert.status != ConcertStatus.PAST:
            raise ApiError.bad_request("Le concert n'est pas encore terminé")
        if concert.groupe_id != groupe_id:
            raise ApiError.bad_request("Ce groupe n'a pas joué à ce concert")

        avis = await self.submit(
            groupe_id=groupe_id,
            concert_id=concert_id,
            auteur_type=AuteurType.ORGANIZER,
            auteur_email=auteur_email,
            auteur_nom=organisateur.nom,
            note=data.note,
            commentaire=data.commentaire,
            duplicate_message=ORGANIZER_DUPLICATE_MESSAGE,
        )
        self._notify(background_tasks, concert.groupe, avis, concert.titre)
        return avis

    async def send_review_invitations(self, concert_id: str, organisateur: Organisateur,
                                      background_tasks: Optional[BackgroundTasks] = None) -> int:
        """Crée un jeton d'avis pour chaque invité confirmé et lui envoie le lien."""
        concert = await self._concert_with_groupe(concert_id)
        if not concert or concert.organisateur_id != organisateur.id:
            raise ApiError.not_found("Concert introuvable")
        if concert.status != ConcertStatus.PAST:
            raise ApiError.bad_request("Le concert n'est pas encore terminé")
        if not concert.groupe:
            raise ApiError.bad_request(NO_GROUPE_MESSAGE)

        result = await self.db.execute(
            select(Inscription).where(
                Inscription.concert_id == concert.id,
                Inscription.status == InscriptionStatus.CONFIRMED,
                Inscription.review_token.is_(None),
            )
        )
        inscriptions = list(result.scalars().all())
        for inscription in inscriptions:
            inscription.review_token = generate_secure_token()
        await self.db.commit()

        if background_tasks is not None:
            for inscription in inscriptions:
                background_tasks.add_task(
                    notify_review_invitation,
                    guest_email=inscription.email,
                    guest_nom=inscription.full_name,
                    concert_titre=concert.titre,
                    groupe_nom=concert.groupe.nom,
                    review_url=f"{settings.APP_URL}/avis/{inscription.review_token}",
                )
        logger.info(f"{len(inscriptions)} invitation(s) à laisser un avis pour concert={concert.id}")
        return len(inscriptions)

    # ===============================
    # INVITÉS
    # ===============================
    async def concert_form_context(self, concert_id: str) -> dict:
        concert = await self._concert_with_groupe(concert_id)
        if not concert:
            raise ApiError.not_found("Concert introuvable")
        if not concert.groupe:
            raise ApiError.bad_request(NO_GROUPE_MESSAGE)
        return {"concert": concert, "groupe": concert.groupe}

    async def submit_guest_concert(self, concert_id: str, data: AvisGuestCreate,
                                   background_tasks: Optional[BackgroundTasks] = None) -> Avis:
        concert = await self._concert_with_groupe(concert_id)
        if not concert or not concert.groupe:
            raise ApiError.not_found("Concert introuvable")

        avis = await self.submit(
            groupe_id=concert.groupe.id,
            concert_id=concert.id,
            auteur_type=AuteurType.GUEST,
            auteur_email=data.email,
            auteur_nom=data.nom,
            note=data.note,
            commentaire=data.commentaire,
            duplicate_message=GUEST_DUPLICATE_MESSAGE,
        )
        self._notify(background_tasks, concert.groupe, avis, concert.titre)
        return avis

    async def _visible_groupe(self, groupe_id: str) -> Groupe:
        result = await self.db.execute(
            select(Groupe).where(Groupe.id == groupe_id, Groupe.is_visible.is_(True))
        )
        groupe = result.scalars().first()
        if not groupe:
            raise ApiError.not_found("Groupe introuvable")
        return groupe

    async def submit_guest_groupe(self, groupe_id: str, data: AvisGuestCreate,
                                  background_tasks: Optional[BackgroundTasks] = None) -> Avis:
        groupe = await self._visible_groupe(groupe_id)
        avis = await self.submit(
            groupe_id=groupe.id,
            concert_id=None,
            auteur_type=AuteurType.GUEST,
            auteur_email=data.email,
            auteur_nom=data.nom,
            note=data.note,
            commentaire=data.commentaire,
            duplicate_message="Un avis a déjà été soumis pour cet email et ce groupe",
        )
        self._notify(background_tasks, groupe, avis, None)
        return avis

    async def groupe_stats(self, groupe_id: str) -> dict:
        groupe = await self._visible_groupe(groupe_id)
        visible = (Avis.groupe_id == groupe.id, Avis.is_visible.is_(True))

        stats = await self.db.execute(select(func.avg(Avis.note), func.count(Avis.id)).where(*visible))
        avg_note, total = stats.one()

        result = await self.db.execute(
            select(Avis).where(*visible).order_by(Avis.created_at.desc()).limit(LATEST_AVIS_LIMIT)
        )
        return {
            "avg_note": round(float(avg_note), 1) if avg_note is not None else None,
            "total": int(total),
            "avis": list(result.scalars().all()),
        }

    # ===============================
    # LIEN D'INVITATION
    # ===============================
    async def _invitation(self, review_token: str):
        result = await self.db.execute(
            select(Inscription)
            .options(selectinload(Inscription.concert).selectinload(Concert.groupe))
            .where(Inscription.review_token == review_token)
        )
        inscription = result.scalars().first()
        if not inscription:
            raise ApiError.not_found("Lien invalide ou expiré")
        if inscription.reviewed_at:
            raise ApiError.conflict("Vous avez déjà laissé un avis")
        if not inscription.concert.groupe:
            raise ApiError.bad_request(NO_GROUPE_MESSAGE)
        return inscription

    async def invitation_context(self, review_token: str) -> dict:
        inscription = await self._invitation(review_token)
        return {
            "concert": inscription.concert,
            "groupe": inscription.concert.groupe,
            "auteur_nom": inscription.full_name,
        }

    async def submit_invitation(self, review_token: str, data: AvisInvitationCreate,
                                background_tasks: Optional[BackgroundTasks] = None) -> Avis:
        inscription = await self._invitation(review_token)
        concert = inscription.concert

        avis = await self.submit(
            groupe_id=concert.groupe.id,
            concert_id=concert.id,
            auteur_type=AuteurType.GUEST,
            auteur_email=inscription.email,
            auteur_nom=inscription.full_name,
            note=data.note,
            commentaire=data.commentaire,
            duplicate_message=GUEST_DUPLICATE_MESSAGE,
            commit=False,
        )
        # L'avis et le marquage du lien partent dans la même transaction
        inscription.reviewed_at = now()
        await self._commit(GUEST_DUPLICATE_MESSAGE)
        await self.db.refresh(avis)
        logger.info(f"Avis {avis.id} déposé via invitation (inscription={inscription.id})")

        self._notify(background_tasks, concert.groupe, avis, concert.titre)
        return avis

    # ===============================
    # MODÉRATION
    # ===============================
    async def set_visibility(self, avis_id: str, is_visible: bool) -> Avis:
        avis = await self.db.get(Avis, avis_id)
        if not avis:
            raise ApiError.not_found("Avis introuvable")
        avis.is_visible = is_visible
        await self.db.commit()
        await self.db.refresh(avis)
        logger.info(f"Avis {avis_id} {'rendu visible' if is_visible else 'masqué'} par modération")
        return avis
