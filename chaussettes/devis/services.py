import logging
from typing import List, Optional

from fastapi import BackgroundTasks
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chaussettes.accounts.models import Groupe
from chaussettes.devis.models import DemandeDevis
from chaussettes.devis.schemas import DevisCreate
from chaussettes.utils.email import notify_devis_received
from chaussettes.utils.errors import ApiError

logger = logging.getLogger(__name__)


class DevisService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: DevisCreate, background_tasks: Optional[BackgroundTasks] = None) -> DemandeDevis:
        """Demande de devis envoyée à un groupe depuis sa fiche publique."""
        groupe = await self.db.get(Groupe, str(data.groupe_id))
        if not groupe:
            raise ApiError.not_found("Groupe non trouvé")

        demande = DemandeDevis(
            groupe_id=groupe.id,
            nom=data.nom,
            email=data.email,
            telephone=data.telephone,
            date_souhaitee=data.date_souhaitee,
            nombre_invites=data.nombre_invites,
            lieu=data.lieu,
            type_evenement=data.type_evenement,
            message=data.message,
        )
        self.db.add(demande)
        await self.db.commit()
        await self.db.refresh(demande)
        logger.info(f"Demande de devis {demande.id} reçue pour groupe={groupe.id}")

        if background_tasks is not None and groupe.contact_email:
            background_tasks.add_task(
                notify_devis_received,
                groupe_contact_email=groupe.contact_email,
                groupe_nom=groupe.nom,
                requester_nom=demande.nom,
                requester_email=demande.email,
                requester_telephone=demande.telephone,
                date_souhaitee=demande.date_souhaitee,
                nombre_invites=demande.nombre_invites,
                lieu=demande.lieu,
                type_evenement=demande.type_evenement,
                message=demande.message,
            )
        return demande

    async def list_for_groupe(self, groupe: Groupe) -> List[DemandeDevis]:
        result = await self.db.execute(
            select(DemandeDevis)
            .where(DemandeDevis.groupe_id == groupe.id)
            .order_by(DemandeDevis.created_at.desc())
        )
        return list(result.scalars().all())

    async def mark_read(self, groupe: Groupe, devis_id: str) -> DemandeDevis:
        result = await self.db.execute(
            select(DemandeDevis).where(DemandeDevis.id == devis_id, DemandeDevis.groupe_id == groupe.id)
        )
        demande = result.scalars().first()
        if not demande:
            raise ApiError.not_found("Demande de devis introuvable")
        demande.is_read = True
        await self.db.commit()
        return demande
