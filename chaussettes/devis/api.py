from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from chaussettes.db.session import get_db
from chaussettes.auth.permissions import get_current_groupe
from chaussettes.accounts.models import Groupe
from chaussettes.devis.services import DevisService
from chaussettes.devis.schemas import DevisCreate, DevisCreated, DevisList, DevisMarkRead

router = APIRouter(tags=["Devis"])


@router.post("/api/devis", response_model=DevisCreated, status_code=status.HTTP_201_CREATED)
async def create_devis(
    payload: DevisCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    demande = await DevisService(db).create(payload, background_tasks)
    return {"id": demande.id}


@router.get("/api/groupe/devis", response_model=DevisList)
async def list_devis(
    groupe: Groupe = Depends(get_current_groupe),
    db: AsyncSession = Depends(get_db),
):
    devis = await DevisService(db).list_for_groupe(groupe)
    return {"devis": devis, "unread": sum(1 for d in devis if not d.is_read)}


@router.patch("/api/groupe/devis")
async def mark_devis_read(
    payload: DevisMarkRead,
    groupe: Groupe = Depends(get_current_groupe),
    db: AsyncSession = Depends(get_db),
):
    await DevisService(db).mark_read(groupe, payload.id)
    return {"success": True}
