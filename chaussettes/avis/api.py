from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from chaussettes.db.session import get_db
from chaussettes.auth.models import User, UserRole
from chaussettes.auth.permissions import require_role, get_current_organisateur
from chaussettes.accounts.models import Organisateur
from chaussettes.avis.services import AvisService
from chaussettes.avis.schemas import (
    AvisOrganizerCreate, AvisGuestCreate, AvisInvitationCreate, AvisVisibilityUpdate,
    AvisCreated, AvisAdmin, GroupeAvisStats, AvisFormContext, ReviewInvitationResult,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Avis"])


# ===============================
# ORGANISATEUR
# ===============================
@router.post("/api/avis", response_model=AvisCreated)
async def create_organizer_avis(
    payload: AvisOrganizerCreate,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_role(UserRole.ORGANISATEUR)),
    organisateur: Organisateur = Depends(get_current_organisateur),
    db: AsyncSession = Depends(get_db),
):
    avis = await AvisService(db).submit_organizer(organisateur, user.email, payload, background_tasks)
    return {"id": avis.id}


@router.post("/api/organisateur/concerts/{concert_id}/review-invitations", response_model=ReviewInvitationResult)
async def send_review_invitations(
    concert_id: str,
    background_tasks: BackgroundTasks,
    organisateur: Organisateur = Depends(get_current_organisateur),
    db: AsyncSession = Depends(get_db),
):
    sent = await AvisService(db).send_review_invitations(concert_id, organisateur, background_tasks)
    return {"sent": sent}


# ===============================
# INVITÉS
# ===============================
@router.get("/api/avis/concert/{concert_id}", response_model=AvisFormContext)
async def get_concert_avis_form(concert_id: str, db: AsyncSession = Depends(get_db)):
    return await AvisService(db).concert_form_context(concert_id)


@router.post("/api/avis/concert/{concert_id}", response_model=AvisCreated)
async def create_concert_avis(
    concert_id: str,
    payload: AvisGuestCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    avis = await AvisService(db).submit_guest_concert(concert_id, payload, background_tasks)
    return {"id": avis.id}


@router.get("/api/avis/groupe/{groupe_id}", response_model=GroupeAvisStats)
async def get_groupe_avis(groupe_id: str, db: AsyncSession = Depends(get_db)):
    return await AvisService(db).groupe_stats(groupe_id)


@router.post("/api/avis/groupe/{groupe_id}", response_model=AvisCreated)
async def create_groupe_avis(
    groupe_id: str,
    payload: AvisGuestCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    avis = await AvisService(db).submit_guest_groupe(groupe_id, payload, background_tasks)
    return {"id": avis.id}


@router.get("/api/avis/invitation/{review_token}", response_model=AvisFormContext)
async def get_invitation(review_token: str, db: AsyncSession = Depends(get_db)):
    return await AvisService(db).invitation_context(review_token)


@router.post("/api/avis/invitation/{review_token}", response_model=AvisCreated)
async def submit_invitation(
    review_token: str,
    payload: AvisInvitationCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    avis = await AvisService(db).submit_invitation(review_token, payload, background_tasks)
    return {"id": avis.id}


# ===============================
# MODÉRATION
# ===============================
@router.patch("/api/admin/avis/{avis_id}", response_model=AvisAdmin)
async def moderate_avis(
    avis_id: str,
    payload: AvisVisibilityUpdate,
    _: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return await AvisService(db).set_visibility(avis_id, payload.is_visible)
