from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

from chaussettes.config import settings
from chaussettes.db.session import get_db
from chaussettes.auth.permissions import get_current_organisateur
from chaussettes.accounts.models import Organisateur
from chaussettes.inscriptions import self_service
from chaussettes.inscriptions.services import InscriptionService
from chaussettes.inscriptions.schemas import (
    InscriptionCreate, InscriptionUpdate, OrganizerInscriptionCreate, OrganizerInscriptionUpdate,
    LookupRequest, LookupResponse, InscriptionEnvelope, GuestInscriptionView,
    OrganizerInscriptionList, MessageResponse,
)
from chaussettes.utils.errors import ApiError
from chaussettes.utils.rate_limit import RateLimiter, RateLimitConfig, get_rate_limiter, client_ip

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Inscriptions"])


# ===============================
# INSCRIPTION PUBLIQUE
# ===============================
@router.post("/api/inscriptions", response_model=InscriptionEnvelope, status_code=status.HTTP_201_CREATED)
async def create_inscription(
    payload: InscriptionCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    inscription = await InscriptionService(db).create(payload, background_tasks)
    return {"inscription": inscription}


@router.post("/api/inscriptions/lookup", response_model=LookupResponse)
async def lookup_inscription(
    payload: LookupRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    """
    Retrouve une inscription par email et renvoie le lien de gestion.
    Limité par IP pour éviter l'énumération des emails.
    """
    key = f"lookup:{client_ip(request) or 'unknown'}"
    check = limiter.check_limit(
        key, RateLimitConfig(settings.LOOKUP_RATE_LIMIT, settings.LOOKUP_RATE_WINDOW_SECONDS)
    )
    if not check.allowed:
        raise ApiError.rate_limited()

    return await self_service.lookup(db, payload.email, str(payload.concert_id))


@router.get("/api/inscriptions/{inscription_id}", response_model=GuestInscriptionView)
async def get_inscription(
    inscription_id: str,
    token: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await InscriptionService(db).get_for_guest(inscription_id, token)


@router.put("/api/inscriptions/{inscription_id}", response_model=InscriptionEnvelope)
async def update_inscription(
    inscription_id: str,
    payload: InscriptionUpdate,
    token: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    inscription = await InscriptionService(db).update(inscription_id, token, payload)
    return {"inscription": inscription}


@router.delete("/api/inscriptions/{inscription_id}", response_model=MessageResponse)
async def cancel_inscription(
    inscription_id: str,
    token: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    await InscriptionService(db).cancel(inscription_id, token)
    return {"message": "Inscription annulée"}


# ===============================
# ORGANISATEUR
# ===============================
@router.get("/api/organisateur/concerts/{concert_id}/inscriptions", response_model=OrganizerInscriptionList)
async def organizer_list_inscriptions(
    concert_id: str,
    organisateur: Organisateur = Depends(get_current_organisateur),
    db: AsyncSession = Depends(get_db),
):
    return await InscriptionService(db).organizer_list(concert_id, organisateur)


@router.post("/api/organisateur/concerts/{concert_id}/inscriptions", response_model=InscriptionEnvelope,
             status_code=status.HTTP_201_CREATED)
async def organizer_add_inscription(
    concert_id: str,
    payload: OrganizerInscriptionCreate,
    organisateur: Organisateur = Depends(get_current_organisateur),
    db: AsyncSession = Depends(get_db),
):
    inscription = await InscriptionService(db).organizer_add(concert_id, organisateur, payload)
    return {"inscription": inscription}


@router.put("/api/organisateur/concerts/{concert_id}/inscriptions/{inscription_id}",
            response_model=InscriptionEnvelope)
async def organizer_update_inscription(
    concert_id: str,
    inscription_id: str,
    payload: OrganizerInscriptionUpdate,
    organisateur: Organisateur = Depends(get_current_organisateur),
    db: AsyncSession = Depends(get_db),
):
    inscription = await InscriptionService(db).admin_set(concert_id, inscription_id, organisateur, payload)
    return {"inscription": inscription}


@router.delete("/api/organisateur/concerts/{concert_id}/inscriptions/{inscription_id}",
               response_model=MessageResponse)
async def organizer_delete_inscription(
    concert_id: str,
    inscription_id: str,
    organisateur: Organisateur = Depends(get_current_organisateur),
    db: AsyncSession = Depends(get_db),
):
    await InscriptionService(db).hard_delete(concert_id, inscription_id, organisateur)
    return {"message": "Inscription supprimée"}
