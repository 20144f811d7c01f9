from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from chaussettes.db.session import get_db
from chaussettes.auth.models import User, UserRole
from chaussettes.auth.permissions import require_role, get_current_organisateur
from chaussettes.accounts.models import Organisateur
from chaussettes.concerts.services import ConcertService, mark_past_concerts
from chaussettes.concerts.schemas import (
    ConcertCreate, ConcertUpdate, ConcertEnvelope, ConcertList, ConcertPublic, MarkPastResult,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Concerts"])


# ===============================
# PUBLIC
# ===============================
@router.get("/api/concerts/public/{slug}", response_model=ConcertPublic)
async def get_public_concert(slug: str, db: AsyncSession = Depends(get_db)):
    """Page publique d'un concert : jauge et liste des invités visibles"""
    return await ConcertService(db).public_view(slug)


# ===============================
# ORGANISATEUR
# ===============================
@router.post("/api/concerts", response_model=ConcertEnvelope, status_code=status.HTTP_201_CREATED)
async def create_concert(
    payload: ConcertCreate,
    user: User = Depends(require_role(UserRole.ORGANISATEUR)),
    organisateur: Organisateur = Depends(get_current_organisateur),
    db: AsyncSession = Depends(get_db),
):
    is_premium = bool(user.subscription and user.subscription.is_premium)
    concert = await ConcertService(db).create(organisateur, payload, is_premium)
    return {"concert": concert}


@router.get("/api/concerts", response_model=ConcertList)
async def list_my_concerts(
    organisateur: Organisateur = Depends(get_current_organisateur),
    db: AsyncSession = Depends(get_db),
):
    return {"concerts": await ConcertService(db).list_mine(organisateur)}


@router.get("/api/concerts/{concert_id}", response_model=ConcertEnvelope)
async def get_concert(
    concert_id: str,
    organisateur: Organisateur = Depends(get_current_organisateur),
    db: AsyncSession = Depends(get_db),
):
    return {"concert": await ConcertService(db).get_owned(concert_id, organisateur)}


@router.put("/api/concerts/{concert_id}", response_model=ConcertEnvelope)
async def update_concert(
    concert_id: str,
    payload: ConcertUpdate,
    organisateur: Organisateur = Depends(get_current_organisateur),
    db: AsyncSession = Depends(get_db),
):
    return {"concert": await ConcertService(db).update(concert_id, organisateur, payload)}


@router.delete("/api/concerts/{concert_id}")
async def delete_concert(
    concert_id: str,
    organisateur: Organisateur = Depends(get_current_organisateur),
    db: AsyncSession = Depends(get_db),
):
    await ConcertService(db).delete(concert_id, organisateur)
    return {"success": True}


# ===============================
# ADMIN
# ===============================
@router.post("/api/admin/concerts/mark-past", response_model=MarkPastResult)
async def admin_mark_past(
    _: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return {"updated": await mark_past_concerts(db)}
