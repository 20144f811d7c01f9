from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

from chaussettes.db.session import get_db
from chaussettes.auth.permissions import get_current_organisateur
from chaussettes.accounts.models import Organisateur
from chaussettes.contacts import services
from chaussettes.contacts.schemas import ContactCreate, ContactOut, ContactList

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/organisateur/contacts", tags=["Contacts"])


@router.get("", response_model=ContactList)
async def list_contacts(
    search: Optional[str] = Query(None, max_length=100),
    organisateur: Organisateur = Depends(get_current_organisateur),
    db: AsyncSession = Depends(get_db),
):
    contacts = await services.list_contacts(db, organisateur.id, search)
    return ContactList(contacts=contacts, total=len(contacts))


@router.post("", response_model=ContactOut, status_code=status.HTTP_201_CREATED)
async def add_contact(
    payload: ContactCreate,
    organisateur: Organisateur = Depends(get_current_organisateur),
    db: AsyncSession = Depends(get_db),
):
    return await services.add_contact(
        db, organisateur.id, payload.email, payload.nom, payload.telephone, payload.tags
    )


@router.delete("/{contact_id}")
async def delete_contact(
    contact_id: str,
    organisateur: Organisateur = Depends(get_current_organisateur),
    db: AsyncSession = Depends(get_db),
):
    await services.delete_contact(db, organisateur.id, contact_id)
    return {"success": True}
