import logging
from typing import List, Optional

from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chaussettes.contacts.models import Contact, ContactSource
from chaussettes.utils.errors import ApiError
from chaussettes.utils.sanitize import sanitize_email

logger = logging.getLogger(__name__)


async def _record_participation(db: AsyncSession, organisateur_id: str, email: str, nom: Optional[str],
                                telephone: Optional[str], concert_id: str) -> Contact:
    result = await db.execute(
        select(Contact).where(Contact.organisateur_id == organisateur_id, Contact.email == email)
    )
    contact = result.scalars().first()

    if contact:
        contact.nombre_participations += 1
        contact.nom = nom
        if telephone:
            contact.telephone = telephone
        contact.dernier_concert_id = concert_id
    else:
        contact = Contact(
            organisateur_id=organisateur_id,
            email=email,
            nom=nom,
            telephone=telephone,
            source_type=ContactSource.INSCRIPTION,
            nombre_participations=1,
            dernier_concert_id=concert_id,
        )
        db.add(contact)
    return contact


async def upsert(
    db: AsyncSession,
    organisateur_id: str,
    email: str,
    nom: Optional[str],
    telephone: Optional[str],
    concert_id: str,
) -> Optional[Contact]:
    """
    Ajoute l'invité au carnet de l'organisateur ou incrémente ses participations.

    Appelé après le commit de l'inscription : un échec est annulé et journalisé,
    jamais remonté à l'appelant. Le travail se fait dans un savepoint, dont
    l'annulation n'expire pas l'inscription et le concert chargés dans la session.
    """
    email = sanitize_email(email)
    try:
        async with db.begin_nested():
            contact = await _record_participation(db, organisateur_id, email, nom, telephone, concert_id)
    except SQLAlchemyError as e:
        logger.error(f"Erreur mise à jour contact {email} (organisateur={organisateur_id}): {e}")
        return None

    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Erreur commit contact {email} (organisateur={organisateur_id}): {e}")
        return None

    logger.info(f"Contact {email} mis à jour pour organisateur={organisateur_id} "
                f"(participations={contact.nombre_participations})")
    return contact


async def list_contacts(db: AsyncSession, organisateur_id: str, search: Optional[str] = None) -> List[Contact]:
    query = select(Contact).where(Contact.organisateur_id == organisateur_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(or_(Contact.nom.ilike(pattern), Contact.email.ilike(pattern)))
    result = await db.execute(query.order_by(Contact.nom.asc(), Contact.email.asc()))
    return list(result.scalars().all())


async def add_contact(db: AsyncSession, organisateur_id: str, email: str, nom: Optional[str],
                      telephone: Optional[str], tags: Optional[List[str]] = None) -> Contact:
    email = sanitize_email(email)
    existing = await db.execute(
        select(Contact.id).where(Contact.organisateur_id == organisateur_id, Contact.email == email)
    )
    if existing.first():
        raise ApiError.conflict("Ce contact existe déjà")

    contact = Contact(
        organisateur_id=organisateur_id,
        email=email,
        nom=nom,
        telephone=telephone,
        tags=tags or [],
        source_type=ContactSource.MANUAL,
        nombre_participations=0,
    )
    db.add(contact)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ApiError.conflict("Ce contact existe déjà")
    await db.refresh(contact)
    logger.info(f"Contact manuel ajouté: {email} (organisateur={organisateur_id})")
    return contact


async def delete_contact(db: AsyncSession, organisateur_id: str, contact_id: str):
    result = await db.execute(
        select(Contact).where(Contact.id == contact_id, Contact.organisateur_id == organisateur_id)
    )
    contact = result.scalars().first()
    if not contact:
        raise ApiError.not_found("Contact non trouvé")
    await db.delete(contact)
    await db.commit()
    logger.info(f"Contact supprimé: id={contact_id} (organisateur={organisateur_id})")
