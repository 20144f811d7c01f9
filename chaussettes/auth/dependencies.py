from typing import Optional
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
import logging

from chaussettes.db.session import get_db
from chaussettes.auth.jwt_handler import decode_access_token
from chaussettes.auth.models import User
from chaussettes.utils.errors import ApiError

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "session-token"

# Token extrait du header Authorization, ou à défaut du cookie de session
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def _extract_token(request: Request, bearer: Optional[str]) -> Optional[str]:
    return bearer or request.cookies.get(SESSION_COOKIE_NAME)


async def _load_user(db: AsyncSession, user_id: str) -> Optional[User]:
    result = await db.execute(
        select(User)
        .options(
            selectinload(User.organisateur),
            selectinload(User.groupe),
            selectinload(User.subscription),
        )
        .where(User.id == user_id)
    )
    return result.scalars().first()


async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Récupère l'utilisateur courant à partir du token JWT.
    """
    token = _extract_token(request, token)
    if not token:
        logger.warning("Accès refusé : token manquant")
        raise ApiError.unauthorized()

    payload = decode_access_token(token)
    if payload is None:
        raise ApiError.unauthorized("Session invalide ou expirée")

    user_id = payload.get("user_id") or payload.get("sub")
    user = await _load_user(db, str(user_id))
    if not user:
        logger.warning(f"Utilisateur introuvable : id={user_id}")
        raise ApiError.unauthorized("Utilisateur non trouvé")

    logger.debug(f"Utilisateur authentifié : id={user.id}, role={user.role}")
    return user
