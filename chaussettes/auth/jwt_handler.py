from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from typing import Optional
from chaussettes.config import settings
import logging

logger = logging.getLogger(__name__)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Crée un token JWT signé avec les informations fournies.

    L'émission des sessions relève du service d'authentification ; cette
    fonction sert aux outils internes et aux tests.

    :param data: Dictionnaire avec les données à encoder (ex: {"user_id": "...", "role": "ORGANISATEUR"})
    :param expires_delta: Durée de validité du token (timedelta)
    :return: Token JWT encodé
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})

    if "user_id" in to_encode:
        to_encode["sub"] = str(to_encode["user_id"])

    token = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.ALGORITHM)
    logger.debug(f"Token généré pour user_id={data.get('user_id')}")
    return token


def decode_access_token(token: str) -> Optional[dict]:
    """
    Décode et vérifie un token JWT.

    Retourne le payload si le token est valide et contient un 'sub', sinon None.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"Échec de décodage du token : {e}")
        return None

    if not payload.get("sub"):
        logger.warning("Token valide mais champ 'sub' manquant dans le payload.")
        return None

    return payload
