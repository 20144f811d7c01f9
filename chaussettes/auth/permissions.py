from fastapi import Depends

from chaussettes.auth.dependencies import get_current_user
from chaussettes.auth.models import User, UserRole
from chaussettes.accounts.models import Groupe, Organisateur
from chaussettes.utils.errors import ApiError

ROLE_MESSAGES = {
    UserRole.ORGANISATEUR: "Accès réservé aux organisateurs",
    UserRole.GROUPE: "Accès réservé aux groupes",
    UserRole.ADMIN: "Accès réservé aux administrateurs",
}


def require_role(*roles: UserRole):
    def wrapper(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise ApiError.forbidden(ROLE_MESSAGES.get(roles[0], "Accès interdit (rôle requis)"))
        return user
    return wrapper


async def get_current_organisateur(
    user: User = Depends(require_role(UserRole.ORGANISATEUR)),
) -> Organisateur:
    if user.organisateur is None:
        raise ApiError.not_found("Profil organisateur non trouvé")
    return user.organisateur


async def get_current_groupe(
    user: User = Depends(require_role(UserRole.GROUPE)),
) -> Groupe:
    if user.groupe is None:
        raise ApiError.not_found("Groupe introuvable")
    return user.groupe
