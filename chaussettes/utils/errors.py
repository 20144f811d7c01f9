import logging
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ApiErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    BAD_REQUEST = "BAD_REQUEST"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_CODE_BY_STATUS = {
    400: ApiErrorCode.BAD_REQUEST,
    401: ApiErrorCode.UNAUTHORIZED,
    403: ApiErrorCode.FORBIDDEN,
    404: ApiErrorCode.NOT_FOUND,
    409: ApiErrorCode.CONFLICT,
    422: ApiErrorCode.VALIDATION_ERROR,
    429: ApiErrorCode.RATE_LIMITED,
}


class ApiError(HTTPException):
    """Erreur métier avec un code lisible par le client et un message localisé"""

    def __init__(self, message: str, code: ApiErrorCode, status_code: int,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.code = code
        self.details = details

    @classmethod
    def validation(cls, message: str, details: Optional[Dict[str, Any]] = None):
        return cls(message, ApiErrorCode.VALIDATION_ERROR, status.HTTP_400_BAD_REQUEST, details)

    @classmethod
    def unauthorized(cls, message: str = "Non autorisé"):
        return cls(message, ApiErrorCode.UNAUTHORIZED, status.HTTP_401_UNAUTHORIZED)

    @classmethod
    def forbidden(cls, message: str = "Accès interdit"):
        return cls(message, ApiErrorCode.FORBIDDEN, status.HTTP_403_FORBIDDEN)

    @classmethod
    def not_found(cls, message: str = "Ressource non trouvée"):
        return cls(message, ApiErrorCode.NOT_FOUND, status.HTTP_404_NOT_FOUND)

    @classmethod
    def conflict(cls, message: str):
        return cls(message, ApiErrorCode.CONFLICT, status.HTTP_409_CONFLICT)

    @classmethod
    def bad_request(cls, message: str):
        return cls(message, ApiErrorCode.BAD_REQUEST, status.HTTP_400_BAD_REQUEST)

    @classmethod
    def rate_limited(cls, message: str = "Trop de requêtes, veuillez réessayer plus tard"):
        return cls(message, ApiErrorCode.RATE_LIMITED, status.HTTP_429_TOO_MANY_REQUESTS)

    @classmethod
    def internal(cls, message: str = "Erreur interne du serveur"):
        return cls(message, ApiErrorCode.INTERNAL_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_body(message: str, code: ApiErrorCode, details: Optional[Dict[str, Any]] = None) -> dict:
    error = {"message": message, "code": code.value}
    if details:
        error["details"] = details
    return {"error": error}


async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.code, exc.details))


async def http_exception_handler(request: Request, exc: HTTPException):
    code = _CODE_BY_STATUS.get(exc.status_code, ApiErrorCode.INTERNAL_ERROR)
    message = exc.detail if isinstance(exc.detail, str) else "Erreur"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message, code),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Données invalides"
    if errors:
        first = errors[0]
        message = first.get("msg") or message
        # pydantic préfixe les erreurs de validateurs personnalisés
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
    logger.info(f"Validation refusée sur {request.url.path}: {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(message, ApiErrorCode.VALIDATION_ERROR),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"[API Error] {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Erreur interne du serveur", ApiErrorCode.INTERNAL_ERROR),
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
