"""Errores de la API.

Son HTTPException con el código fijo, así FastAPI los devuelve como
{"detail": "<mensaje>"} sin manejadores extra.
"""

from fastapi import HTTPException, status


class AppError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Error en el servidor."

    def __init__(self, message: str = None, headers: dict = None):
        super().__init__(
            status_code=self.status_code,
            detail=message or self.default_message,
            headers=headers,
        )


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Datos inválidos."


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Token requerido."

    def __init__(self, message: str = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Solo admin."


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "No encontrado."


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflicto con el estado actual."


class InternalError(AppError):
    pass
