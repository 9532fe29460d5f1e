import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import TokenClaims, authenticate, create_access_token, get_optional_claims
from ..database import get_db, storage_errors
from ..errors import Unauthenticated, ValidationError
from ..models import ROLE_DEFAULT
from ..schemas import LoginPayload, LoginResponse

log = logging.getLogger("gestion.routers.auth")

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.get("/me")
def me(claims: Optional[TokenClaims] = Depends(get_optional_claims)):
    """Rol del request actual; nunca falla, sin token es {"role": "default"}."""
    if claims is None:
        return {"role": ROLE_DEFAULT}
    return {"role": claims.role, "username": claims.username}


@router.post("/login", response_model=LoginResponse)
def login(payload: Optional[LoginPayload] = None, db: Session = Depends(get_db)):
    payload = payload or LoginPayload()
    if not payload.username or not payload.password:
        raise ValidationError("Usuario y contraseña requeridos.")

    with storage_errors(db, "Error en el servidor."):
        user = authenticate(db, payload.username, payload.password)
    if not user:
        log.warning("Intento de login fallido para usuario: %s", payload.username)
        raise Unauthenticated("Credenciales incorrectas.")

    token = create_access_token(user.id, user.username, user.role)
    log.info("Usuario autenticado: %s (%s)", user.username, user.role)
    return {"token": token, "role": user.role, "username": user.username}


@router.post("/logout")
def logout():
    # Tokens sin estado en el servidor: el cliente descarta el suyo
    return {"ok": True}
