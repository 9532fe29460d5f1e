import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError as PayloadError
from sqlalchemy.orm import Session

from .config import get_settings
from .errors import Forbidden, Unauthenticated
from .models import ROLE_ADMIN, ROLE_DEFAULT, ROLES, User

log = logging.getLogger("gestion.auth")

settings = get_settings()

# Solo existe un rol con privilegios; el orden sirve para comparar
ROLE_RANK = {ROLE_DEFAULT: 0, ROLE_ADMIN: 1}

DEFAULT_ACCOUNT_PASSWORD = "no-login-default"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
# auto_error=False: sin header el request sigue como anónimo
bearer_scheme = HTTPBearer(auto_error=False)


class InvalidToken(Exception):
    """El token no se pudo verificar (firma, formato, rol o expiración)."""


class TokenClaims(BaseModel):
    user_id: int
    username: str
    role: str


# ===== HASHING =====
def _bcrypt_secret(password: str) -> str:
    # bcrypt solo usa los primeros 72 bytes
    return password.encode("utf-8")[:72].decode("utf-8", "ignore")


def hash_password(password: str) -> str:
    return pwd_context.hash(_bcrypt_secret(password))


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(_bcrypt_secret(password), password_hash)


# ===== JWT =====
def create_access_token(
    user_id: int, username: str, role: str, expires_delta: Optional[timedelta] = None
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode = {
        "sub": str(user_id),
        "username": username,
        "role": role,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenClaims:
    """Verifica el token y devuelve sus claims.

    Cualquier problema (firma, payload mal formado, rol desconocido, exp
    vencido) termina en InvalidToken; nunca se propaga otra excepción.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except (JWTError, TypeError, ValueError, AttributeError) as exc:
        raise InvalidToken(str(exc)) from exc

    if not isinstance(payload, dict):
        raise InvalidToken("Payload inválido")

    exp = payload.get("exp")
    if not isinstance(exp, (int, float)) or exp <= datetime.now(timezone.utc).timestamp():
        raise InvalidToken("Token expirado")

    try:
        claims = TokenClaims(
            user_id=payload.get("sub"),
            username=payload.get("username"),
            role=payload.get("role"),
        )
    except PayloadError as exc:
        raise InvalidToken("Payload inválido") from exc

    if claims.role not in ROLES:
        raise InvalidToken(f"Rol desconocido: {claims.role}")
    return claims


# ===== REQUEST AUTHENTICATOR =====
def get_optional_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[TokenClaims]:
    if credentials is None:
        return None
    try:
        return decode_access_token(credentials.credentials)
    except InvalidToken as exc:
        log.info("Token rechazado, se trata como anónimo: %s", exc)
        return None


def resolve_role(claims: Optional[TokenClaims] = Depends(get_optional_claims)) -> str:
    # Anónimo no es un error: sin token (o con token inválido) el rol es default
    return claims.role if claims else ROLE_DEFAULT


# ===== ROLE GUARDS =====
def require_role(expected: str):
    """Genera la dependencia que exige `expected` para una operación concreta."""

    def guard(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    ) -> TokenClaims:
        if credentials is None:
            raise Unauthenticated("Token requerido.")
        try:
            claims = decode_access_token(credentials.credentials)
        except InvalidToken:
            raise Unauthenticated("Token inválido o expirado.")
        if ROLE_RANK[claims.role] < ROLE_RANK[expected]:
            raise Forbidden(f"Acceso denegado (solo {expected}).")
        return claims

    return guard


require_admin = require_role(ROLE_ADMIN)


# ===== CREDENCIALES =====
def authenticate(db: Session, username: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.username == username).first()
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def _upsert_user(db: Session, username: str, password: str, role: str):
    user = db.query(User).filter(User.username == username).first()
    if user is None:
        user = User(username=username, role=role)
        db.add(user)
    user.password_hash = hash_password(password)
    user.role = role


def seed_users(db: Session):
    """Asegura las cuentas admin y default; re-escribe su hash en cada arranque."""
    _upsert_user(db, "admin", settings.admin_password, ROLE_ADMIN)
    _upsert_user(db, "default", DEFAULT_ACCOUNT_PASSWORD, ROLE_DEFAULT)
    db.commit()
    log.info("Usuarios admin y default listos")
