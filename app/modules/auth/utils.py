"""
Utilidades de autenticación: hash de contraseñas y tokens JWT
"""

from passlib.context import CryptContext
from fastapi import HTTPException, status
from datetime import datetime, timedelta, timezone
from typing import Optional
import jwt
from app.core.config import settings

TOKEN_TYPE = "access"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    """Un usuario sin hash guardado nunca autentica."""
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def create_access_token(user_id: int, username: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Genera el token de acceso del usuario.

    sub lleva el id como texto; la expiración por defecto sale de
    ACCESS_TOKEN_EXPIRE_MINUTES.
    """
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user_id),
        "username": username,
        "type": TOKEN_TYPE,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(payload, settings.APP_SECRET_STRING, algorithm=settings.ALGORITHM)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_access_token(token: str) -> dict:
    """Valida firma, expiración y tipo; cualquier falla es 401."""
    try:
        payload = jwt.decode(token, settings.APP_SECRET_STRING, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expirado")
    except jwt.PyJWTError:
        raise _unauthorized("No se pudieron validar las credenciales")

    if payload.get("sub") is None or payload.get("type", TOKEN_TYPE) != TOKEN_TYPE:
        raise _unauthorized("No se pudieron validar las credenciales")
    return payload
