import logging
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.modules.auth.models import User
from app.modules.auth.schemas import UserCreate, UserLogin, TokenResponse, UserOut
from app.modules.auth.utils import hash_password, verify_password, create_access_token

logger = logging.getLogger(__name__)


class AuthService:
    """Registro e inicio de sesión de usuarios."""

    def __init__(self, db: Session):
        self.db = db

    def create_user(self, user_data: UserCreate) -> User:
        email = user_data.email.lower()
        existing = self.db.query(User).filter(
            or_(func.lower(User.email) == email, User.username == user_data.username)
        ).first()
        if existing:
            field = "email" if existing.email.lower() == email else "nombre de usuario"
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe un usuario con ese {field}"
            )

        try:
            user = User(
                username=user_data.username,
                email=email,
                password=hash_password(user_data.password),
                first_name=user_data.first_name,
                last_name=user_data.last_name,
                is_active=True
            )
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Ya existe un usuario con ese email o nombre de usuario"
            )

        logger.info(f"Usuario registrado: {user.username} (id={user.id})")
        return user

    def authenticate(self, credentials: UserLogin) -> TokenResponse:
        login = credentials.login.strip().lower()
        user = self.db.query(User).filter(
            or_(func.lower(User.email) == login, User.username == login)
        ).first()

        if not user or not verify_password(credentials.password, user.password):
            logger.info(f"Intento de login fallido para '{login}'")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Credenciales inválidas",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Usuario inactivo"
            )

        user.last_login = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(user)

        token = create_access_token(user.id, user.username)
        return TokenResponse(
            access_token=token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            user=UserOut.model_validate(user)
        )
