"""
Dependencias de autenticación para FastAPI.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.models import User
from app.modules.auth.utils import decode_access_token

# Security scheme
security = HTTPBearer()

class AuthDependencies:
    """Dependencias de autenticación reutilizables."""

    @staticmethod
    def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(security),
        db: Session = Depends(get_db)
    ) -> User:
        """
        Obtener usuario actual desde token JWT.
        """
        payload = decode_access_token(credentials.credentials)

        try:
            user_id = int(payload.get("sub"))
        except (TypeError, ValueError):
            user_id = None

        user = db.query(User).filter(User.id == user_id).first() if user_id else None
        if user is None or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="No se pudieron validar las credenciales",
                headers={"WWW-Authenticate": "Bearer"},
            )

        return user


get_current_user = AuthDependencies.get_current_user
