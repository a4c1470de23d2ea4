from fastapi import APIRouter, Depends, status

from app.dependencies.dbDependecies import db_dependency
from app.modules.auth.service import AuthService
from app.modules.auth.dependencies import get_current_user
from app.modules.auth.models import User
from app.modules.auth.schemas import UserCreate, UserLogin, UserOut, TokenResponse

auth_router = APIRouter()

@auth_router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: db_dependency):
    """
    Registrar nuevo usuario.
    """
    auth_service = AuthService(db)
    return auth_service.create_user(user_data)

@auth_router.post("/login", response_model=TokenResponse)
async def login(credentials: UserLogin, db: db_dependency):
    """
    Iniciar sesión con email o usuario y contraseña. Devuelve un token Bearer.
    """
    auth_service = AuthService(db)
    return auth_service.authenticate(credentials)

@auth_router.get("/me", response_model=UserOut)
async def read_me(current_user: User = Depends(get_current_user)):
    """Usuario autenticado."""
    return current_user
