from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        v = v.strip()
        if not v.replace("_", "").replace(".", "").replace("-", "").isalnum():
            raise ValueError('El usuario solo puede contener letras, números, ".", "_" y "-"')
        return v.lower()

class UserLogin(BaseModel):
    """Login con email o nombre de usuario."""
    login: str = Field(..., min_length=1, description="Email o nombre de usuario")
    password: str = Field(..., min_length=1)

class UserOut(BaseModel):
    id: int
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut
