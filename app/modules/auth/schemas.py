from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Any, Dict, Literal, Optional
from datetime import datetime

OAuthProvider = Literal["google", "github"]


class Principal(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: Optional[Dict[str, Any]] = None
    app_metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_user(cls, user: Any) -> "Principal":
        if isinstance(user, cls):
            return user
        if isinstance(user, dict):
            return cls.model_validate(user)
        return cls.model_validate(user, from_attributes=True)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str


class SessionResponse(BaseModel):
    user: Optional[Principal] = None
    message: str


class OAuthResponse(BaseModel):
    provider: str
    url: str
