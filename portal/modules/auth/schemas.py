from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str
    role: Optional[str] = None
    dashboard: Optional[str] = None


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=2)
    role: Literal["participant", "mentor"] = "participant"


class AdminRegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=2)
    registration_key: str = Field(min_length=1)


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    role: str
    message: str
