from pydantic import BaseModel
from typing import Optional


class RegisterRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    nome: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    nome: Optional[str] = None
    telefone: Optional[str] = None
    foto_perfil: Optional[str] = None


class UserSummary(BaseModel):
    uid: str
    nome: str
    email: str


class AccountResponse(BaseModel):
    success: bool = True
    message: str
    usuario: Optional[UserSummary] = None


class LoginResponse(AccountResponse):
    token: str
