from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from spiceledger.api.utils import user_to_dict
from spiceledger.persistence.pg import get_session
from spiceledger.services.auth import AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=6, max_length=256)


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


@router.post("/register", status_code=201)
def register(request: RegisterRequest, session: Session = Depends(get_session)):
    user = AuthService(session).register(name=request.name, email=request.email, password=request.password)
    return {"message": "user created successfully", "user": user_to_dict(user)}


@router.post("/login")
def login(request: LoginRequest, session: Session = Depends(get_session)):
    pair = AuthService(session).login(request.email, request.password)
    return asdict(pair)


@router.post("/refresh")
def refresh(request: RefreshRequest, session: Session = Depends(get_session)):
    pair = AuthService(session).refresh(request.refresh_token)
    return asdict(pair)
