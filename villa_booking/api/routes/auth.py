from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from villa_booking.core.deps import get_current_user, get_db, is_admin
from villa_booking.core.security import create_access_token
from villa_booking.models.user import User
from villa_booking.schemas.auth import LoginRequest, MeResponse, RegisterRequest, TokenResponse
from villa_booking.services.auth_service import authenticate, register_user

router = APIRouter()


def me_response(user: User) -> MeResponse:
    return MeResponse(user_id=user.id, email=user.email, name=user.name, phone=user.phone, role=user.role, is_admin=is_admin(user))


@router.post("/register", response_model=MeResponse, status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    user = register_user(db, email=str(payload.email), name=payload.name, password=payload.password, phone=payload.phone)
    return me_response(user)


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, email=str(payload.email), password=payload.password)
    return TokenResponse(access_token=create_access_token(user.id, role=user.role))


@router.get("/me", response_model=MeResponse)
def me(user: User = Depends(get_current_user)):
    return me_response(user)
