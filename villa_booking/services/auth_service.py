from __future__ import annotations

from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from villa_booking.core.security import hash_password, verify_password
from villa_booking.models.user import ROLE_GUEST, User


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_phone(phone: str) -> str:
    # Keep a leading + and digits only
    stripped = phone.strip()
    digits = "".join(ch for ch in stripped if ch.isdigit())
    return f"+{digits}" if stripped.startswith("+") else digits


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == normalize_email(email))).scalar_one_or_none()


def register_user(db: Session, *, email: str, name: str, password: str, phone: str = "", role: str = ROLE_GUEST) -> User:
    if get_user_by_email(db, email) is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        email=normalize_email(email),
        name=name.strip(),
        phone=normalize_phone(phone) if phone else "",
        hashed_password=hash_password(password),
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def authenticate(db: Session, *, email: str, password: str) -> User:
    user = get_user_by_email(db, email)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    ok, new_hash = verify_password(password, user.hashed_password)
    if not ok:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if new_hash:
        user.hashed_password = new_hash

    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    return user
