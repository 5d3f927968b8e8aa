import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlmodel import Session as DBSession, select

from ..auth import (
    end_session,
    get_current_user,
    hash_password,
    password_needs_rehash,
    start_session,
    verify_password,
)
from ..db import get_session
from ..models import User
from ..schemas import Credentials, Registration, UserRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _find_user(db: DBSession, email: str):
    return db.exec(select(User).where(User.email == email)).first()


@router.post("/register", response_model=UserRead, status_code=201)
def register(payload: Registration, response: Response, db: DBSession = Depends(get_session)):
    if _find_user(db, payload.email) is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(email=payload.email, password_hash=hash_password(payload.password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("registered user id=%s", user.id)

    # a fresh account is signed in straight away
    start_session(response, user)
    return user


@router.post("/login", response_model=UserRead)
def login(payload: Credentials, response: Response, db: DBSession = Depends(get_session)):
    user = _find_user(db, payload.email)
    if user is None or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if password_needs_rehash(user.password_hash):
        user.password_hash = hash_password(payload.password)
        db.add(user)
        db.commit()
        db.refresh(user)

    start_session(response, user)
    return user


@router.post("/logout", status_code=204)
def logout(response: Response):
    end_session(response)
    return None


@router.get("/me", response_model=UserRead)
def me(user: User = Depends(get_current_user)):
    return user
