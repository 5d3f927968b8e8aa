"""Password hashing, session tokens and the current-user dependency.

A login issues an HS256 JWT whose ``sub`` is the user id and stores it in
an httpOnly cookie. Every ``/api`` route except register/login resolves
the caller through :func:`get_current_user`.
"""
import os
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, Request, Response
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlmodel import Session as DBSession

from .db import get_session
from .models import User

SESSION_COOKIE = "session"

# set_cookie and delete_cookie must agree on path/domain or the browser keeps the old one
_COOKIE_SCOPE = {"path": "/", "domain": os.getenv("COOKIE_DOMAIN") or None}
_COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"

JWT_SECRET = os.getenv("JWT_SECRET", "dev-only-secret-change-me")
JWT_ALGORITHM = "HS256"
TOKEN_TTL = timedelta(hours=int(os.getenv("JWT_TTL_HOURS", "12")))

passwords = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain: str) -> str:
    return passwords.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return passwords.verify(plain, hashed)


def password_needs_rehash(hashed: str) -> bool:
    """True when the stored hash predates the current argon2 parameters."""
    return passwords.needs_update(hashed)


def issue_token(user_id: int) -> str:
    issued = datetime.now(tz=timezone.utc)
    claims = {"sub": str(user_id), "iat": issued, "exp": issued + TOKEN_TTL}
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALGORITHM)


def user_id_from_token(token: str) -> int:
    try:
        claims = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return int(claims["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid or expired session")


def start_session(response: Response, user: User) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        issue_token(user.id),
        max_age=int(TOKEN_TTL.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=_COOKIE_SECURE,
        **_COOKIE_SCOPE,
    )


def end_session(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE, **_COOKIE_SCOPE)


def get_current_user(request: Request, db: DBSession = Depends(get_session)) -> User:
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user = db.get(User, user_id_from_token(token))
    if user is None:
        # token outlived its account
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
