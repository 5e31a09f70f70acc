"""Player accounts: password hashing, bearer tokens and sign-up / sign-in."""

import re
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sidequest.config import settings
from sidequest.models.user import User

USERNAME_MAX = 20
PROFILE_FIELDS = ("first_name", "last_name", "avatar_url")
_USERNAME_UNSAFE = re.compile(r"[^a-z0-9_]+")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def create_access_token(user: User) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    claims = {"sub": str(user.id), "username": user.username, "exp": expire}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> int | None:
    """Return the user id carried by a valid token, or None."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    subject = claims.get("sub")
    if subject is None or not str(subject).isdigit():
        return None
    return int(subject)


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


def username_from_email(email: str) -> str:
    """Turn the local part of an email into a username candidate."""
    local = email.split("@", 1)[0].lower()
    candidate = _USERNAME_UNSAFE.sub("_", local).strip("_")[:USERNAME_MAX]
    return candidate if len(candidate) >= 3 else f"player_{candidate}".rstrip("_")


async def _first_free_username(db: AsyncSession, base: str) -> str:
    candidate = base
    suffix = 1
    while await get_user_by_username(db, candidate) is not None:
        tail = f"_{suffix}"
        candidate = base[: USERNAME_MAX - len(tail)] + tail
        suffix += 1
    return candidate


async def register_user(
    db: AsyncSession,
    email: str,
    password: str,
    username: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
) -> User:
    """Create an account.

    Without a username one is derived from the email, numbered until it is free.
    A username that was asked for explicitly must be free, otherwise ValueError.
    """
    email = email.lower()
    if await get_user_by_email(db, email):
        raise ValueError("Email already registered")
    if username is None:
        username = await _first_free_username(db, username_from_email(email))
    elif await get_user_by_username(db, username):
        raise ValueError("Username already taken")

    user = User(
        email=email,
        username=username,
        hashed_password=hash_password(password),
        first_name=first_name,
        last_name=last_name,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def authenticate_user(db: AsyncSession, identifier: str, password: str) -> User | None:
    """Sign in by email (anything containing "@") or by username."""
    if "@" in identifier:
        user = await get_user_by_email(db, identifier)
    else:
        user = await get_user_by_username(db, identifier)
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user


async def update_profile(db: AsyncSession, user: User, updates: dict[str, Any]) -> User:
    """Partial profile update. A new email must not belong to another account."""
    if "email" in updates:
        if updates["email"] is None:
            raise ValueError("email cannot be null")
        email = updates["email"].lower()
        existing = await get_user_by_email(db, email)
        if existing is not None and existing.id != user.id:
            raise ValueError("Email already registered")
        user.email = email

    for field in PROFILE_FIELDS:
        if field in updates:
            setattr(user, field, updates[field])
    await db.commit()
    await db.refresh(user)
    return user
