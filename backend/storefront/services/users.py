"""User service functions: the credential store behind authentication."""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer
from starlette.concurrency import run_in_threadpool

from storefront.core.errors import Conflict, NotFound
from storefront.core.security import PasswordHasher
from storefront.models.enums import Role
from storefront.models.user import User
from storefront.schemas.user import ProfileUpdate, UserUpdate

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user(session: AsyncSession, user_id: str) -> User | None:
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(session: AsyncSession, email: str, with_password: bool = False) -> User | None:
    """Look up a user by email; the password hash is only loaded on request."""

    stmt = select(User).where(User.email == normalize_email(email))
    if with_password:
        stmt = stmt.options(undefer(User.password_hash))
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_user_by_reset_token_hash(session: AsyncSession, token_hash: str) -> User | None:
    result = await session.execute(select(User).where(User.reset_token_hash == token_hash))
    return result.scalars().first()


async def list_users(session: AsyncSession) -> list[User]:
    result = await session.execute(select(User).order_by(User.created_at))
    return list(result.scalars().all())


async def create_user(
    session: AsyncSession,
    name: str,
    email: str,
    password: str,
    role: Role | None = None,
) -> User:
    """Insert a new user, hashing the password first.

    The unique index on ``email`` is what rejects a duplicate; a concurrent
    insert that wins the race surfaces here as ``Conflict``.
    """

    password_hash = await run_in_threadpool(PasswordHasher.hash, password)
    user = User(
        name=name,
        email=normalize_email(email),
        password_hash=password_hash,
        role=role or Role.CUSTOMER,
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise Conflict("Email already in use") from exc
    return user


async def update_password(session: AsyncSession, user: User, new_password: str) -> User:
    """Hash and persist a new password in one step."""

    user.password_hash = await run_in_threadpool(PasswordHasher.hash, new_password)
    await session.flush()
    return user


async def set_reset_token(session: AsyncSession, user: User, token_hash: str, expires_at: datetime) -> User:
    user.reset_token_hash = token_hash
    user.reset_token_expires_at = expires_at
    await session.flush()
    return user


async def clear_reset_token(session: AsyncSession, user: User) -> User:
    user.reset_token_hash = None
    user.reset_token_expires_at = None
    await session.flush()
    return user


async def _ensure_email_available(session: AsyncSession, user: User, email: str) -> str:
    normalized = normalize_email(email)
    existing = await get_user_by_email(session, normalized)
    if existing and existing.id != user.id:
        raise Conflict("Email already in use")
    return normalized


async def update_profile(session: AsyncSession, user: User, data: ProfileUpdate) -> User:
    if data.name is not None:
        user.name = data.name
    if data.email is not None:
        user.email = await _ensure_email_available(session, user, data.email)
    if isinstance(data, UserUpdate) and data.role is not None:
        user.role = data.role
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise Conflict("Email already in use") from exc
    return user


async def update_user(session: AsyncSession, user_id: str, data: UserUpdate) -> User:
    user = await get_user(session, user_id)
    if not user:
        raise NotFound("User not found")
    return await update_profile(session, user, data)


async def delete_user(session: AsyncSession, user_id: str) -> None:
    user = await get_user(session, user_id)
    if not user:
        raise NotFound("User not found")
    await session.delete(user)
    await session.flush()
