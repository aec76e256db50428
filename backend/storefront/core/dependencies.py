"""Reusable dependencies for FastAPI routes."""
from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import get_settings
from storefront.core.errors import Forbidden, Unauthorized
from storefront.core.security import InvalidToken, ResetTokenManager, SessionTokenIssuer
from storefront.db.session import get_session
from storefront.models.enums import Role
from storefront.models.user import User
from storefront.services.mailer import HTTPMailer, LogMailer, Mailer
from storefront.services.users import get_user

_bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with get_session() as session:
        yield session


def get_token_issuer() -> SessionTokenIssuer:
    settings = get_settings()
    return SessionTokenIssuer(
        secret_key=settings.secret_key,
        expire_minutes=settings.access_token_expire_minutes,
    )


def get_reset_token_manager() -> ResetTokenManager:
    return ResetTokenManager(ttl_minutes=get_settings().reset_token_expire_minutes)


def get_mailer() -> Mailer:
    settings = get_settings()
    if not settings.mail_api_url:
        return LogMailer()
    return HTTPMailer(
        endpoint=settings.mail_api_url,
        sender=settings.mail_from,
        api_key=settings.mail_api_key,
        timeout=settings.mail_timeout_seconds,
    )


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    session: AsyncSession = Depends(get_db),
    issuer: SessionTokenIssuer = Depends(get_token_issuer),
) -> User:
    """Resolve the bearer token to a user and attach it to ``request.state``."""

    if credentials is None or not credentials.credentials:
        raise Unauthorized("Not authorized, no token")

    try:
        claims = issuer.verify(credentials.credentials)
    except InvalidToken as exc:
        raise Unauthorized("Not authorized, token failed") from exc

    user = await get_user(session, claims.user_id)
    if not user:
        raise Unauthorized("User not found")

    request.state.user = user
    return user


def require_roles(*roles: Role) -> Callable[..., Awaitable[User]]:
    """Build a dependency that admits only users holding one of ``roles``."""

    allowed = frozenset(roles)

    async def _check_role(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise Forbidden(f"Role '{current_user.role.value}' is not authorized to access this resource")
        return current_user

    return _check_role
