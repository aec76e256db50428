"""Authentication flows: register, login, forgot password, reset password.

Each flow commits its own writes so that the forgot-password compensation
(clearing an undelivered reset token) happens before the error is returned.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from storefront.core.errors import Conflict, DeliveryFailed, InvalidCredentials, InvalidOrExpiredToken, NotFound
from storefront.core.security import PasswordHasher, ResetTokenManager, SessionTokenIssuer
from storefront.models.user import User
from storefront.schemas.auth import LoginRequest, RegisterRequest
from storefront.services import users as user_service
from storefront.services.mailer import Mailer, MailDeliveryError, MailMessage, deliver

logger = logging.getLogger(__name__)

RESET_MAIL_SUBJECT = "Password Reset Token"


async def register(session: AsyncSession, payload: RegisterRequest, issuer: SessionTokenIssuer) -> str:
    logger.info("Register requested for %s", payload.email)
    if await user_service.get_user_by_email(session, payload.email):
        logger.warning("Registration failed - email already exists: %s", payload.email)
        raise Conflict("Email already in use")

    user = await user_service.create_user(
        session,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
    )
    await session.commit()
    logger.info("New user registered: %s", user.id)
    return issuer.issue(user.id, user.role)


async def login(session: AsyncSession, payload: LoginRequest, issuer: SessionTokenIssuer) -> str:
    user = await user_service.get_user_by_email(session, payload.email, with_password=True)
    if not user:
        await run_in_threadpool(PasswordHasher.dummy_verify)
        logger.warning("Login failed - user not found: %s", payload.email)
        raise InvalidCredentials()

    matches = await run_in_threadpool(PasswordHasher.verify, payload.password, user.password_hash)
    if not matches:
        logger.warning("Login failed - incorrect password for user: %s", user.id)
        raise InvalidCredentials()

    logger.info("User logged in: %s", user.id)
    return issuer.issue(user.id, user.role)


def _reset_message(recipient: str, reset_url: str) -> MailMessage:
    body = (
        "You are receiving this email because you requested a password reset. "
        f"Please visit the link below to change your password:\n\n{reset_url}"
    )
    return MailMessage(recipient=recipient, subject=RESET_MAIL_SUBJECT, body=body)


async def forgot_password(
    session: AsyncSession,
    email: str,
    reset_url_base: str,
    mailer: Mailer,
    reset_tokens: ResetTokenManager,
    mail_timeout: float | None = None,
) -> None:
    """Issue a reset token and mail its link to the account owner.

    ``reset_url_base`` is the URL the plaintext token gets appended to. When
    delivery fails the stored hash and expiry are cleared again.
    """

    user = await user_service.get_user_by_email(session, email)
    if not user:
        logger.warning("Forgot password failed - user not found: %s", email)
        raise NotFound("User not found")

    issued = reset_tokens.issue()
    await user_service.set_reset_token(session, user, issued.token_hash, issued.expires_at)
    await session.commit()

    reset_url = f"{reset_url_base.rstrip('/')}/{issued.token}"
    try:
        await deliver(mailer, _reset_message(user.email, reset_url), timeout=mail_timeout)
    except MailDeliveryError as exc:
        await _revoke_reset_token(session, user)
        raise DeliveryFailed() from exc
    except asyncio.CancelledError:
        await _revoke_reset_token(session, user)
        raise

    logger.info("Password reset mail sent to user %s", user.id)


async def _revoke_reset_token(session: AsyncSession, user: User) -> None:
    await user_service.clear_reset_token(session, user)
    await session.commit()
    logger.error("Reset token for user %s revoked after failed delivery", user.id)


async def reset_password(
    session: AsyncSession,
    token: str,
    new_password: str,
    issuer: SessionTokenIssuer,
    reset_tokens: ResetTokenManager,
    now: datetime | None = None,
) -> str:
    token_hash = reset_tokens.hash_token(token)
    user = await user_service.get_user_by_reset_token_hash(session, token_hash)
    if not user or not reset_tokens.redeem(token, user.reset_token_hash, user.reset_token_expires_at, now):
        logger.warning("Reset password failed - invalid or expired token")
        raise InvalidOrExpiredToken()

    await user_service.update_password(session, user, new_password)
    await user_service.clear_reset_token(session, user)
    await session.commit()
    logger.info("Password reset for user %s", user.id)
    return issuer.issue(user.id, user.role)
