"""Service-level tests for the register/login/reset flows."""
import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import undefer

from storefront.core.errors import Conflict, DeliveryFailed, InvalidCredentials, InvalidOrExpiredToken, NotFound
from storefront.core.security import PasswordHasher
from storefront.models.enums import Role
from storefront.models.user import User
from storefront.schemas.auth import LoginRequest, RegisterRequest
from storefront.services import auth as auth_service
from storefront.services import users as user_service
from storefront.services.mailer import MailDeliveryError

pytestmark = pytest.mark.asyncio


def _registration(email: str = "a@x.com", password: str = "secret1", role: Role | None = None) -> RegisterRequest:
    return RegisterRequest(name="A", email=email, password=password, role=role)


async def _load_user(session_factory, email: str) -> User:
    async with session_factory() as fresh:
        result = await fresh.execute(
            select(User).options(undefer(User.password_hash)).where(User.email == email)
        )
        return result.scalar_one()


class TestRegisterAndLogin:
    async def test_register_then_login_yields_same_identity(self, session, session_factory, issuer):
        token = await auth_service.register(session, _registration(), issuer)
        user = await _load_user(session_factory, "a@x.com")
        assert issuer.verify(token).user_id == user.id

        login_token = await auth_service.login(session, LoginRequest(email="a@x.com", password="secret1"), issuer)
        claims = issuer.verify(login_token)
        assert claims.user_id == user.id
        assert claims.role is Role.CUSTOMER

    async def test_password_is_stored_hashed(self, session, session_factory, issuer):
        await auth_service.register(session, _registration(), issuer)
        user = await _load_user(session_factory, "a@x.com")
        assert user.password_hash != "secret1"
        assert PasswordHasher.verify("secret1", user.password_hash)

    async def test_requested_role_is_kept(self, session, issuer):
        token = await auth_service.register(session, _registration(role=Role.SUPPLIER), issuer)
        assert issuer.verify(token).role is Role.SUPPLIER

    async def test_duplicate_email_conflicts_and_keeps_one_record(self, session, issuer):
        await auth_service.register(session, _registration(), issuer)
        with pytest.raises(Conflict):
            await auth_service.register(session, _registration(password="another1"), issuer)
        count = await session.scalar(select(func.count()).select_from(User))
        assert count == 1

    async def test_email_match_ignores_case(self, session, issuer):
        await auth_service.register(session, _registration(email="Mixed@X.com"), issuer)
        with pytest.raises(Conflict):
            await auth_service.register(session, _registration(email="mixed@x.com"), issuer)
        await auth_service.login(session, LoginRequest(email="MIXED@x.com", password="secret1"), issuer)

    async def test_unknown_email_and_wrong_password_fail_alike(self, session, issuer):
        await auth_service.register(session, _registration(), issuer)
        with pytest.raises(InvalidCredentials) as unknown:
            await auth_service.login(session, LoginRequest(email="b@x.com", password="secret1"), issuer)
        with pytest.raises(InvalidCredentials) as wrong:
            await auth_service.login(session, LoginRequest(email="a@x.com", password="wrong"), issuer)
        assert unknown.value.message == wrong.value.message == "Invalid credentials"


class TestPasswordReset:
    async def test_forgot_password_for_unknown_email(self, session, mailer, reset_tokens):
        with pytest.raises(NotFound):
            await auth_service.forgot_password(session, "missing@x.com", "http://t/reset", mailer, reset_tokens)
        assert mailer.sent == []

    async def test_forgot_password_stores_only_the_hash(self, session, session_factory, issuer, mailer, reset_tokens):
        await auth_service.register(session, _registration(), issuer)
        await auth_service.forgot_password(session, "a@x.com", "http://t/reset", mailer, reset_tokens)

        token = mailer.last_token()
        assert mailer.sent[-1].recipient == "a@x.com"
        assert mailer.sent[-1].body.rstrip().endswith(f"http://t/reset/{token}")

        user = await _load_user(session_factory, "a@x.com")
        assert user.reset_token_hash == reset_tokens.hash_token(token)
        assert user.reset_token_hash != token
        assert user.reset_token_expires_at is not None

    async def test_reset_token_is_single_use(self, session, session_factory, issuer, mailer, reset_tokens):
        await auth_service.register(session, _registration(), issuer)
        await auth_service.forgot_password(session, "a@x.com", "http://t/reset", mailer, reset_tokens)
        token = mailer.last_token()

        new_token = await auth_service.reset_password(session, token, "newpass1", issuer, reset_tokens)
        user = await _load_user(session_factory, "a@x.com")
        assert issuer.verify(new_token).user_id == user.id
        assert user.reset_token_hash is None
        assert user.reset_token_expires_at is None
        assert PasswordHasher.verify("newpass1", user.password_hash)

        with pytest.raises(InvalidOrExpiredToken):
            await auth_service.reset_password(session, token, "newpass2", issuer, reset_tokens)

    async def test_expired_reset_token_fails(self, session, session_factory, issuer, mailer, reset_tokens):
        await auth_service.register(session, _registration(), issuer)
        await auth_service.forgot_password(session, "a@x.com", "http://t/reset", mailer, reset_tokens)
        token = mailer.last_token()

        later = datetime.now(timezone.utc) + timedelta(minutes=11)
        with pytest.raises(InvalidOrExpiredToken):
            await auth_service.reset_password(session, token, "newpass1", issuer, reset_tokens, now=later)

        user = await _load_user(session_factory, "a@x.com")
        assert PasswordHasher.verify("secret1", user.password_hash)

    async def test_failed_delivery_revokes_token(self, session, session_factory, issuer, reset_tokens):
        await auth_service.register(session, _registration(), issuer)
        failing = AsyncMock()
        failing.send.side_effect = MailDeliveryError("smtp down")

        with pytest.raises(DeliveryFailed):
            await auth_service.forgot_password(session, "a@x.com", "http://t/reset", failing, reset_tokens)

        user = await _load_user(session_factory, "a@x.com")
        assert user.reset_token_hash is None
        assert user.reset_token_expires_at is None

    async def test_delivery_timeout_revokes_token(self, session, session_factory, issuer, reset_tokens):
        await auth_service.register(session, _registration(), issuer)

        class SlowMailer:
            async def send(self, message):
                await asyncio.sleep(5)

        with pytest.raises(DeliveryFailed):
            await auth_service.forgot_password(
                session, "a@x.com", "http://t/reset", SlowMailer(), reset_tokens, mail_timeout=0.05
            )

        user = await _load_user(session_factory, "a@x.com")
        assert user.reset_token_hash is None
        assert user.reset_token_expires_at is None


class TestUniqueEmailIndex:
    async def test_second_insert_is_rejected_by_the_index(self, session):
        await user_service.create_user(session, name="A", email="a@x.com", password="secret1")
        await session.commit()

        with pytest.raises(Conflict):
            await user_service.create_user(session, name="B", email="A@x.com", password="secret2")

        count = await session.scalar(select(func.count()).select_from(User))
        assert count == 1

    async def test_unknown_email_login_still_runs_a_verification(self, session, issuer):
        with patch.object(PasswordHasher, "dummy_verify", return_value=False) as dummy:
            with pytest.raises(InvalidCredentials):
                await auth_service.login(session, LoginRequest(email="ghost@x.com", password="secret1"), issuer)
        dummy.assert_called_once()


class TestCancelledDelivery:
    async def test_cancellation_during_send_revokes_token(self, session, session_factory, issuer, reset_tokens):
        await auth_service.register(session, _registration(), issuer)
        cancelled = AsyncMock()
        cancelled.send.side_effect = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await auth_service.forgot_password(session, "a@x.com", "http://t/reset", cancelled, reset_tokens)

        user = await _load_user(session_factory, "a@x.com")
        assert user.reset_token_hash is None
        assert user.reset_token_expires_at is None
