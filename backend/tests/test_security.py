"""Tests for password hashing, reset tokens and session tokens."""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from storefront.core.security import InvalidToken, PasswordHasher, ResetTokenManager, SessionTokenIssuer
from storefront.models.enums import Role


class TestPasswordHasher:
    def test_verify_accepts_matching_password(self):
        hashed = PasswordHasher.hash("secret1")
        assert hashed != "secret1"
        assert PasswordHasher.verify("secret1", hashed)

    def test_verify_rejects_other_password(self):
        hashed = PasswordHasher.hash("secret1")
        assert not PasswordHasher.verify("secret2", hashed)

    def test_dummy_verify_never_matches(self):
        assert PasswordHasher.dummy_verify() is False

    def test_hashes_are_salted(self):
        assert PasswordHasher.hash("secret1") != PasswordHasher.hash("secret1")

    def test_malformed_hash_is_a_mismatch(self):
        assert PasswordHasher.verify("secret1", "not-a-hash") is False
        assert PasswordHasher.verify("secret1", None) is False


class TestResetTokenManager:
    def test_issue_returns_hash_of_token(self):
        manager = ResetTokenManager()
        issued = manager.issue()
        assert len(issued.token) == 40
        assert issued.token_hash == manager.hash_token(issued.token)
        assert issued.token_hash != issued.token

    def test_expiry_is_ten_minutes_out(self):
        now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        issued = ResetTokenManager().issue(now=now)
        assert issued.expires_at == now + timedelta(minutes=10)

    def test_tokens_are_random(self):
        manager = ResetTokenManager()
        assert manager.issue().token != manager.issue().token

    def test_redeem_matching_unexpired_token(self):
        manager = ResetTokenManager()
        issued = manager.issue()
        assert manager.redeem(issued.token, issued.token_hash, issued.expires_at)

    def test_redeem_rejects_wrong_token(self):
        manager = ResetTokenManager()
        issued = manager.issue()
        assert not manager.redeem("deadbeef", issued.token_hash, issued.expires_at)

    def test_redeem_rejects_expired_token(self):
        manager = ResetTokenManager()
        issued = manager.issue()
        later = issued.expires_at + timedelta(seconds=1)
        assert not manager.redeem(issued.token, issued.token_hash, issued.expires_at, now=later)
        assert not manager.redeem(issued.token, issued.token_hash, issued.expires_at, now=issued.expires_at)

    def test_redeem_rejects_cleared_fields(self):
        manager = ResetTokenManager()
        issued = manager.issue()
        assert not manager.redeem(issued.token, None, None)

    def test_naive_expiry_is_read_as_utc(self):
        manager = ResetTokenManager()
        now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        issued = manager.issue(now=now)
        naive_expiry = issued.expires_at.replace(tzinfo=None)
        assert manager.redeem(issued.token, issued.token_hash, naive_expiry, now=now + timedelta(minutes=9))
        assert not manager.redeem(issued.token, issued.token_hash, naive_expiry, now=now + timedelta(minutes=11))


class TestSessionTokenIssuer:
    def test_round_trip_claims(self, issuer):
        token = issuer.issue("user-1", Role.SUPPLIER)
        claims = issuer.verify(token)
        assert claims.user_id == "user-1"
        assert claims.role is Role.SUPPLIER

    def test_expired_token_is_rejected(self, issuer):
        token = issuer.issue("user-1", Role.CUSTOMER, now=datetime.now(timezone.utc) - timedelta(minutes=10))
        with pytest.raises(InvalidToken):
            issuer.verify(token)

    def test_token_signed_with_other_secret_is_rejected(self, issuer):
        other = SessionTokenIssuer(secret_key="another-secret", expire_minutes=5)
        with pytest.raises(InvalidToken):
            issuer.verify(other.issue("user-1", Role.ADMIN))

    def test_malformed_token_is_rejected(self, issuer):
        with pytest.raises(InvalidToken):
            issuer.verify("not.a.jwt")

    def test_unknown_role_is_rejected(self, issuer):
        token = jwt.encode(
            {"sub": "user-1", "role": "root", "exp": datetime.now(timezone.utc) + timedelta(minutes=1)},
            "test-secret",
            algorithm="HS256",
        )
        with pytest.raises(InvalidToken):
            issuer.verify(token)

    def test_missing_secret_is_refused(self):
        with pytest.raises(ValueError):
            SessionTokenIssuer(secret_key="", expire_minutes=5)
