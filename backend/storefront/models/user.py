"""Database model for application users."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from storefront.db.base import Base, new_id, utcnow
from storefront.models.enums import Role


class User(Base):
    """Account with credentials, role and password-reset state.

    ``password_hash`` is deferred: it is only loaded when a query asks for it
    explicitly (see ``services.users.get_user_by_email(with_password=True)``).
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False, deferred=True)
    role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, length=32, values_callable=lambda roles: [r.value for r in roles]),
        default=Role.CUSTOMER,
        nullable=False,
    )
    reset_token_hash: Mapped[str | None] = mapped_column(String(64), default=None, index=True)
    reset_token_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
