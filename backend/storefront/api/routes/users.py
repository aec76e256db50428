"""User administration endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.dependencies import get_current_user, get_db, require_roles
from storefront.models.enums import Role
from storefront.models.user import User
from storefront.schemas.auth import MessageResponse
from storefront.schemas.user import ProfileUpdate, UserRead, UserUpdate
from storefront.services import users as user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

admin_only = require_roles(Role.ADMIN)


@router.get("/", response_model=list[UserRead])
async def list_users(
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> list[UserRead]:
    users = await user_service.list_users(session)
    return [UserRead.model_validate(user) for user in users]


@router.put("/me/update", response_model=UserRead)
async def update_own_profile(
    payload: ProfileUpdate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserRead:
    user = await user_service.update_profile(session, current_user, payload)
    await session.commit()
    logger.info("Profile updated for user %s", user.id)
    return UserRead.model_validate(user)


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> UserRead:
    user = await user_service.update_user(session, user_id, payload)
    await session.commit()
    logger.info("User %s updated", user_id)
    return UserRead.model_validate(user)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> MessageResponse:
    await user_service.delete_user(session, user_id)
    await session.commit()
    logger.info("User %s deleted", user_id)
    return MessageResponse(message="User deleted")
