"""Support issue endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.dependencies import get_db, require_roles
from storefront.core.errors import NotFound
from storefront.models.enums import Role
from storefront.models.user import User
from storefront.schemas.auth import MessageResponse
from storefront.schemas.issue import IssueCreate, IssueRead, IssueUpdate
from storefront.services import issues as issue_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/issues", tags=["issues"])

customers_only = require_roles(Role.CUSTOMER)
issue_readers = require_roles(Role.CUSTOMER, Role.SUPPORT, Role.ADMIN)
issue_handlers = require_roles(Role.SUPPORT, Role.ADMIN)
admin_only = require_roles(Role.ADMIN)


@router.post("/", response_model=IssueRead, status_code=status.HTTP_201_CREATED)
async def create_issue(
    payload: IssueCreate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(customers_only),
) -> IssueRead:
    issue = await issue_service.create_issue(session, payload, current_user)
    await session.commit()
    logger.info("New issue created: %s", issue.id)
    return IssueRead.model_validate(issue)


@router.get("/{user_id}/allIssues", response_model=list[IssueRead])
async def list_issues_for_user(
    user_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(issue_readers),
) -> list[IssueRead]:
    issue_service.ensure_can_view(user_id, current_user)
    issues = await issue_service.list_issues_for_user(session, user_id)
    return [IssueRead.model_validate(issue) for issue in issues]


@router.get("/{issue_id}", response_model=IssueRead)
async def get_issue(
    issue_id: str,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(issue_readers),
) -> IssueRead:
    issue = await issue_service.get_issue(session, issue_id)
    if not issue:
        raise NotFound("Issue not found")
    issue_service.ensure_can_view(issue.user_id, current_user)
    return IssueRead.model_validate(issue)


@router.put("/{issue_id}", response_model=IssueRead)
async def update_issue(
    issue_id: str,
    payload: IssueUpdate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(issue_handlers),
) -> IssueRead:
    issue = await issue_service.update_issue(session, issue_id, payload)
    await session.commit()
    logger.info("Updated issue %s", issue_id)
    return IssueRead.model_validate(issue)


@router.delete("/{issue_id}", response_model=MessageResponse)
async def delete_issue(
    issue_id: str,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> MessageResponse:
    await issue_service.delete_issue(session, issue_id)
    await session.commit()
    logger.info("Deleted issue %s", issue_id)
    return MessageResponse(message="Issue deleted successfully")
