"""Service layer for support issue persistence."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.errors import Forbidden, NotFound
from storefront.models.enums import Role
from storefront.models.issue import Issue
from storefront.models.order import Order
from storefront.models.user import User
from storefront.schemas.issue import IssueCreate, IssueUpdate


def ensure_can_view(issue_owner_id: str, actor: User) -> None:
    if actor.role == Role.CUSTOMER and issue_owner_id != actor.id:
        raise Forbidden("Customers can only access their own issues")


async def get_issue(session: AsyncSession, issue_id: str) -> Issue | None:
    result = await session.execute(select(Issue).where(Issue.id == issue_id))
    return result.scalar_one_or_none()


async def list_issues_for_user(session: AsyncSession, user_id: str) -> list[Issue]:
    result = await session.execute(
        select(Issue).where(Issue.user_id == user_id).order_by(Issue.created_at.desc())
    )
    return list(result.scalars().all())


async def create_issue(session: AsyncSession, data: IssueCreate, owner: User) -> Issue:
    result = await session.execute(select(Order.user_id).where(Order.id == data.order_id))
    order_owner = result.scalar_one_or_none()
    if order_owner is None:
        raise NotFound("Order not found")
    if order_owner != owner.id:
        raise Forbidden("Issues can only be raised against your own orders")

    issue = Issue(title=data.title, description=data.description, order_id=data.order_id, user_id=owner.id)
    session.add(issue)
    await session.flush()
    return issue


async def update_issue(session: AsyncSession, issue_id: str, data: IssueUpdate) -> Issue:
    issue = await get_issue(session, issue_id)
    if not issue:
        raise NotFound("Issue not found")
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(issue, field, value)
    await session.flush()
    return issue


async def delete_issue(session: AsyncSession, issue_id: str) -> None:
    issue = await get_issue(session, issue_id)
    if not issue:
        raise NotFound("Issue not found")
    await session.delete(issue)
    await session.flush()
