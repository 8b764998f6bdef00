"""
User feature routes.

Users are maintained by the legacy administration; these routes only read.
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.roles.lattice import AccountClass
from app.features.roles.mapping import legacy_role_label
from app.features.users.dependencies import get_user_by_id
from app.features.users.models import User
from app.features.users.schemas import UserResponse


router = APIRouter(tags=["users"])


def to_user_response(user: User) -> UserResponse:
    response = UserResponse.model_validate(user)
    response.legacy_role_label = legacy_role_label(user.legacy_role)
    return response


@router.get("/", response_model=list[UserResponse])
async def list_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    account_class: Optional[AccountClass] = None,
    skip: int = 0,
    limit: int = 50
):
    """List users, optionally filtered by account class."""
    query = select(User)
    if account_class is not None:
        query = query.where(User.account_class == account_class)

    query = query.order_by(User.name).offset(skip).limit(limit)
    result = await db.execute(query)
    return [to_user_response(user) for user in result.scalars().all()]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user: Annotated[User, Depends(get_user_by_id)]
):
    """Get a user by ID."""
    return to_user_response(user)
