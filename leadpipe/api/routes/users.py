"""User routes for operator account management."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.api.deps import require_user_admin
from leadpipe.api.schemas.auth import UserCreate, UserResponse, UserUpdate
from leadpipe.core.exceptions import (
    ConflictError,
    PermissionDeniedError,
    UserNotFoundError,
    ValidationError,
)
from leadpipe.domain.services.user_service import UserService
from leadpipe.persistence.database import get_db
from leadpipe.persistence.models.tenant import User

router = APIRouter()


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, UserNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if isinstance(e, PermissionDeniedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("", response_model=list[UserResponse])
async def list_users(
    current_user: Annotated[User, Depends(require_user_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_id: Annotated[int | None, Query()] = None,
) -> list[UserResponse]:
    """List users. Client admins only see their own tenant."""
    users = await UserService(db).list_users(current_user, tenant_id=tenant_id)
    return [UserResponse.model_validate(user) for user in users]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    current_user: Annotated[User, Depends(require_user_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    """Create a user. Client admins can only create members of their tenant."""
    try:
        user = await UserService(db).create_user(
            current_user,
            email=user_data.email,
            password=user_data.password,
            role=user_data.role,
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            tenant_id=user_data.tenant_id,
        )
    except (ValidationError, PermissionDeniedError, ConflictError) as e:
        raise _http_error(e)
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    current_user: Annotated[User, Depends(require_user_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    try:
        user = await UserService(db).update_user(
            current_user, user_id, user_data.model_dump(exclude_unset=True)
        )
    except (UserNotFoundError, ValidationError, PermissionDeniedError) as e:
        raise _http_error(e)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=UserResponse)
async def deactivate_user(
    user_id: int,
    current_user: Annotated[User, Depends(require_user_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    """Deactivate a user. Accounts are kept for audit."""
    try:
        user = await UserService(db).deactivate_user(current_user, user_id)
    except (UserNotFoundError, ValidationError) as e:
        raise _http_error(e)
    return UserResponse.model_validate(user)
