"""Authentication routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.api.deps import get_current_user
from leadpipe.api.schemas.auth import LoginRequest, RefreshRequest, TokenResponse, UserResponse
from leadpipe.core.exceptions import AuthenticationError
from leadpipe.domain.services.auth_service import AuthService, TokenPair
from leadpipe.persistence.database import get_db
from leadpipe.persistence.models.tenant import User

router = APIRouter()


def _token_response(pair: TokenPair) -> TokenResponse:
    return TokenResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        user=UserResponse.model_validate(pair.user),
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """Login endpoint for the admin dashboard.

    Returns a short-lived access token and a refresh token.
    """
    try:
        pair = await AuthService(db).login(login_data.email, login_data.password)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )
    return _token_response(pair)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    refresh_data: RefreshRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """Rotate a refresh token and issue a new access token."""
    try:
        pair = await AuthService(db).refresh(refresh_data.refresh_token)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )
    return _token_response(pair)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> None:
    """Revoke the stored refresh token."""
    await AuthService(db).logout(current_user)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: Annotated[User, Depends(get_current_user)],
) -> UserResponse:
    """Get current authenticated user information."""
    return UserResponse.model_validate(current_user)
