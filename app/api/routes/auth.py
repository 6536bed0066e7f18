"""
Authentication routes for user registration and login.
Provides JWT token-based authentication.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from app.api.deps import get_user_service
from app.core.logging import get_logger
from app.core.security import create_access_token
from app.schemas.token import Token
from app.schemas.user import UserCreate, UserResponse
from app.services.user_service import UserService

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_in: UserCreate,
    users: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    """
    Register a new account. Self-registered accounts are always guests.

    Args:
        user_in: User registration data
        users: Account service

    Returns:
        Created user data

    Raises:
        ValidationError: Policy violations or email already registered
    """
    user = users.register(
        email=user_in.email,
        first_name=user_in.first_name,
        last_name=user_in.last_name,
        password=user_in.password,
    )
    return UserResponse.model_validate(user)


@router.post("/login", response_model=Token)
def login(
    users: Annotated[UserService, Depends(get_user_service)],
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
) -> Token:
    """
    OAuth2 compatible token login.

    Args:
        users: Account service
        form_data: OAuth2 form with username (email) and password

    Returns:
        Access token

    Raises:
        HTTPException: If credentials are invalid
    """
    user = users.authenticate(email=form_data.username, password=form_data.password)
    if not user:
        logger.warning(f"Failed login attempt for email: {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Create access token
    access_token = create_access_token(subject=user.id)
    logger.info(f"User logged in: {user.email} (ID: {user.id})")

    return Token(access_token=access_token)
