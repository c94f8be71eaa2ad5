"""Authentication routes for API v1."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from ledgerly.api.dependencies.auth import get_current_active_user
from ledgerly.api.dependencies.database import get_db
from ledgerly.api.v1.auth.schemas import (
    ChangePassword,
    ProfileUpdate,
    RegisterRequest,
    Token,
    UserMeResponse,
)
from ledgerly.core.logging import get_logger
from ledgerly.domain.services.auth_service import AuthService
from ledgerly.infrastructure.database.models import User

router = APIRouter()
logger = get_logger(__name__)


def build_me_response(user: User) -> UserMeResponse:
    return UserMeResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        is_active=user.is_active,
        business_id=user.business_id,
        business_name=user.business.name if user.business else None,
        country_code=user.country_code,
        created_at=user.created_at,
    )


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> Token:
    """Create a business with its owner and return an access token."""
    auth_service = AuthService(db)
    user = auth_service.register(
        email=data.email,
        password=data.password,
        full_name=data.full_name,
        business_name=data.business_name,
        business_type=data.business_type,
        country_code=data.country_code,
    )
    return Token(access_token=auth_service.create_access_token(data={"sub": str(user.id)}))


@router.post("/login", response_model=Token)
def login(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: Annotated[Session, Depends(get_db)],
) -> Token:
    """Authenticate user and return JWT token.

    Uses OAuth2 password flow:
    - username: user's email
    - password: user's password
    """
    auth_service = AuthService(db)
    user = auth_service.authenticate_user(form_data.username, form_data.password)

    if not user:
        logger.info("Login failed", email=form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = auth_service.create_access_token(data={"sub": str(user.id)})
    return Token(access_token=access_token)


@router.get("/me", response_model=UserMeResponse)
def get_current_user_info(
    current_user: Annotated[User, Depends(get_current_active_user)],
) -> UserMeResponse:
    """Get current authenticated user information."""
    return build_me_response(current_user)


@router.put("/me", response_model=UserMeResponse)
def update_profile(
    data: ProfileUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserMeResponse:
    """Update own name and email."""
    user = AuthService(db).update_profile(current_user, full_name=data.full_name, email=data.email)
    return build_me_response(user)


@router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    data: ChangePassword,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Change own password (requires the current one)."""
    AuthService(db).change_password(current_user, data.current_password, data.new_password)
    return None
