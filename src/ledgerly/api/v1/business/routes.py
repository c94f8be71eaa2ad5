"""Business profile routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.domain.services.auth_service import AuthService
from ledgerly.infrastructure.database.models import User

from .schemas import BusinessResponse, BusinessUpdate

router = APIRouter(prefix="/business", tags=["Business"])


@router.get("", response_model=BusinessResponse)
def get_business(
    current_user: User = Depends(get_current_active_user),
):
    """Get the business of the current user."""
    return BusinessResponse.model_validate(current_user.business)


@router.put("", response_model=BusinessResponse)
def update_business(
    data: BusinessUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Update the business profile."""
    business = AuthService(db).update_business(current_user.business, data.model_dump(exclude_unset=True))
    return BusinessResponse.model_validate(business)
