"""Category routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.domain.services.category_service import CategoryService
from ledgerly.infrastructure.database.models import User

from .schemas import CategoryCreate, CategoryResponse, CategoryUpdate

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("", response_model=list[CategoryResponse])
def list_categories(
    income: Optional[bool] = Query(None, description="Only income (true) or expense (false) categories"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """List categories, seeding the defaults for a new business."""
    return CategoryService(db).list_categories(current_user.business_id, income)


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return CategoryService(db).get(current_user.business_id, category_id)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    data: CategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Create a category (409 when the slug is taken)."""
    return CategoryService(db).create(current_user.business_id, data.model_dump())


@router.put("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str,
    data: CategoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return CategoryService(db).update(current_user.business_id, category_id, data.model_dump(exclude_unset=True))


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    CategoryService(db).delete(current_user.business_id, category_id)
    return None
