"""Savings routes."""

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.domain.services.saving_service import SavingService, saving_view
from ledgerly.infrastructure.database.models import User

from .schemas import SavingCreate, SavingResponse, SavingUpdate

router = APIRouter(prefix="/savings", tags=["Savings"])


def build_saving_response(view: dict[str, Any]) -> SavingResponse:
    saving = view["saving"]
    return SavingResponse(
        id=saving.id,
        name=saving.name,
        target_amount=saving.target_amount,
        current_amount=saving.current_amount,
        interest_rate=saving.interest_rate,
        start_date=saving.start_date,
        target_date=saving.target_date,
        currency=saving.currency,
        notes=saving.notes,
        is_active=saving.is_active,
        created_at=saving.created_at,
        progress=view["progress"],
        remaining=view["remaining"],
    )


@router.get("", response_model=list[SavingResponse])
def list_savings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return [build_saving_response(v) for v in SavingService(db).list_savings(current_user.business_id)]


@router.get("/{saving_id}", response_model=SavingResponse)
def get_saving(
    saving_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return build_saving_response(saving_view(SavingService(db).get(current_user.business_id, saving_id)))


@router.post("", response_model=SavingResponse, status_code=status.HTTP_201_CREATED)
def create_saving(
    data: SavingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    saving = SavingService(db).create(current_user.business_id, data.model_dump())
    return build_saving_response(saving_view(saving))


@router.put("/{saving_id}", response_model=SavingResponse)
def update_saving(
    saving_id: str,
    data: SavingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    saving = SavingService(db).update(current_user.business_id, saving_id, data.model_dump(exclude_unset=True))
    return build_saving_response(saving_view(saving))


@router.delete("/{saving_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_saving(
    saving_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    SavingService(db).delete(current_user.business_id, saving_id)
    return None
