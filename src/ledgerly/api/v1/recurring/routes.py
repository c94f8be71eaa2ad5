"""Recurring pattern routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.domain.services.recurring_service import RecurringService
from ledgerly.infrastructure.database.models import User

from .schemas import ApplyConfirmedResponse, RecurringPatternResponse

router = APIRouter(prefix="/recurring", tags=["Recurring"])


@router.get("", response_model=list[RecurringPatternResponse])
def list_patterns(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Detected patterns that were not dismissed, income first."""
    return RecurringService(db).list_patterns(current_user.business_id)


@router.post("/detect", response_model=list[RecurringPatternResponse])
def detect_patterns(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Scan the last six months for monthly income and expenses."""
    return RecurringService(db).detect(current_user.business_id)


@router.post("/apply-confirmed", response_model=ApplyConfirmedResponse)
def apply_confirmed(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return RecurringService(db).apply_confirmed(current_user.business_id)


@router.post("/{pattern_id}/confirm", response_model=RecurringPatternResponse)
def confirm_pattern(
    pattern_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Confirm a pattern and flag its matching transactions as recurring."""
    return RecurringService(db).confirm(current_user.business_id, pattern_id)


@router.post("/{pattern_id}/dismiss", response_model=RecurringPatternResponse)
def dismiss_pattern(
    pattern_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return RecurringService(db).dismiss(current_user.business_id, pattern_id)
