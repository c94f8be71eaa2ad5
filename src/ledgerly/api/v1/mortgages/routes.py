"""Mortgage routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.domain.services.mortgage_service import MortgageService, mortgage_values
from ledgerly.infrastructure.database.finance import Mortgage
from ledgerly.infrastructure.database.models import User

from .schemas import (
    MortgageCreate,
    MortgageResponse,
    MortgageSummaryResponse,
    MortgageTrackCreate,
    MortgageTrackResponse,
    MortgageUpdate,
)

router = APIRouter(prefix="/mortgages", tags=["Mortgages"])


def build_mortgage_response(mortgage: Mortgage) -> MortgageResponse:
    response = MortgageResponse.model_validate(mortgage)
    for field, value in mortgage_values(mortgage).items():
        setattr(response, field, value)
    return response


@router.get("", response_model=list[MortgageResponse])
def list_mortgages(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return [build_mortgage_response(m) for m in MortgageService(db).list_mortgages(current_user.business_id)]


@router.get("/summary", response_model=MortgageSummaryResponse)
def mortgage_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Totals across active mortgages."""
    return MortgageService(db).summary(current_user.business_id)


@router.get("/{mortgage_id}", response_model=MortgageResponse)
def get_mortgage(
    mortgage_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return build_mortgage_response(MortgageService(db).get(current_user.business_id, mortgage_id))


@router.post("", response_model=MortgageResponse, status_code=status.HTTP_201_CREATED)
def create_mortgage(
    data: MortgageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Create a mortgage, optionally with its tracks."""
    return build_mortgage_response(MortgageService(db).create(current_user.business_id, data.model_dump()))


@router.put("/{mortgage_id}", response_model=MortgageResponse)
def update_mortgage(
    mortgage_id: str,
    data: MortgageUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    mortgage = MortgageService(db).update(
        current_user.business_id, mortgage_id, data.model_dump(exclude_unset=True)
    )
    return build_mortgage_response(mortgage)


@router.delete("/{mortgage_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_mortgage(
    mortgage_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    MortgageService(db).delete(current_user.business_id, mortgage_id)
    return None


# ---------------------------------------------------------------------------
# Tracks
# ---------------------------------------------------------------------------


@router.post(
    "/{mortgage_id}/tracks",
    response_model=MortgageTrackResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_track(
    mortgage_id: str,
    data: MortgageTrackCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return MortgageService(db).add_track(current_user.business_id, mortgage_id, data.model_dump())


@router.put("/{mortgage_id}/tracks/{track_id}", response_model=MortgageTrackResponse)
def update_track(
    mortgage_id: str,
    track_id: str,
    data: MortgageTrackCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Replace a track with the given values."""
    return MortgageService(db).update_track(current_user.business_id, mortgage_id, track_id, data.model_dump())


@router.delete("/{mortgage_id}/tracks/{track_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_track(
    mortgage_id: str,
    track_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    MortgageService(db).remove_track(current_user.business_id, mortgage_id, track_id)
    return None
