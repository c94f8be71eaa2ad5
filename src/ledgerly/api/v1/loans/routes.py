"""Loan routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.domain.services.loan_service import LoanService, paid_off_percent
from ledgerly.infrastructure.database.finance import Loan
from ledgerly.infrastructure.database.models import User

from .schemas import LoanCreate, LoanResponse, LoanUpdate

router = APIRouter(prefix="/loans", tags=["Loans"])


def build_loan_response(loan: Loan) -> LoanResponse:
    response = LoanResponse.model_validate(loan)
    response.paid_off_percent = paid_off_percent(loan)
    return response


@router.get("", response_model=list[LoanResponse])
def list_loans(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return [build_loan_response(row["loan"]) for row in LoanService(db).list_loans(current_user.business_id)]


@router.get("/{loan_id}", response_model=LoanResponse)
def get_loan(
    loan_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return build_loan_response(LoanService(db).get(current_user.business_id, loan_id))


@router.post("", response_model=LoanResponse, status_code=status.HTTP_201_CREATED)
def create_loan(
    data: LoanCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return build_loan_response(LoanService(db).create(current_user.business_id, data.model_dump()))


@router.put("/{loan_id}", response_model=LoanResponse)
def update_loan(
    loan_id: str,
    data: LoanUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    loan = LoanService(db).update(current_user.business_id, loan_id, data.model_dump(exclude_unset=True))
    return build_loan_response(loan)


@router.delete("/{loan_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_loan(
    loan_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    LoanService(db).delete(current_user.business_id, loan_id)
    return None
