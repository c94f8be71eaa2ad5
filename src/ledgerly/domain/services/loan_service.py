"""Loans and their repayment progress."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledgerly.core.exceptions import BusinessRuleError, NotFoundError
from ledgerly.core.money import ZERO, round_whole, to_decimal
from ledgerly.infrastructure.database.finance import Loan


def paid_off_percent(loan: Loan) -> int:
    """Share of the original amount already repaid."""
    original = to_decimal(loan.original_amount)
    if original <= 0:
        return 0
    paid = max(ZERO, original - to_decimal(loan.remaining_amount))
    return min(100, int(round_whole(paid / original * 100)))


class LoanService:
    """Service for loans of a business."""

    def __init__(self, db: Session):
        self.db = db

    def list_loans(self, business_id: str) -> list[dict[str, Any]]:
        loans = self.db.execute(
            select(Loan).where(Loan.business_id == business_id, Loan.is_active.is_(True)).order_by(Loan.name)
        ).scalars().all()
        return [{"loan": loan, "paid_off_percent": paid_off_percent(loan)} for loan in loans]

    def get(self, business_id: str, loan_id: str) -> Loan:
        loan = self.db.execute(
            select(Loan).where(Loan.id == loan_id, Loan.business_id == business_id)
        ).scalar_one_or_none()
        if not loan:
            raise NotFoundError("Loan not found")
        return loan

    @staticmethod
    def _validate(loan_start, loan_end) -> None:
        if loan_start and loan_end and loan_end < loan_start:
            raise BusinessRuleError("Loan end date must be after start date")

    def create(self, business_id: str, data: dict[str, Any]) -> Loan:
        """Create a loan; an omitted remaining amount starts at the original amount."""
        if data.get("remaining_amount") is None:
            data["remaining_amount"] = data["original_amount"]
        self._validate(data.get("start_date"), data.get("end_date"))
        loan = Loan(business_id=business_id, **data)
        self.db.add(loan)
        self.db.commit()
        self.db.refresh(loan)
        return loan

    def update(self, business_id: str, loan_id: str, data: dict[str, Any]) -> Loan:
        loan = self.get(business_id, loan_id)
        self._validate(data.get("start_date", loan.start_date), data.get("end_date", loan.end_date))
        for field, value in data.items():
            setattr(loan, field, value)
        self.db.commit()
        self.db.refresh(loan)
        return loan

    def delete(self, business_id: str, loan_id: str) -> None:
        loan = self.get(business_id, loan_id)
        loan.is_active = False
        self.db.commit()
