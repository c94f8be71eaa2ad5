"""Savings plans and deposits."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledgerly.core.exceptions import NotFoundError
from ledgerly.core.money import ZERO, round_money, to_decimal
from ledgerly.domain.services.goal_service import progress_percent
from ledgerly.infrastructure.database.finance import Saving


def saving_view(saving: Saving) -> dict[str, Any]:
    """Progress towards the optional target."""
    target = to_decimal(saving.target_amount) if saving.target_amount is not None else None
    return {
        "saving": saving,
        "progress": progress_percent(saving.current_amount, target) if target else 0,
        "remaining": round_money(max(ZERO, target - to_decimal(saving.current_amount))) if target else None,
    }


class SavingService:
    """Service for savings of a business."""

    def __init__(self, db: Session):
        self.db = db

    def list_savings(self, business_id: str) -> list[dict[str, Any]]:
        """Active savings by name with progress towards the optional target."""
        savings = self.db.execute(
            select(Saving).where(Saving.business_id == business_id, Saving.is_active.is_(True)).order_by(Saving.name)
        ).scalars().all()

        return [saving_view(saving) for saving in savings]

    def get(self, business_id: str, saving_id: str) -> Saving:
        saving = self.db.execute(
            select(Saving).where(Saving.id == saving_id, Saving.business_id == business_id)
        ).scalar_one_or_none()
        if not saving:
            raise NotFoundError("Savings goal not found")
        return saving

    def create(self, business_id: str, data: dict[str, Any]) -> Saving:
        saving = Saving(business_id=business_id, **data)
        self.db.add(saving)
        self.db.commit()
        self.db.refresh(saving)
        return saving

    def update(self, business_id: str, saving_id: str, data: dict[str, Any]) -> Saving:
        saving = self.get(business_id, saving_id)
        for field, value in data.items():
            setattr(saving, field, value)
        self.db.commit()
        self.db.refresh(saving)
        return saving

    def delete(self, business_id: str, saving_id: str) -> None:
        saving = self.get(business_id, saving_id)
        saving.is_active = False
        self.db.commit()
