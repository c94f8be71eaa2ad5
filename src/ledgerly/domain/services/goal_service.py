"""Financial goals with progress tracking."""

import math
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledgerly.core.date_helpers import months_between
from ledgerly.core.exceptions import NotFoundError
from ledgerly.core.money import ZERO, round_money, round_whole, to_decimal
from ledgerly.infrastructure.database.finance import Goal


def monthly_target(
    target_amount: Decimal, current_amount: Decimal, target_date: Optional[date], today: Optional[date] = None
) -> Optional[Decimal]:
    """
    Amount to put aside each month to reach a goal by its target date.

    Whole months are rounded up; when the target month has already come the
    full remaining amount is due.

    Examples:
        >>> monthly_target(Decimal("1000"), Decimal("100"), date(2025, 4, 1), today=date(2025, 1, 15))
        Decimal('300')
    """
    if target_date is None:
        return None
    remaining = max(ZERO, to_decimal(target_amount) - to_decimal(current_amount))
    months = months_between(today or date.today(), target_date)
    if months <= 0:
        return remaining
    return Decimal(math.ceil(remaining / months))


def progress_percent(current: Any, target: Any) -> int:
    """Rounded percentage of target reached, capped at 100."""
    target = to_decimal(target)
    if target <= 0:
        return 0
    return min(100, int(round_whole(to_decimal(current) / target * 100)))


def goal_view(goal: Goal, today: Optional[date] = None) -> dict[str, Any]:
    today = today or date.today()
    return {
        "goal": goal,
        "progress": progress_percent(goal.current_amount, goal.target_amount),
        "remaining_amount": round_money(max(ZERO, to_decimal(goal.target_amount) - to_decimal(goal.current_amount))),
        "months_remaining": max(0, months_between(today, goal.target_date)) if goal.target_date else None,
    }


class GoalService:
    """Service for savings goals of a business."""

    def __init__(self, db: Session):
        self.db = db

    def list_goals(self, business_id: str, today: Optional[date] = None) -> list[dict[str, Any]]:
        """Active goals by priority with progress, remaining amount and months left."""
        goals = self.db.execute(
            select(Goal)
            .where(Goal.business_id == business_id, Goal.is_active.is_(True))
            .order_by(Goal.priority.desc(), Goal.created_at.desc())
        ).scalars().all()
        return [goal_view(goal, today) for goal in goals]

    def get(self, business_id: str, goal_id: str) -> Goal:
        goal = self.db.execute(
            select(Goal).where(Goal.id == goal_id, Goal.business_id == business_id)
        ).scalar_one_or_none()
        if not goal:
            raise NotFoundError("Goal not found")
        return goal

    def create(self, business_id: str, data: dict[str, Any]) -> Goal:
        """Create a goal, deriving monthly_target from target_date when not given."""
        if data.get("monthly_target") is None:
            data["monthly_target"] = monthly_target(
                data["target_amount"], data.get("current_amount") or ZERO, data.get("target_date")
            )
        goal = Goal(business_id=business_id, **data)
        self.db.add(goal)
        self.db.commit()
        self.db.refresh(goal)
        return goal

    def update(self, business_id: str, goal_id: str, data: dict[str, Any]) -> Goal:
        goal = self.get(business_id, goal_id)
        for field, value in data.items():
            setattr(goal, field, value)
        self.db.commit()
        self.db.refresh(goal)
        return goal

    def delete(self, business_id: str, goal_id: str) -> None:
        goal = self.get(business_id, goal_id)
        goal.is_active = False
        self.db.commit()
