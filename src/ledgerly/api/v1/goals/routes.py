"""Goal routes."""

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.domain.services.goal_service import GoalService, goal_view
from ledgerly.infrastructure.database.models import User

from .schemas import GoalCreate, GoalResponse, GoalUpdate

router = APIRouter(prefix="/goals", tags=["Goals"])


def build_goal_response(view: dict[str, Any]) -> GoalResponse:
    goal = view["goal"]
    return GoalResponse(
        id=goal.id,
        name=goal.name,
        target_amount=goal.target_amount,
        current_amount=goal.current_amount,
        target_date=goal.target_date,
        monthly_target=goal.monthly_target,
        icon=goal.icon,
        color=goal.color,
        priority=goal.priority,
        currency=goal.currency,
        notes=goal.notes,
        is_active=goal.is_active,
        created_at=goal.created_at,
        progress=view["progress"],
        remaining_amount=view["remaining_amount"],
        months_remaining=view["months_remaining"],
    )


@router.get("", response_model=list[GoalResponse])
def list_goals(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Active goals by priority with progress."""
    return [build_goal_response(v) for v in GoalService(db).list_goals(current_user.business_id)]


@router.get("/{goal_id}", response_model=GoalResponse)
def get_goal(
    goal_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return build_goal_response(goal_view(GoalService(db).get(current_user.business_id, goal_id)))


@router.post("", response_model=GoalResponse, status_code=status.HTTP_201_CREATED)
def create_goal(
    data: GoalCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    goal = GoalService(db).create(current_user.business_id, data.model_dump())
    return build_goal_response(goal_view(goal))


@router.put("/{goal_id}", response_model=GoalResponse)
def update_goal(
    goal_id: str,
    data: GoalUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    goal = GoalService(db).update(current_user.business_id, goal_id, data.model_dump(exclude_unset=True))
    return build_goal_response(goal_view(goal))


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_goal(
    goal_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    GoalService(db).delete(current_user.business_id, goal_id)
    return None
