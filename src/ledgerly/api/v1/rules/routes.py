"""Categorization rule routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.domain.services.rule_service import RuleService
from ledgerly.infrastructure.database.finance import CategoryRule
from ledgerly.infrastructure.database.models import User

from .schemas import RuleCreate, RuleResponse

router = APIRouter(prefix="/rules", tags=["Rules"])


def build_rule_response(rule: CategoryRule) -> RuleResponse:
    return RuleResponse(
        id=rule.id,
        category_id=rule.category_id,
        category_name=rule.category.name if rule.category else None,
        pattern=rule.pattern,
        pattern_type=rule.pattern_type,
        priority=rule.priority,
        is_active=rule.is_active,
        created_at=rule.created_at,
    )


@router.get("", response_model=list[RuleResponse])
def list_rules(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """List rules by priority."""
    return [build_rule_response(r) for r in RuleService(db).list_rules(current_user.business_id)]


@router.post("", response_model=RuleResponse, status_code=status.HTTP_201_CREATED)
def create_rule(
    data: RuleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Create a rule; regex patterns must compile."""
    return build_rule_response(RuleService(db).create_rule(current_user.business_id, data.model_dump()))


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rule(
    rule_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    RuleService(db).delete_rule(current_user.business_id, rule_id)
    return None
