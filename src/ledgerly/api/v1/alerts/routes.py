"""Alert routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.domain.services.alert_service import AlertService
from ledgerly.infrastructure.database.models import User

router = APIRouter(prefix="/alerts", tags=["Alerts"])


@router.get("")
def list_alerts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[dict]:
    """
    Current alerts, critical first.

    Alerts are computed on request: budgets exceeded, low balances, goal
    deadlines, unusual expenses and missed recurring payments.
    """
    return AlertService(db).generate(current_user.business_id)
