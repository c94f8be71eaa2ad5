"""Mortgages and their repayment tracks."""

from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledgerly.core.exceptions import BusinessRuleError, NotFoundError
from ledgerly.core.logging import get_logger
from ledgerly.core.money import ZERO, round_money, round_whole, to_decimal
from ledgerly.infrastructure.database.finance import Mortgage, MortgageTrack

logger = get_logger(__name__)


def paid_off_percent(mortgage: Mortgage) -> Optional[int]:
    """Share of the total already repaid, None while the remaining amount is unknown."""
    if mortgage.remaining_amount is None:
        return None
    total = to_decimal(mortgage.total_amount)
    if total <= 0:
        return 0
    paid = max(ZERO, total - to_decimal(mortgage.remaining_amount))
    return min(100, int(round_whole(paid / total * 100)))


def track_totals(tracks: list[MortgageTrack]) -> dict[str, Decimal]:
    """
    Sum the tracks of a mortgage.

    The interest rate is the average of the track rates weighted by track
    amount, 0 when there are no tracks.
    """
    amount = sum((to_decimal(t.amount) for t in tracks), ZERO)
    monthly = sum((to_decimal(t.monthly_payment) for t in tracks), ZERO)
    weighted = sum((to_decimal(t.amount) * to_decimal(t.interest_rate) for t in tracks), ZERO)
    return {
        "tracks_amount": round_money(amount),
        "tracks_monthly_payment": round_money(monthly),
        "weighted_interest_rate": round_money(weighted / amount) if amount > 0 else Decimal("0.00"),
    }


def mortgage_values(mortgage: Mortgage) -> dict[str, Any]:
    """Computed fields of a mortgage.

    monthly_payment is the stated total_monthly, or the sum of the track
    payments when none was entered.
    """
    values = track_totals(list(mortgage.tracks))
    if mortgage.total_monthly is not None:
        monthly = round_money(mortgage.total_monthly)
    else:
        monthly = values["tracks_monthly_payment"]
    return {**values, "monthly_payment": monthly, "paid_off_percent": paid_off_percent(mortgage)}


class MortgageService:
    """Service for mortgages of a business."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Mortgages
    # ------------------------------------------------------------------

    def list_mortgages(self, business_id: str) -> list[Mortgage]:
        return list(
            self.db.execute(
                select(Mortgage)
                .where(Mortgage.business_id == business_id, Mortgage.is_active.is_(True))
                .order_by(Mortgage.name)
            ).scalars().all()
        )

    def get(self, business_id: str, mortgage_id: str) -> Mortgage:
        mortgage = self.db.execute(
            select(Mortgage).where(Mortgage.id == mortgage_id, Mortgage.business_id == business_id)
        ).scalar_one_or_none()
        if not mortgage:
            raise NotFoundError("Mortgage not found")
        return mortgage

    @staticmethod
    def _validate_dates(start, end, label: str) -> None:
        if start and end and end < start:
            raise BusinessRuleError(f"{label} end date must be after start date")

    @classmethod
    def _validate_track(cls, data: dict[str, Any]) -> None:
        cls._validate_dates(data.get("start_date"), data.get("end_date"), "Track")
        total, remaining = data.get("total_payments"), data.get("remaining_payments")
        if total is not None and remaining is not None and remaining > total:
            raise BusinessRuleError("Remaining payments cannot exceed total payments")

    def create(self, business_id: str, data: dict[str, Any]) -> Mortgage:
        """Create a mortgage together with its initial tracks."""
        tracks = data.pop("tracks", None) or []
        self._validate_dates(data.get("start_date"), data.get("end_date"), "Mortgage")
        for track in tracks:
            self._validate_track(track)

        mortgage = Mortgage(business_id=business_id, **data)
        mortgage.tracks = [MortgageTrack(**track) for track in tracks]
        self.db.add(mortgage)
        self.db.commit()
        self.db.refresh(mortgage)
        logger.info("Mortgage created", mortgage_id=mortgage.id, tracks=len(tracks))
        return mortgage

    def update(self, business_id: str, mortgage_id: str, data: dict[str, Any]) -> Mortgage:
        mortgage = self.get(business_id, mortgage_id)
        self._validate_dates(
            data.get("start_date", mortgage.start_date), data.get("end_date", mortgage.end_date), "Mortgage"
        )
        for field, value in data.items():
            setattr(mortgage, field, value)
        self.db.commit()
        self.db.refresh(mortgage)
        return mortgage

    def delete(self, business_id: str, mortgage_id: str) -> None:
        mortgage = self.get(business_id, mortgage_id)
        mortgage.is_active = False
        self.db.commit()

    def summary(self, business_id: str) -> dict[str, Any]:
        """Totals across active mortgages; an unknown remaining amount counts as the full amount."""
        mortgages = self.list_mortgages(business_id)
        total_amount = ZERO
        total_remaining = ZERO
        total_monthly = ZERO
        for mortgage in mortgages:
            total_amount += to_decimal(mortgage.total_amount)
            remaining = mortgage.remaining_amount if mortgage.remaining_amount is not None else mortgage.total_amount
            total_remaining += to_decimal(remaining)
            total_monthly += mortgage_values(mortgage)["monthly_payment"]
        return {
            "mortgage_count": len(mortgages),
            "track_count": sum(len(m.tracks) for m in mortgages),
            "total_amount": round_money(total_amount),
            "total_remaining": round_money(total_remaining),
            "total_monthly": round_money(total_monthly),
        }

    # ------------------------------------------------------------------
    # Tracks
    # ------------------------------------------------------------------

    def get_track(self, business_id: str, mortgage_id: str, track_id: str) -> MortgageTrack:
        mortgage = self.get(business_id, mortgage_id)
        track = self.db.execute(
            select(MortgageTrack).where(MortgageTrack.id == track_id, MortgageTrack.mortgage_id == mortgage.id)
        ).scalar_one_or_none()
        if not track:
            raise NotFoundError("Mortgage track not found")
        return track

    def add_track(self, business_id: str, mortgage_id: str, data: dict[str, Any]) -> MortgageTrack:
        mortgage = self.get(business_id, mortgage_id)
        self._validate_track(data)
        track = MortgageTrack(mortgage_id=mortgage.id, **data)
        self.db.add(track)
        self.db.commit()
        self.db.refresh(track)
        return track

    def update_track(
        self, business_id: str, mortgage_id: str, track_id: str, data: dict[str, Any]
    ) -> MortgageTrack:
        """Replace every field of a track; fields left out of data are cleared."""
        track = self.get_track(business_id, mortgage_id, track_id)
        self._validate_track(data)
        for field, value in data.items():
            setattr(track, field, value)
        self.db.commit()
        self.db.refresh(track)
        return track

    def remove_track(self, business_id: str, mortgage_id: str, track_id: str) -> None:
        track = self.get_track(business_id, mortgage_id, track_id)
        self.db.delete(track)
        self.db.commit()
