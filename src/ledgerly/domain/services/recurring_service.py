"""Detection of monthly recurring income and expenses."""

from collections import Counter
from datetime import date
from decimal import Decimal
from typing import Any, Hashable, Iterable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledgerly.core.date_helpers import add_months
from ledgerly.core.exceptions import NotFoundError
from ledgerly.core.logging import get_logger
from ledgerly.core.money import ZERO, round_money, to_decimal
from ledgerly.infrastructure.database.finance import RecurringPattern, Transaction

logger = get_logger(__name__)

LOOKBACK_MONTHS = 6
AMOUNT_TOLERANCE = Decimal("0.10")
MIN_GAP_DAYS = 25
MAX_GAP_DAYS = 35
MIN_OCCURRENCES = 2


def normalize_description(description: str) -> str:
    return (description or "").strip().lower()


def cluster_by_amount(transactions: Sequence[Transaction]) -> list[list[Transaction]]:
    """
    Group transactions whose absolute amounts are within 10% of a cluster average.

    Greedy: walk by ascending absolute amount and join the first cluster that
    fits, otherwise open a new one.
    """
    clusters: list[list[Transaction]] = []
    for tx in sorted(transactions, key=lambda t: abs(to_decimal(t.amount))):
        amount = abs(to_decimal(tx.amount))
        for cluster in clusters:
            average = sum((abs(to_decimal(t.amount)) for t in cluster), ZERO) / len(cluster)
            if average == 0 or abs(amount - average) / average <= AMOUNT_TOLERANCE:
                cluster.append(tx)
                break
        else:
            clusters.append([tx])
    return clusters


def find_monthly_chain(transactions: Sequence[Transaction]) -> list[Transaction]:
    """
    Longest chain of roughly monthly (25-35 day) gaps in date-sorted transactions.

    Returns:
        The chain when it has at least two members, else an empty list
    """
    best: list[Transaction] = []
    for start in range(len(transactions)):
        chain = [transactions[start]]
        for tx in transactions[start + 1:]:
            gap = (tx.date - chain[-1].date).days
            if MIN_GAP_DAYS <= gap <= MAX_GAP_DAYS:
                chain.append(tx)
        if len(chain) > len(best):
            best = chain
    return best if len(best) >= MIN_OCCURRENCES else []


def most_common(values: Iterable[Optional[Hashable]]) -> Optional[Any]:
    counts = Counter(v for v in values if v is not None)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def detect_patterns(transactions: Iterable[Transaction], dismissed: set[str]) -> list[dict[str, Any]]:
    """
    Find monthly patterns in a transaction history.

    Transactions are grouped by normalized description, split by sign and
    clustered by amount; each cluster's longest monthly chain becomes a
    pattern.
    """
    groups: dict[str, list[Transaction]] = {}
    for tx in transactions:
        key = normalize_description(tx.description)
        if not key or key in dismissed:
            continue
        groups.setdefault(key, []).append(tx)

    detected = []
    for description, group in groups.items():
        if len(group) < MIN_OCCURRENCES:
            continue
        income = [t for t in group if to_decimal(t.amount) > 0]
        expenses = [t for t in group if to_decimal(t.amount) < 0]

        for side in (income, expenses):
            if len(side) < MIN_OCCURRENCES:
                continue
            for cluster in cluster_by_amount(side):
                if len(cluster) < MIN_OCCURRENCES:
                    continue
                chain = find_monthly_chain(sorted(cluster, key=lambda t: t.date))
                if not chain:
                    continue

                average = sum((to_decimal(t.amount) for t in chain), ZERO) / len(chain)
                last = chain[-1]
                detected.append(
                    {
                        "description": description,
                        "amount": round_money(average),
                        "type": "income" if average > 0 else "expense",
                        "category_id": most_common(t.category_id for t in chain),
                        "account_id": most_common(t.account_id for t in chain) or last.account_id,
                        "last_seen_date": last.date,
                        "occurrences": len(chain),
                    }
                )
    return detected


class RecurringService:
    """Service for detected recurring patterns."""

    def __init__(self, db: Session):
        self.db = db

    def detect(self, business_id: str, today: Optional[date] = None) -> list[RecurringPattern]:
        """
        Scan the last six months and upsert patterns by (description, type).

        Dismissed descriptions are skipped so they never reappear.
        """
        today = today or date.today()
        transactions = self.db.execute(
            select(Transaction)
            .where(
                Transaction.business_id == business_id,
                Transaction.date >= add_months(today, -LOOKBACK_MONTHS),
                Transaction.date <= today,
            )
            .order_by(Transaction.date)
        ).scalars().all()

        dismissed = {
            normalize_description(d)
            for d in self.db.execute(
                select(RecurringPattern.description).where(
                    RecurringPattern.business_id == business_id,
                    RecurringPattern.is_dismissed.is_(True),
                )
            ).scalars().all()
        }

        results = []
        for found in detect_patterns(transactions, dismissed):
            pattern = self.db.execute(
                select(RecurringPattern).where(
                    RecurringPattern.business_id == business_id,
                    RecurringPattern.description == found["description"],
                    RecurringPattern.type == found["type"],
                )
            ).scalar_one_or_none()
            if pattern is None:
                pattern = RecurringPattern(business_id=business_id, frequency="monthly", **found)
                self.db.add(pattern)
            else:
                for field, value in found.items():
                    setattr(pattern, field, value)
            results.append(pattern)

        self.db.commit()
        logger.info("Recurring patterns detected", business_id=business_id, count=len(results))
        return results

    def list_patterns(self, business_id: str) -> list[RecurringPattern]:
        """Non-dismissed patterns: income first, then by size."""
        patterns = self.db.execute(
            select(RecurringPattern).where(
                RecurringPattern.business_id == business_id,
                RecurringPattern.is_dismissed.is_(False),
            )
        ).scalars().all()
        return sorted(patterns, key=lambda p: (p.type != "income", -abs(to_decimal(p.amount))))

    def get(self, business_id: str, pattern_id: str) -> RecurringPattern:
        pattern = self.db.execute(
            select(RecurringPattern).where(
                RecurringPattern.id == pattern_id,
                RecurringPattern.business_id == business_id,
            )
        ).scalar_one_or_none()
        if not pattern:
            raise NotFoundError("Recurring pattern not found")
        return pattern

    def _mark_matching(self, business_id: str, pattern: RecurringPattern) -> int:
        """Flag transactions with the same description and an amount within 10% as recurring."""
        amount = to_decimal(pattern.amount)
        tolerance = abs(amount) * AMOUNT_TOLERANCE
        lower = round_money(min(amount - tolerance, amount + tolerance))
        upper = round_money(max(amount - tolerance, amount + tolerance))

        candidates = self.db.execute(
            select(Transaction).where(
                Transaction.business_id == business_id,
                Transaction.is_recurring.is_(False),
                Transaction.amount >= lower,
                Transaction.amount <= upper,
            )
        ).scalars().all()

        target = normalize_description(pattern.description)
        count = 0
        for tx in candidates:
            if normalize_description(tx.description) == target:
                tx.is_recurring = True
                count += 1
        return count

    def confirm(self, business_id: str, pattern_id: str) -> RecurringPattern:
        pattern = self.get(business_id, pattern_id)
        pattern.is_confirmed = True
        pattern.is_dismissed = False
        updated = self._mark_matching(business_id, pattern)
        self.db.commit()
        self.db.refresh(pattern)
        logger.info("Recurring pattern confirmed", pattern_id=pattern.id, transactions_updated=updated)
        return pattern

    def dismiss(self, business_id: str, pattern_id: str) -> RecurringPattern:
        pattern = self.get(business_id, pattern_id)
        pattern.is_dismissed = True
        pattern.is_confirmed = False
        self.db.commit()
        self.db.refresh(pattern)
        return pattern

    def apply_confirmed(self, business_id: str) -> dict[str, int]:
        """Mark new transactions matching any confirmed pattern as recurring."""
        patterns = self.db.execute(
            select(RecurringPattern).where(
                RecurringPattern.business_id == business_id,
                RecurringPattern.is_confirmed.is_(True),
                RecurringPattern.is_dismissed.is_(False),
            )
        ).scalars().all()

        updated = sum(self._mark_matching(business_id, p) for p in patterns)
        self.db.commit()
        logger.info("Confirmed patterns applied", business_id=business_id, patterns=len(patterns), updated=updated)
        return {"patterns_applied": len(patterns), "transactions_updated": updated}
