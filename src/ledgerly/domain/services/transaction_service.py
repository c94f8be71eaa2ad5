"""Transaction service with VAT, categorisation and bulk operations."""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session, joinedload

from ledgerly.core.date_helpers import add_months, parse_search_date
from ledgerly.core.exceptions import BusinessRuleError, NotFoundError
from ledgerly.core.logging import get_logger
from ledgerly.core.money import ZERO, round_money, to_decimal
from ledgerly.domain.services.category_service import CategoryService
from ledgerly.domain.services.rule_service import RuleService
from ledgerly.infrastructure.database.finance import Account, Category, Client, Project, Transaction
from ledgerly.infrastructure.database.models import Business

logger = get_logger(__name__)

DEFAULT_VAT_RATE = Decimal("17")


class TransactionService:
    """Service for recording, listing and correcting transactions."""

    def __init__(self, db: Session):
        self.db = db
        self.rules = RuleService(db)
        self.categories = CategoryService(db)

    # ------------------------------------------------------------------
    # VAT and display helpers
    # ------------------------------------------------------------------

    @staticmethod
    def calculate_vat(amount: Any, rate: Any, is_vat_included: bool = True) -> Optional[Decimal]:
        """
        VAT component of an amount.

        Included: abs - abs / (1 + r/100). Excluded: abs * r/100.
        A non-positive rate means no VAT (None).
        """
        rate_dec = to_decimal(rate)
        if rate_dec <= 0:
            return None
        absolute = abs(to_decimal(amount))
        if is_vat_included:
            vat = absolute - absolute / (1 + rate_dec / 100)
        else:
            vat = absolute * rate_dec / 100
        return round_money(vat)

    @staticmethod
    def display_amount(tx: Transaction) -> Decimal:
        """Per-installment amount for rows stored with the full plan price."""
        amount = to_decimal(tx.amount)
        installments = tx.installment_total or 0
        if installments < 1:
            return amount

        total = to_decimal(tx.installment_total_amount)
        if total <= 0:
            total = abs(amount)
        if abs(amount) < total * Decimal("0.99"):
            return amount

        per_payment = round_money(total / installments)
        return per_payment if amount >= 0 else -per_payment

    @staticmethod
    def display_date(tx: Transaction) -> date:
        """Date of the current installment (first payment date otherwise)."""
        current = tx.installment_current or 0
        total = tx.installment_total or 0
        if current >= 1 and total >= 1:
            return add_months(tx.date, current - 1)
        return tx.date

    def business_vat_rate(self, business_id: str) -> Decimal:
        business = self.db.get(Business, business_id)
        if business and business.vat_rate is not None:
            return to_decimal(business.vat_rate)
        return DEFAULT_VAT_RATE

    def _resolve_vat(
        self,
        business_id: str,
        amount: Any,
        vat_amount: Any = None,
        vat_rate: Any = None,
        is_vat_included: bool = True,
    ) -> tuple[Optional[Decimal], Decimal]:
        """Return (vat_amount, rate used). An explicit VAT amount wins."""
        rate = to_decimal(vat_rate) if vat_rate is not None else self.business_vat_rate(business_id)
        if vat_amount is not None:
            return round_money(vat_amount), rate
        return self.calculate_vat(amount, rate, is_vat_included), rate

    # ------------------------------------------------------------------
    # Ownership checks
    # ------------------------------------------------------------------

    def _check_refs(self, business_id: str, data: dict[str, Any]) -> None:
        refs = (
            ("account_id", Account, "Account not found"),
            ("category_id", Category, "Category not found"),
            ("client_id", Client, "Client not found"),
            ("project_id", Project, "Project not found"),
        )
        for field, model, message in refs:
            value = data.get(field)
            if not value:
                continue
            found = self.db.execute(
                select(model.id).where(model.id == value, model.business_id == business_id)
            ).first()
            if not found:
                raise NotFoundError(message)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def get(self, business_id: str, transaction_id: str) -> Transaction:
        tx = self.db.execute(
            select(Transaction)
            .options(
                joinedload(Transaction.account),
                joinedload(Transaction.category),
                joinedload(Transaction.client),
                joinedload(Transaction.project),
            )
            .where(Transaction.id == transaction_id, Transaction.business_id == business_id)
        ).unique().scalar_one_or_none()
        if not tx:
            raise NotFoundError("Transaction not found")
        return tx

    def create(self, business_id: str, data: dict[str, Any]) -> Transaction:
        """Create a transaction, suggesting a category and computing VAT."""
        self._check_refs(business_id, data)

        category_id = data.get("category_id")
        if not category_id and data.get("description"):
            category_id = self.rules.suggest_category(business_id, data["description"])

        is_vat_included = data.get("is_vat_included", True)
        vat_amount, rate = self._resolve_vat(
            business_id,
            data["amount"],
            vat_amount=data.get("vat_amount"),
            vat_rate=data.get("vat_rate"),
            is_vat_included=is_vat_included,
        )

        tx = Transaction(
            business_id=business_id,
            account_id=data["account_id"],
            category_id=category_id,
            client_id=data.get("client_id"),
            project_id=data.get("project_id"),
            date=data["date"],
            description=data["description"],
            amount=round_money(data["amount"]),
            currency=data.get("currency") or "ILS",
            vat_amount=vat_amount,
            vat_rate=rate,
            is_vat_included=is_vat_included,
            is_tax_deductible=data.get("is_tax_deductible", True),
            deduction_rate=data.get("deduction_rate") if data.get("deduction_rate") is not None else Decimal("100"),
            is_recurring=data.get("is_recurring", False),
            installment_current=data.get("installment_current"),
            installment_total=data.get("installment_total"),
            installment_total_amount=data.get("installment_total_amount"),
            notes=data.get("notes"),
        )
        self.db.add(tx)
        self.db.commit()
        return self.get(business_id, tx.id)

    def list_transactions(
        self,
        business_id: str,
        page: int = 1,
        limit: int = 20,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
        client_id: Optional[str] = None,
        project_id: Optional[str] = None,
        type: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        search: Optional[str] = None,
    ) -> dict[str, Any]:
        """Paginated, filtered listing ordered by date desc."""
        page = max(1, page)
        limit = min(100, max(1, limit))

        conditions = [Transaction.business_id == business_id]
        if account_id:
            conditions.append(Transaction.account_id == account_id)
        if category_id:
            conditions.append(Transaction.category_id == category_id)
        if client_id:
            conditions.append(Transaction.client_id == client_id)
        if project_id:
            conditions.append(Transaction.project_id == project_id)
        if type == "income":
            conditions.append(Transaction.amount > 0)
        elif type == "expense":
            conditions.append(Transaction.amount < 0)
        if date_from:
            conditions.append(Transaction.date >= date_from)
        if date_to:
            conditions.append(Transaction.date <= date_to)

        if search and search.strip():
            conditions.append(self._search_condition(search.strip()))

        base = (
            select(Transaction)
            .join(Account, Transaction.account_id == Account.id)
            .outerjoin(Client, Transaction.client_id == Client.id)
            .outerjoin(Project, Transaction.project_id == Project.id)
            .where(and_(*conditions))
        )

        total = self.db.execute(select(func.count()).select_from(base.subquery())).scalar() or 0

        query = (
            base.options(
                joinedload(Transaction.account),
                joinedload(Transaction.category),
                joinedload(Transaction.client),
                joinedload(Transaction.project),
            )
            .order_by(Transaction.date.desc(), Transaction.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        items = list(self.db.execute(query).unique().scalars().all())

        return {
            "items": items,
            "total": total,
            "page": page,
            "limit": limit,
            "pages": (total + limit - 1) // limit if total > 0 else 0,
        }

    @staticmethod
    def _search_condition(term: str):
        """OR condition over text fields, exact amount and exact day."""
        like = f"%{term}%"
        options = [
            Transaction.description.ilike(like),
            Account.name.ilike(like),
            Client.name.ilike(like),
            Project.name.ilike(like),
        ]

        numeric = term.replace(",", "")
        try:
            value = Decimal(numeric)
        except ArithmeticError:
            value = None
        if value is not None and value.is_finite():
            options.append(Transaction.amount == value)
            options.append(Transaction.amount == -value)

        day = parse_search_date(term)
        if day is not None:
            options.append(Transaction.date == day)

        return or_(*options)

    def update(self, business_id: str, transaction_id: str, data: dict[str, Any]) -> Transaction:
        """
        Update a transaction.

        A changed amount recalculates VAT unless vat_amount is given. A new
        category teaches the rule engine.
        """
        tx = self.get(business_id, transaction_id)
        self._check_refs(business_id, data)

        if "account_id" in data and not data["account_id"]:
            raise BusinessRuleError("Transaction must belong to an account")

        vat_touched = any(k in data for k in ("amount", "vat_rate", "is_vat_included"))
        for field, value in data.items():
            if field == "amount" and value is not None:
                value = round_money(value)
            setattr(tx, field, value)

        if "vat_amount" not in data and vat_touched:
            tx.vat_amount, tx.vat_rate = self._resolve_vat(
                business_id,
                tx.amount,
                vat_rate=tx.vat_rate,
                is_vat_included=tx.is_vat_included,
            )

        if data.get("category_id"):
            self.rules.learn_from_correction(business_id, tx.description, data["category_id"])

        self.db.commit()
        return self.get(business_id, tx.id)

    def update_category(self, business_id: str, transaction_id: str, category_id: Optional[str]) -> Transaction:
        tx = self.get(business_id, transaction_id)
        self._check_refs(business_id, {"category_id": category_id})
        tx.category_id = category_id
        if category_id:
            self.rules.learn_from_correction(business_id, tx.description, category_id)
        self.db.commit()
        return self.get(business_id, tx.id)

    def delete(self, business_id: str, transaction_id: str) -> None:
        tx = self.get(business_id, transaction_id)
        self.db.delete(tx)
        self.db.commit()

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def _rows(self, business_id: str, ids: list[str]) -> list[Transaction]:
        if not ids:
            return []
        return list(
            self.db.execute(
                select(Transaction).where(Transaction.id.in_(ids), Transaction.business_id == business_id)
            ).scalars().all()
        )

    def bulk_delete(self, business_id: str, ids: list[str]) -> int:
        rows = self._rows(business_id, ids)
        for tx in rows:
            self.db.delete(tx)
        self.db.commit()
        logger.info("Bulk deleted transactions", business_id=business_id, count=len(rows))
        return len(rows)

    def bulk_update(self, business_id: str, ids: list[str], updates: dict[str, Any]) -> int:
        """Apply category/account/date/description to many rows at once."""
        allowed = {k: v for k, v in updates.items() if k in ("category_id", "account_id", "date", "description")}
        if "account_id" in allowed and not allowed["account_id"]:
            allowed.pop("account_id")
        if not allowed:
            return 0
        self._check_refs(business_id, allowed)

        rows = self._rows(business_id, ids)
        for tx in rows:
            for field, value in allowed.items():
                setattr(tx, field, value)
            if allowed.get("category_id"):
                self.rules.learn_from_correction(business_id, tx.description, allowed["category_id"])

        self.db.commit()
        logger.info("Bulk updated transactions", business_id=business_id, count=len(rows), fields=sorted(allowed))
        return len(rows)

    def bulk_flip_sign(self, business_id: str, ids: list[str]) -> int:
        """Negate amount and VAT of the given rows (income <-> expense)."""
        rows = self._rows(business_id, ids)
        for tx in rows:
            tx.amount = -to_decimal(tx.amount)
            if tx.vat_amount is not None:
                tx.vat_amount = -to_decimal(tx.vat_amount)
        self.db.commit()
        logger.info("Flipped transaction signs", business_id=business_id, count=len(rows))
        return len(rows)

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def create_many(self, business_id: str, account_id: str, items: list[dict[str, Any]]) -> list[Transaction]:
        """
        Import parsed statement rows into an account.

        Each item has date, description, amount and optionally category_slug,
        total_amount, installment_current and installment_total. Slugs resolve
        through the known-slug table; missing categories are created.
        """
        self._check_refs(business_id, {"account_id": account_id})
        if not account_id:
            raise BusinessRuleError("Account is required for import")

        slug_cache: dict[str, str] = {}
        created = []
        for item in items:
            slug = (item.get("category_slug") or "").strip()
            amount = to_decimal(item["amount"])

            if slug:
                if slug not in slug_cache:
                    slug_cache[slug] = self.categories.find_or_create_by_slug(business_id, slug).id
                category_id = slug_cache[slug]
            else:
                category_id = self.rules.suggest_category(business_id, item["description"])

            tx = Transaction(
                business_id=business_id,
                account_id=account_id,
                category_id=category_id,
                date=item["date"],
                description=item["description"],
                amount=round_money(amount),
                currency="ILS",
                installment_total_amount=item.get("total_amount"),
                installment_current=item.get("installment_current"),
                installment_total=item.get("installment_total"),
                is_recurring=slug == "salary" and amount > ZERO,
            )
            self.db.add(tx)
            created.append(tx)

        self.db.commit()
        logger.info("Imported transactions", business_id=business_id, account_id=account_id, count=len(created))
        return created
