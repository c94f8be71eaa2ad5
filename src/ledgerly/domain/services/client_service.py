"""Client and project service."""

from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from ledgerly.core.exceptions import BusinessRuleError, NotFoundError
from ledgerly.core.logging import get_logger
from ledgerly.core.money import round_money, round_whole, to_decimal
from ledgerly.infrastructure.database.finance import (
    Client,
    Invoice,
    InvoiceStatus,
    Project,
    ProjectStatus,
    Transaction,
)

logger = get_logger(__name__)

PROJECT_STATUSES = {s.value for s in ProjectStatus}


class ClientService:
    """Service for clients and their projects."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    def _paid_revenue_by_client(self, business_id: str, client_ids: list[str]) -> dict[str, Decimal]:
        if not client_ids:
            return {}
        rows = self.db.execute(
            select(Invoice.client_id, func.coalesce(func.sum(Invoice.total), 0))
            .where(
                Invoice.business_id == business_id,
                Invoice.client_id.in_(client_ids),
                Invoice.status == InvoiceStatus.PAID.value,
            )
            .group_by(Invoice.client_id)
        ).all()
        return {client_id: round_money(total) for client_id, total in rows}

    def _count_by(self, model, column, business_id: str, ids: list[str]) -> dict[str, int]:
        if not ids:
            return {}
        rows = self.db.execute(
            select(column, func.count(model.id))
            .where(model.business_id == business_id, column.in_(ids))
            .group_by(column)
        ).all()
        return {key: count for key, count in rows}

    def list_clients(self, business_id: str) -> list[dict[str, Any]]:
        """Active clients ordered by name, with project/invoice counts and paid revenue."""
        clients = list(
            self.db.execute(
                select(Client)
                .where(Client.business_id == business_id, Client.is_active.is_(True))
                .order_by(Client.name)
            ).scalars().all()
        )
        ids = [c.id for c in clients]
        revenue = self._paid_revenue_by_client(business_id, ids)
        projects = self._count_by(Project, Project.client_id, business_id, ids)
        invoices = self._count_by(Invoice, Invoice.client_id, business_id, ids)

        return [
            {
                "client": client,
                "project_count": projects.get(client.id, 0),
                "invoice_count": invoices.get(client.id, 0),
                "total_revenue": revenue.get(client.id, Decimal("0.00")),
            }
            for client in clients
        ]

    def get_client(self, business_id: str, client_id: str) -> Client:
        client = self.db.execute(
            select(Client).where(Client.id == client_id, Client.business_id == business_id)
        ).scalar_one_or_none()
        if not client:
            raise NotFoundError("Client not found")
        return client

    def get_client_detail(self, business_id: str, client_id: str) -> dict[str, Any]:
        """Client with active projects, last invoices and revenue totals."""
        client = self.get_client(business_id, client_id)

        projects = list(
            self.db.execute(
                select(Project)
                .where(Project.client_id == client.id, Project.is_active.is_(True))
                .order_by(Project.updated_at.desc())
            ).scalars().all()
        )
        invoices = list(
            self.db.execute(
                select(Invoice)
                .where(Invoice.client_id == client.id, Invoice.business_id == business_id)
                .order_by(Invoice.issue_date.desc())
                .limit(10)
            ).scalars().all()
        )
        transaction_revenue = self.db.execute(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.client_id == client.id,
                Transaction.business_id == business_id,
                Transaction.amount > 0,
            )
        ).scalar()

        return {
            "client": client,
            "projects": projects,
            "invoices": invoices,
            "total_revenue": self._paid_revenue_by_client(business_id, [client.id]).get(client.id, Decimal("0.00")),
            "total_transaction_revenue": round_money(transaction_revenue),
        }

    def create_client(self, business_id: str, data: dict[str, Any]) -> Client:
        client = Client(business_id=business_id, **data)
        self.db.add(client)
        self.db.commit()
        self.db.refresh(client)
        return client

    def update_client(self, business_id: str, client_id: str, data: dict[str, Any]) -> Client:
        client = self.get_client(business_id, client_id)
        for field, value in data.items():
            setattr(client, field, value)
        self.db.commit()
        self.db.refresh(client)
        return client

    def delete_client(self, business_id: str, client_id: str) -> None:
        client = self.get_client(business_id, client_id)
        client.is_active = False
        self.db.commit()

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def _project_stats(self, business_id: str, project: Project) -> dict[str, Any]:
        """Budget tracking: income/expenses from transactions, revenue from paid invoices."""
        income = self.db.execute(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.project_id == project.id,
                Transaction.business_id == business_id,
                Transaction.amount > 0,
            )
        ).scalar()
        expenses = self.db.execute(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.project_id == project.id,
                Transaction.business_id == business_id,
                Transaction.amount < 0,
            )
        ).scalar()
        invoice_revenue = self.db.execute(
            select(func.coalesce(func.sum(Invoice.total), 0)).where(
                Invoice.project_id == project.id,
                Invoice.business_id == business_id,
                Invoice.status == InvoiceStatus.PAID.value,
            )
        ).scalar()

        transaction_income = round_money(income)
        transaction_expenses = round_money(abs(to_decimal(expenses)))
        invoice_revenue = round_money(invoice_revenue)
        budget = to_decimal(project.budget) if project.budget is not None else None

        return {
            "transaction_income": transaction_income,
            "transaction_expenses": transaction_expenses,
            "invoice_revenue": invoice_revenue,
            "total_revenue": invoice_revenue or transaction_income,
            "budget_used": transaction_expenses,
            "budget_remaining": round_money(budget - transaction_expenses) if budget is not None else None,
            "budget_percent_used": (
                int(round_whole(transaction_expenses / budget * 100)) if budget is not None and budget > 0 else None
            ),
        }

    def list_projects(
        self,
        business_id: str,
        client_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        query = (
            select(Project)
            .options(joinedload(Project.client))
            .where(Project.business_id == business_id, Project.is_active.is_(True))
        )
        if client_id:
            query = query.where(Project.client_id == client_id)
        if status:
            query = query.where(Project.status == status)
        query = query.order_by(Project.updated_at.desc())

        projects = list(self.db.execute(query).unique().scalars().all())
        return [{"project": p, **self._project_stats(business_id, p)} for p in projects]

    def get_project(self, business_id: str, project_id: str) -> Project:
        project = self.db.execute(
            select(Project)
            .options(joinedload(Project.client))
            .where(Project.id == project_id, Project.business_id == business_id)
        ).unique().scalar_one_or_none()
        if not project:
            raise NotFoundError("Project not found")
        return project

    def get_project_detail(self, business_id: str, project_id: str) -> dict[str, Any]:
        project = self.get_project(business_id, project_id)
        return {"project": project, **self._project_stats(business_id, project)}

    def _validate_project(self, business_id: str, data: dict[str, Any]) -> None:
        if data.get("client_id"):
            self.get_client(business_id, data["client_id"])
        status = data.get("status")
        if status is not None and status not in PROJECT_STATUSES:
            raise BusinessRuleError(f"Invalid project status: {status}")
        start, end = data.get("start_date"), data.get("end_date")
        if start and end and end < start:
            raise BusinessRuleError("Project end date must be after start date")

    def create_project(self, business_id: str, data: dict[str, Any]) -> Project:
        """Create a project; the client must belong to the business."""
        if not data.get("client_id"):
            raise BusinessRuleError("Project requires a client")
        self._validate_project(business_id, data)
        project = Project(business_id=business_id, **data)
        self.db.add(project)
        self.db.commit()
        return self.get_project(business_id, project.id)

    def update_project(self, business_id: str, project_id: str, data: dict[str, Any]) -> Project:
        project = self.get_project(business_id, project_id)
        if "client_id" in data and not data["client_id"]:
            raise BusinessRuleError("Project requires a client")
        self._validate_project(business_id, data)
        for field, value in data.items():
            setattr(project, field, value)
        self.db.commit()
        return self.get_project(business_id, project.id)

    def delete_project(self, business_id: str, project_id: str) -> None:
        project = self.get_project(business_id, project_id)
        project.is_active = False
        self.db.commit()
