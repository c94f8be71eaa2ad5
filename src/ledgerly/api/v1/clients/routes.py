"""Client routes."""

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.domain.services.client_service import ClientService
from ledgerly.infrastructure.database.models import User

from .schemas import (
    ClientCreate,
    ClientDetailResponse,
    ClientInvoiceBrief,
    ClientListItem,
    ClientProjectBrief,
    ClientResponse,
    ClientUpdate,
)

router = APIRouter(prefix="/clients", tags=["Clients"])


def build_client_detail(detail: dict[str, Any]) -> ClientDetailResponse:
    base = ClientResponse.model_validate(detail["client"]).model_dump()
    return ClientDetailResponse(
        **base,
        projects=[ClientProjectBrief.model_validate(p) for p in detail["projects"]],
        invoices=[ClientInvoiceBrief.model_validate(i) for i in detail["invoices"]],
        total_revenue=detail["total_revenue"],
        total_transaction_revenue=detail["total_transaction_revenue"],
    )


@router.get("", response_model=list[ClientListItem])
def list_clients(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """List active clients with project/invoice counts and paid revenue."""
    rows = ClientService(db).list_clients(current_user.business_id)
    return [
        ClientListItem(
            **ClientResponse.model_validate(row["client"]).model_dump(),
            project_count=row["project_count"],
            invoice_count=row["invoice_count"],
            total_revenue=row["total_revenue"],
        )
        for row in rows
    ]


@router.get("/{client_id}", response_model=ClientDetailResponse)
def get_client(
    client_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return build_client_detail(ClientService(db).get_client_detail(current_user.business_id, client_id))


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
def create_client(
    data: ClientCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return ClientService(db).create_client(current_user.business_id, data.model_dump())


@router.put("/{client_id}", response_model=ClientResponse)
def update_client(
    client_id: str,
    data: ClientUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return ClientService(db).update_client(current_user.business_id, client_id, data.model_dump(exclude_unset=True))


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(
    client_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Deactivate a client (soft delete)."""
    ClientService(db).delete_client(current_user.business_id, client_id)
    return None
