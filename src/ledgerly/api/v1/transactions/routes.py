"""Transaction routes."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.api.v1.rules.schemas import SuggestCategoryRequest, SuggestCategoryResponse
from ledgerly.domain.services.rule_service import RuleService
from ledgerly.domain.services.transaction_service import TransactionService
from ledgerly.infrastructure.database.finance import Transaction
from ledgerly.infrastructure.database.models import User

from .schemas import (
    BulkIdsRequest,
    BulkResult,
    BulkUpdateRequest,
    CategoryUpdateRequest,
    ImportRequest,
    ImportResponse,
    TransactionCreate,
    TransactionListResponse,
    TransactionResponse,
    TransactionUpdate,
)

router = APIRouter(prefix="/transactions", tags=["Transactions"])


def build_transaction_response(tx: Transaction) -> TransactionResponse:
    """Flatten relations and apply the installment display rules."""
    return TransactionResponse(
        id=tx.id,
        account_id=tx.account_id,
        account_name=tx.account.name if tx.account else None,
        category_id=tx.category_id,
        category_name=tx.category.name if tx.category else None,
        category_slug=tx.category.slug if tx.category else None,
        client_id=tx.client_id,
        client_name=tx.client.name if tx.client else None,
        project_id=tx.project_id,
        project_name=tx.project.name if tx.project else None,
        date=tx.date,
        display_date=TransactionService.display_date(tx),
        first_payment_date=tx.date,
        description=tx.description,
        amount=tx.amount,
        display_amount=TransactionService.display_amount(tx),
        currency=tx.currency,
        vat_amount=tx.vat_amount,
        vat_rate=tx.vat_rate,
        is_vat_included=tx.is_vat_included,
        is_tax_deductible=tx.is_tax_deductible,
        deduction_rate=tx.deduction_rate,
        is_recurring=tx.is_recurring,
        installment_current=tx.installment_current,
        installment_total=tx.installment_total,
        installment_total_amount=tx.installment_total_amount,
        notes=tx.notes,
        created_at=tx.created_at,
    )


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Page size"),
    account_id: Optional[str] = Query(None),
    category_id: Optional[str] = Query(None),
    client_id: Optional[str] = Query(None),
    project_id: Optional[str] = Query(None),
    type: Optional[str] = Query(None, pattern="^(income|expense)$"),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    search: Optional[str] = Query(None, description="Text, amount or date (YYYY-MM-DD, DD.MM.YYYY, DD/MM/YYYY)"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """
    List transactions with pagination and filters.

    Ordered by date, newest first.
    """
    result = TransactionService(db).list_transactions(
        current_user.business_id,
        page=page,
        limit=limit,
        account_id=account_id,
        category_id=category_id,
        client_id=client_id,
        project_id=project_id,
        type=type,
        date_from=date_from,
        date_to=date_to,
        search=search,
    )
    return TransactionListResponse(
        items=[build_transaction_response(tx) for tx in result["items"]],
        total=result["total"],
        page=result["page"],
        limit=result["limit"],
        pages=result["pages"],
    )


@router.post("/suggest-category", response_model=SuggestCategoryResponse)
def suggest_category(
    data: SuggestCategoryRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Suggest a category for a description using the learned rules."""
    category_id = RuleService(db).suggest_category(current_user.business_id, data.description)
    return SuggestCategoryResponse(category_id=category_id)


@router.post("/bulk-delete", response_model=BulkResult)
def bulk_delete(
    data: BulkIdsRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return BulkResult(count=TransactionService(db).bulk_delete(current_user.business_id, data.ids))


@router.post("/bulk-update", response_model=BulkResult)
def bulk_update(
    data: BulkUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Set category, account, date or description on many transactions."""
    updates = data.model_dump(exclude_unset=True, exclude={"ids"})
    return BulkResult(count=TransactionService(db).bulk_update(current_user.business_id, data.ids, updates))


@router.post("/bulk-flip-sign", response_model=BulkResult)
def bulk_flip_sign(
    data: BulkIdsRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Turn income into expense and vice versa."""
    return BulkResult(count=TransactionService(db).bulk_flip_sign(current_user.business_id, data.ids))


@router.post("/import", response_model=ImportResponse, status_code=status.HTTP_201_CREATED)
def import_transactions(
    data: ImportRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Import parsed statement rows into an account."""
    service = TransactionService(db)
    created = service.create_many(
        current_user.business_id,
        data.account_id,
        [item.model_dump() for item in data.transactions],
    )
    items = [build_transaction_response(service.get(current_user.business_id, tx.id)) for tx in created]
    return ImportResponse(imported=len(items), items=items)


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    tx = TransactionService(db).get(current_user.business_id, transaction_id)
    return build_transaction_response(tx)


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def create_transaction(
    data: TransactionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Create a transaction. VAT and category are filled in when omitted."""
    tx = TransactionService(db).create(current_user.business_id, data.model_dump())
    return build_transaction_response(tx)


@router.put("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str,
    data: TransactionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    tx = TransactionService(db).update(
        current_user.business_id, transaction_id, data.model_dump(exclude_unset=True)
    )
    return build_transaction_response(tx)


@router.patch("/{transaction_id}/category", response_model=TransactionResponse)
def update_transaction_category(
    transaction_id: str,
    data: CategoryUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Recategorize a transaction and learn a rule from it."""
    tx = TransactionService(db).update_category(current_user.business_id, transaction_id, data.category_id)
    return build_transaction_response(tx)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    TransactionService(db).delete(current_user.business_id, transaction_id)
    return None
