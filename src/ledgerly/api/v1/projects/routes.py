"""Project routes."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ledgerly.api.dependencies import get_current_active_user, get_db
from ledgerly.domain.services.client_service import ClientService
from ledgerly.infrastructure.database.models import User

from .schemas import PROJECT_STATUS_PATTERN, ProjectCreate, ProjectResponse, ProjectUpdate

router = APIRouter(prefix="/projects", tags=["Projects"])


def build_project_response(row: dict[str, Any]) -> ProjectResponse:
    project = row["project"]
    return ProjectResponse(
        id=project.id,
        client_id=project.client_id,
        client_name=project.client.name if project.client else None,
        name=project.name,
        description=project.description,
        status=project.status,
        budget=project.budget,
        hourly_rate=project.hourly_rate,
        start_date=project.start_date,
        end_date=project.end_date,
        is_active=project.is_active,
        created_at=project.created_at,
        transaction_income=row["transaction_income"],
        transaction_expenses=row["transaction_expenses"],
        invoice_revenue=row["invoice_revenue"],
        total_revenue=row["total_revenue"],
        budget_used=row["budget_used"],
        budget_remaining=row["budget_remaining"],
        budget_percent_used=row["budget_percent_used"],
    )


@router.get("", response_model=list[ProjectResponse])
def list_projects(
    client_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None, pattern=PROJECT_STATUS_PATTERN),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """List active projects with budget tracking."""
    rows = ClientService(db).list_projects(current_user.business_id, client_id=client_id, status=status)
    return [build_project_response(row) for row in rows]


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return build_project_response(ClientService(db).get_project_detail(current_user.business_id, project_id))


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    data: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Create a project for a client of the business."""
    service = ClientService(db)
    project = service.create_project(current_user.business_id, data.model_dump())
    return build_project_response(service.get_project_detail(current_user.business_id, project.id))


@router.put("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: str,
    data: ProjectUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    service = ClientService(db)
    service.update_project(current_user.business_id, project_id, data.model_dump(exclude_unset=True))
    return build_project_response(service.get_project_detail(current_user.business_id, project_id))


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    ClientService(db).delete_project(current_user.business_id, project_id)
    return None
