from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backend.app.api.deps import workflow_company
from backend.app.db import get_db
from backend.app.models import Company
from backend.app.services import audit_service

router = APIRouter(prefix="/api/audit", tags=["audit"])

TimeFilter = Literal["all", "7d", "30d"]


class AuditLogOut(BaseModel):
    id: str
    company_id: str
    workflow: Optional[str] = None
    event_type: str
    actor: str
    reason: Optional[str] = None
    message: Optional[str] = None
    before_state: Optional[Dict[str, Any]] = None
    after_state: Optional[Dict[str, Any]] = None
    created_at: datetime


class AuditLogPageOut(BaseModel):
    items: List[AuditLogOut]
    page: int
    page_size: int
    total_items: int
    total_pages: int
    first_item: int
    last_item: int


@router.get("/{workflow}", response_model=AuditLogPageOut)
def list_audit_events(
    workflow: str,
    time_filter: TimeFilter = Query("all"),
    q: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    company: Company = Depends(workflow_company),
    db: Session = Depends(get_db),
):
    result = audit_service.list_audit_events(
        db,
        company.id,
        workflow=workflow.strip().lower(),
        time_filter=time_filter,
        search=q,
        page=page,
    )
    return AuditLogPageOut(
        items=[AuditLogOut(**item) for item in result["items"]],
        page=result["page"],
        page_size=result["page_size"],
        total_items=result["total_items"],
        total_pages=result["total_pages"],
        first_item=result["first_item"],
        last_item=result["last_item"],
    )
