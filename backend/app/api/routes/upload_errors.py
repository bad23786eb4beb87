from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backend.app.api.deps import workflow_company
from backend.app.db import get_db
from backend.app.models import Company
from backend.app.services import upload_error_service

router = APIRouter(prefix="/api/upload-errors", tags=["upload-errors"])


class UploadErrorOut(BaseModel):
    id: str
    company_id: str
    workflow: Optional[str] = None
    source: str
    rejection_reason: str
    file_name: Optional[str] = None
    raw_data: Dict[str, Any]
    client_name: str
    vehicle_no: str
    policy_no: str
    created_at: datetime


class UploadErrorPageOut(BaseModel):
    items: List[UploadErrorOut]
    page: int
    page_size: int
    total_items: int
    total_pages: int
    first_item: int
    last_item: int


@router.get("/{workflow}", response_model=UploadErrorPageOut)
def list_upload_errors(
    workflow: str,
    source: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    company: Company = Depends(workflow_company),
    db: Session = Depends(get_db),
):
    result = upload_error_service.list_upload_errors(
        db,
        company.id,
        workflow=workflow.strip().lower(),
        source=source,
        search=q,
        page=page,
    )
    return UploadErrorPageOut(
        items=[UploadErrorOut(**item) for item in result["items"]],
        page=result["page"],
        page_size=result["page_size"],
        total_items=result["total_items"],
        total_pages=result["total_pages"],
        first_item=result["first_item"],
        last_item=result["last_item"],
    )
