# backend/app/api/routes/records.py
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backend.app.api.deps import require_kind, workflow_company
from backend.app.db import get_db
from backend.app.models import Company
from backend.app.services import export_service, record_view_service
from backend.app.services.record_view_service import ViewQuery

router = APIRouter(prefix="/api/records", tags=["records"])

Preset = Literal["all_time", "this_month", "last_month", "custom"]
SortDirection = Literal["asc", "desc"]


# -------------------------
# Schemas
# -------------------------

class ViewQueryOut(BaseModel):
    preset: Preset
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    insurer: Optional[str] = None
    partner: Optional[str] = None
    search: str = ""
    sort: SortDirection
    page: int


class IssuanceStatsOut(BaseModel):
    total: int
    before_6pm: int
    after_6pm: int


class RecordPageOut(BaseModel):
    kind: str
    items: List[Dict[str, Any]]
    page: int
    page_size: int
    total_items: int
    total_pages: int
    first_item: int
    last_item: int
    filter_label: str
    options: Dict[str, List[str]]
    query: ViewQueryOut
    stats: Optional[IssuanceStatsOut] = None
    version: int


def _view_query(
    preset: Preset = Query("this_month"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    insurer: Optional[str] = Query(None),
    partner: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    sort: SortDirection = Query("asc"),
    page: int = Query(1, ge=1),
) -> ViewQuery:
    if preset == "custom" and date_from and date_to and date_to < date_from:
        raise HTTPException(status_code=400, detail="date_to must not be before date_from")
    return ViewQuery(
        preset=preset,
        date_from=date_from,
        date_to=date_to,
        insurer=insurer,
        partner=partner,
        search=q or "",
        sort=sort,
        page=page,
    )


# -------------------------
# Routes
# -------------------------

@router.get("/{workflow}/{kind}", response_model=RecordPageOut)
def list_records(
    workflow: str,
    kind: str,
    query: ViewQuery = Depends(_view_query),
    company: Company = Depends(workflow_company),
    db: Session = Depends(get_db),
):
    record_kind = require_kind(kind)
    view = record_view_service.list_records(
        db,
        company_id=company.id,
        kind=record_kind,
        workflow=workflow.strip().lower(),
        query=query,
    )
    page = view["page"]
    effective: ViewQuery = view["query"]
    return RecordPageOut(
        kind=view["kind"],
        items=page["items"],
        page=page["page"],
        page_size=page["page_size"],
        total_items=page["total_items"],
        total_pages=page["total_pages"],
        first_item=page["first_item"],
        last_item=page["last_item"],
        filter_label=view["filter_label"],
        options=view["options"],
        query=ViewQueryOut(
            preset=effective.preset,
            date_from=effective.date_from,
            date_to=effective.date_to,
            insurer=effective.insurer,
            partner=effective.partner,
            search=effective.search,
            sort=effective.sort,
            page=effective.page,
        ),
        stats=IssuanceStatsOut(**view["stats"]) if view.get("stats") else None,
        version=view["version"],
    )


@router.get("/{workflow}/{kind}/export")
def export_records(
    workflow: str,
    kind: str,
    query: ViewQuery = Depends(_view_query),
    company: Company = Depends(workflow_company),
    db: Session = Depends(get_db),
):
    record_kind = require_kind(kind)
    export = export_service.export_records(
        db,
        company_id=company.id,
        kind=record_kind,
        workflow=workflow.strip().lower(),
        query=query,
    )
    return Response(
        content=export["content"],
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export["file_name"]}"'},
    )
