from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.models import AuditLog, Company
from backend.app.services.pagination import AUDIT_PAGE_SIZE, paginate

TIME_FILTERS = {
    "all": None,
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}


def require_company(db: Session, company_id: str) -> Company:
    company = db.get(Company, company_id)
    if not company:
        raise HTTPException(404, "company not found")
    return company


def log_audit_event(
    db: Session,
    *,
    company_id: str,
    event_type: str,
    actor: str,
    workflow: Optional[str] = None,
    reason: Optional[str] = None,
    before: Optional[Dict[str, Any]] = None,
    after: Optional[Dict[str, Any]] = None,
    message: Optional[str] = None,
) -> AuditLog:
    row = AuditLog(
        company_id=company_id,
        workflow=workflow,
        event_type=event_type,
        actor=actor,
        reason=reason,
        before_state=before,
        after_state=after,
        message=message,
    )
    db.add(row)
    db.flush()
    return row


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _matches(row: AuditLog, needle: str) -> bool:
    haystack = (row.event_type, row.actor, row.reason or "", row.message or "")
    return any(needle in value.lower() for value in haystack)


def list_audit_events(
    db: Session,
    company_id: str,
    *,
    workflow: Optional[str] = None,
    time_filter: str = "all",
    search: Optional[str] = None,
    page: int = 1,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    require_company(db, company_id)
    if time_filter not in TIME_FILTERS:
        raise HTTPException(400, f"invalid time filter '{time_filter}'. Choose from: {list(TIME_FILTERS)}")

    query = select(AuditLog).where(AuditLog.company_id == company_id)
    if workflow:
        query = query.where(AuditLog.workflow == workflow)

    window = TIME_FILTERS[time_filter]
    if window is not None:
        # created_at is stored naive UTC on sqlite
        since = _as_naive_utc(now or datetime.now(timezone.utc)) - window
        query = query.where(AuditLog.created_at >= since)

    rows = (
        db.execute(query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()))
        .scalars()
        .all()
    )

    needle = (search or "").strip().lower()
    if needle:
        rows = [row for row in rows if _matches(row, needle)]

    result = paginate(rows, page, AUDIT_PAGE_SIZE)
    result["items"] = [
        {
            "id": row.id,
            "company_id": row.company_id,
            "workflow": row.workflow,
            "event_type": row.event_type,
            "actor": row.actor,
            "reason": row.reason,
            "message": row.message,
            "before_state": row.before_state,
            "after_state": row.after_state,
            "created_at": row.created_at,
        }
        for row in result["items"]
    ]
    return result
