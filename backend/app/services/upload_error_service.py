from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.intake.kinds import RECORD_KINDS
from backend.app.models import UploadError
from backend.app.services.audit_service import require_company
from backend.app.services.pagination import PAGE_SIZE, paginate

MISSING = "—"

CLIENT_KEYS = ("name of insured", "client", "client_name")
VEHICLE_KEYS = ("vehicle no", "vehicle no.", "vehicle_no")
POLICY_KEYS = ("policy no.", "policy no", "policy_no")


def _norm_key(key: str) -> str:
    return " ".join(str(key).lower().split())


def _present(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def display_value(raw: Mapping[str, Any], *keys: str) -> str:
    """
    Best-effort column value out of a verbatim quarantined row.

    Exact header match (case/whitespace-insensitive) over `keys` in order,
    then any header containing one of the keys. "—" when nothing matches.
    """
    by_norm: Dict[str, Any] = {}
    for k, v in raw.items():
        by_norm.setdefault(_norm_key(k), v)

    for key in keys:
        value = by_norm.get(_norm_key(key))
        if _present(value):
            return str(value).strip()

    lowered = [k.lower() for k in keys]
    for k, v in raw.items():
        header = str(k).lower()
        if any(needle in header for needle in lowered) and _present(v):
            return str(v).strip()
    return MISSING


def _matches(row: UploadError, needle: str) -> bool:
    if needle in (row.source or "").lower():
        return True
    if needle in (row.rejection_reason or "").lower():
        return True
    if needle in (row.file_name or "").lower():
        return True
    raw = row.raw_data or {}
    return any(needle in str(v).lower() for v in raw.values() if v is not None)


def _serialize(row: UploadError) -> Dict[str, Any]:
    raw = row.raw_data or {}
    return {
        "id": row.id,
        "company_id": row.company_id,
        "workflow": row.workflow,
        "source": row.source,
        "rejection_reason": row.rejection_reason,
        "file_name": row.file_name,
        "raw_data": raw,
        "client_name": display_value(raw, *CLIENT_KEYS),
        "vehicle_no": display_value(raw, *VEHICLE_KEYS),
        "policy_no": display_value(raw, *POLICY_KEYS),
        "created_at": row.created_at,
    }


def list_upload_errors(
    db: Session,
    company_id: str,
    *,
    workflow: Optional[str] = None,
    source: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
) -> Dict[str, Any]:
    require_company(db, company_id)
    if source and source not in RECORD_KINDS:
        raise HTTPException(400, f"invalid source '{source}'. Choose from: {list(RECORD_KINDS)}")

    query = select(UploadError).where(UploadError.company_id == company_id)
    if workflow:
        query = query.where(UploadError.workflow == workflow)
    if source:
        query = query.where(UploadError.source == source)

    rows: List[UploadError] = list(
        db.execute(query.order_by(UploadError.created_at.desc(), UploadError.id.desc())).scalars().all()
    )

    needle = (search or "").strip().lower()
    if needle:
        rows = [row for row in rows if _matches(row, needle)]

    result = paginate(rows, page, PAGE_SIZE)
    result["items"] = [_serialize(row) for row in result["items"]]
    return result
