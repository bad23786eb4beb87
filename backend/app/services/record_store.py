from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Type

from sqlalchemy import Date, select
from sqlalchemy.orm import Session

from backend.app.db import Base
from backend.app.intake.pipeline import RejectedRow
from backend.app.models import InsurerBillingRecord, Issuance, OcrRecord, UploadError

MODEL_BY_KIND: Dict[str, Type[Base]] = {
    "issuance": Issuance,
    "insurer_billing": InsurerBillingRecord,
    "ocr": OcrRecord,
}


def model_for_kind(kind: str) -> Type[Base]:
    model = MODEL_BY_KIND.get(kind)
    if model is None:
        raise KeyError(f"unknown record kind '{kind}'")
    return model


def _date_columns(model: Type[Base]) -> set:
    return {c.key for c in model.__table__.columns if isinstance(c.type, Date)}


def _coerce_row(values: Dict[str, Any], date_columns: set) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in values.items():
        if key in date_columns and isinstance(value, str):
            # pipeline emits canonical YYYY-MM-DD for DATE columns
            value = date.fromisoformat(value)
        out[key] = value
    return out


def insert_batch(
    db: Session,
    kind: str,
    rows: Sequence[Dict[str, Any]],
    *,
    company_id: str,
    workflow: Optional[str],
) -> int:
    """
    Insert importable rows as one batch. Flushes so the store's own
    constraints are checked here; the caller owns the transaction.
    """
    if not rows:
        return 0
    model = model_for_kind(kind)
    date_columns = _date_columns(model)
    db.add_all(
        [
            model(company_id=company_id, workflow=workflow, **_coerce_row(values, date_columns))
            for values in rows
        ]
    )
    db.flush()
    return len(rows)


def insert_rejected(
    db: Session,
    rejected: Iterable[RejectedRow],
    *,
    company_id: str,
    workflow: Optional[str],
    source: str,
    file_name: Optional[str],
) -> int:
    items = [
        UploadError(
            company_id=company_id,
            workflow=workflow,
            source=source,
            rejection_reason=r.rejection_reason,
            raw_data=dict(r.raw_data),
            file_name=file_name,
        )
        for r in rejected
    ]
    if not items:
        return 0
    db.add_all(items)
    db.flush()
    return len(items)


def existing_ocr_pairs(
    db: Session,
    *,
    company_id: str,
    workflow: Optional[str],
) -> List[Tuple[Optional[str], Optional[str]]]:
    """(vehicle_no, date_issue) of every persisted OCR row in this company/workflow."""
    query = select(OcrRecord.vehicle_no, OcrRecord.date_issue).where(OcrRecord.company_id == company_id)
    if workflow is None:
        query = query.where(OcrRecord.workflow.is_(None))
    else:
        query = query.where(OcrRecord.workflow == workflow)
    return [(vehicle, issued) for vehicle, issued in db.execute(query).all()]


def fetch_records(
    db: Session,
    kind: str,
    *,
    company_id: str,
    workflow: Optional[str],
) -> List[Base]:
    model = model_for_kind(kind)
    query = select(model).where(model.company_id == company_id)
    if workflow is not None:
        query = query.where(model.workflow == workflow)
    return list(db.execute(query.order_by(model.created_at.asc(), model.id.asc())).scalars().all())
