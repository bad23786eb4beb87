from __future__ import annotations

import csv
import io
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from backend.app.services import record_view_service
from backend.app.services.record_view_service import ViewQuery

ExportColumn = Tuple[str, str]  # (header label, record attribute)

EXPORT_COLUMNS: Dict[str, Tuple[ExportColumn, ...]] = {
    "issuance": (
        ("Purchased Date", "purchased_date"),
        ("Plate No.", "plate_no"),
        ("Customer", "customer"),
        ("Instant Quotation", "instant_quotation"),
        ("Insurer", "insurer"),
        ("Coverage", "coverage"),
        ("Time Lapsed", "time_lapsed"),
        ("Partner", "partner"),
    ),
    "insurer_billing": (
        ("Insurer", "insurer"),
        ("Issue Date", "issue_date"),
        ("Policy No.", "policy_no"),
        ("Name of Insured", "client_name"),
        ("Vehicle No.", "vehicle_no"),
        ("Status", "status"),
        ("Sum Insured (RM)", "sum_insured"),
        ("C/N No.", "cn_no"),
        ("Account No.", "account_no"),
        ("Coverage Type", "coverage_type"),
        ("Gross Premium (RM)", "gross_premium"),
        ("Service Tax (RM)", "service_tax"),
        ("Stamp (RM)", "stamp"),
        ("Premium Due (RM)", "premium_due"),
        ("Commission (RM)", "commission"),
        ("Nett Premium (RM)", "nett_premium"),
        ("Amount Payable (RM)", "amount_payable"),
        ("Transaction Date", "transaction_date"),
        ("Total Amount", "total_amount"),
    ),
    "ocr": (
        ("Date Issue", "date_issue"),
        ("Vehicle No", "vehicle_no"),
        ("Insured Name", "insured_name"),
        ("Insured IC No", "insured_ic_no"),
        ("Vehicle Make/Model", "vehicle_make_model"),
        ("Type of Cover", "type_of_cover"),
        ("Sum Insured", "sum_insured"),
        ("Premium", "premium"),
        ("NCD", "ncd"),
        ("Gross Premium", "gross_premium"),
        ("Service Tax", "service_tax"),
        ("Stamp Duty", "stamp_duty"),
        ("Total Amount Payable", "total_amount_payable_rounded"),
        ("Insurer", "insurer"),
        ("File Name", "file_name"),
    ),
}


def export_columns(kind: str) -> Tuple[ExportColumn, ...]:
    columns = EXPORT_COLUMNS.get(kind)
    if columns is None:
        raise KeyError(f"unknown record kind '{kind}'")
    return columns


def export_filename(kind: str, today: date) -> str:
    return f"{kind}_export_{today.isoformat()}.csv"


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_csv(records: Sequence[Mapping[str, Any]], columns: Sequence[ExportColumn]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow([label for label, _ in columns])
    for record in records:
        writer.writerow([_cell(record.get(attr)) for _, attr in columns])
    return buf.getvalue()


def export_records(
    db: Session,
    *,
    company_id: str,
    kind: str,
    workflow: Optional[str] = None,
    query: Optional[ViewQuery] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Serialize the current filtered + sorted view, every page of it."""
    now = now or datetime.now()
    view = record_view_service.list_records(
        db,
        company_id=company_id,
        kind=kind,
        workflow=workflow,
        query=query,
        now=now,
    )
    rows: List[Mapping[str, Any]] = view["rows"]
    return {
        "file_name": export_filename(kind, now.date()),
        "content": render_csv(rows, export_columns(kind)),
        "row_count": len(rows),
    }
