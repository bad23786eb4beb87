"""
Record views - filter, search, sort and paginate imported records.

Responsibility:
- Turn the persisted rows of one (company, workflow, kind) into the page a
  table renders, plus the extras around it: insurer/partner options, the
  filter label and issuance time-of-day stats.

Design notes:
- Record sets are small (one workflow's imports), so filtering runs in
  Python over plain dicts rather than in SQL. Everything except
  list_records is pure and takes `now` explicitly.
- Order of operations: date window -> option lists -> categorical filters
  -> search -> sort -> paginate. Options come from the date-filtered rows
  so the dropdown never offers an insurer the window cannot show.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, fields, replace
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from backend.app.intake.normalize import parse_date, parse_purchased_datetime
from backend.app.services import record_store, view_cache
from backend.app.services.audit_service import require_company
from backend.app.services.pagination import PAGE_SIZE, paginate

Record = Dict[str, Any]

DATE_PRESETS = ("all_time", "this_month", "last_month", "custom")
SORT_DIRECTIONS = ("asc", "desc")
ALL = "All"

EPOCH = datetime(1970, 1, 1)
SIX_PM = 18


# -------------------------
# Query state
# -------------------------

@dataclass(frozen=True)
class ViewQuery:
    preset: str = "this_month"
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    insurer: Optional[str] = None
    partner: Optional[str] = None
    search: str = ""
    sort: str = "asc"
    page: int = 1

    def filter_key(self) -> Tuple[Any, ...]:
        """Every input that changes which rows are in the view."""
        return (
            self.preset,
            self.date_from,
            self.date_to,
            _selection(self.insurer),
            _selection(self.partner),
            (self.search or "").strip().lower(),
        )

    def update(self, **changes: Any) -> "ViewQuery":
        """
        Apply UI changes. Any filter or search change sends the view back to
        page 1; changing only the page (or the sort) keeps it.
        """
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            raise TypeError(f"unknown view fields: {sorted(unknown)}")
        updated = replace(self, **changes)
        if updated.filter_key() != self.filter_key():
            updated = replace(updated, page=1)
        return updated


def _selection(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    s = value.strip()
    if not s or s == ALL:
        return None
    return s


# -------------------------
# Per-kind view config
# -------------------------

def _as_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _to_datetime(value: Any, parser: Callable[[Optional[str]], Optional[datetime]] = parse_date) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return _as_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    parsed = parser(str(value))
    return _as_naive(parsed) if parsed is not None else None


def _issuance_date(record: Mapping[str, Any]) -> Optional[datetime]:
    return _to_datetime(record.get("purchased_date"), parse_purchased_datetime)


def _billing_date(record: Mapping[str, Any]) -> Optional[datetime]:
    return _to_datetime(record.get("issue_date")) or _to_datetime(record.get("transaction_date"))


def _ocr_date(record: Mapping[str, Any]) -> Optional[datetime]:
    return _to_datetime(record.get("date_issue"))


@dataclass(frozen=True)
class KindView:
    kind: str
    date_of: Callable[[Mapping[str, Any]], Optional[datetime]]
    search_fields: Tuple[str, ...]
    category_fields: Tuple[str, ...] = ("insurer",)


KIND_VIEWS: Dict[str, KindView] = {
    "issuance": KindView(
        kind="issuance",
        date_of=_issuance_date,
        search_fields=("plate_no", "customer", "instant_quotation", "insurer", "coverage", "partner"),
        category_fields=("insurer", "partner"),
    ),
    "insurer_billing": KindView(
        kind="insurer_billing",
        date_of=_billing_date,
        search_fields=(
            "policy_no",
            "client_name",
            "vehicle_no",
            "insurer",
            "cn_no",
            "account_no",
            "status",
            "coverage_type",
        ),
    ),
    "ocr": KindView(
        kind="ocr",
        date_of=_ocr_date,
        search_fields=(
            "vehicle_no",
            "insured_name",
            "insured_ic_no",
            "insurer",
            "vehicle_make_model",
            "type_of_cover",
            "file_name",
        ),
    ),
}


def kind_view(kind: str) -> KindView:
    view = KIND_VIEWS.get(kind)
    if view is None:
        raise KeyError(f"unknown record kind '{kind}'")
    return view


# -------------------------
# Date window
# -------------------------

def _month_bounds(year: int, month: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def resolve_date_window(
    preset: str,
    date_from: Optional[date],
    date_to: Optional[date],
    now: datetime,
) -> Optional[Tuple[date, date]]:
    """
    Inclusive (start, end) calendar dates, or None when the view is not
    date-restricted (all_time, or custom without a start date).
    """
    if preset not in DATE_PRESETS:
        raise ValueError(f"invalid date preset '{preset}'. Choose from: {list(DATE_PRESETS)}")
    if preset == "all_time":
        return None
    if preset == "custom":
        if date_from is None:
            return None
        return date_from, date_to or date_from

    today = now.date()
    if preset == "this_month":
        return _month_bounds(today.year, today.month)
    year, month = (today.year - 1, 12) if today.month == 1 else (today.year, today.month - 1)
    return _month_bounds(year, month)


def filter_by_date(
    records: Sequence[Record],
    date_of: Callable[[Mapping[str, Any]], Optional[datetime]],
    window: Optional[Tuple[date, date]],
) -> List[Record]:
    if window is None:
        return list(records)
    start, end = window
    out: List[Record] = []
    for record in records:
        when = date_of(record)
        # rows without a usable date only show up under "All time"
        if when is not None and start <= when.date() <= end:
            out.append(record)
    return out


def filter_label(preset: str, date_from: Optional[date] = None, date_to: Optional[date] = None) -> str:
    if preset == "all_time":
        return "All time"
    if preset == "this_month":
        return "This month"
    if preset == "last_month":
        return "Last month"
    if date_from is not None:
        if date_to is not None:
            return f"Custom ({date_from.isoformat()} – {date_to.isoformat()})"
        return f"Custom ({date_from.isoformat()})"
    return "Custom"


# -------------------------
# Categorical filters + search
# -------------------------

def option_values(records: Sequence[Mapping[str, Any]], field: str) -> List[str]:
    """Distinct non-empty values, sorted, for a filter dropdown."""
    values = {str(r.get(field)).strip() for r in records if r.get(field) and str(r.get(field)).strip()}
    return sorted(values)


def reconcile_selection(selected: Optional[str], options: Sequence[str]) -> Optional[str]:
    """Drop a selection the current options no longer contain."""
    chosen = _selection(selected)
    if chosen is not None and options and chosen not in options:
        return None
    return chosen


def filter_by_category(records: Sequence[Record], field: str, selected: Optional[str]) -> List[Record]:
    chosen = _selection(selected)
    if chosen is None:
        return list(records)
    return [r for r in records if (r.get(field) or "") == chosen]


def search_records(records: Sequence[Record], search_fields: Sequence[str], query: Optional[str]) -> List[Record]:
    needle = (query or "").strip().lower()
    if not needle:
        return list(records)
    out: List[Record] = []
    for record in records:
        for name in search_fields:
            value = record.get(name)
            if value is not None and needle in str(value).lower():
                out.append(record)
                break
    return out


# -------------------------
# Sort + stats
# -------------------------

def sort_records(
    records: Sequence[Record],
    date_of: Callable[[Mapping[str, Any]], Optional[datetime]],
    direction: str = "asc",
) -> List[Record]:
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"invalid sort direction '{direction}'. Choose from: {list(SORT_DIRECTIONS)}")
    # missing dates sort as the epoch: first ascending, last descending
    return sorted(records, key=lambda r: date_of(r) or EPOCH, reverse=(direction == "desc"))


def issuance_stats(records: Sequence[Mapping[str, Any]]) -> Dict[str, int]:
    before = 0
    after = 0
    for record in records:
        when = _issuance_date(record)
        if when is None:
            continue
        if when.hour < SIX_PM:
            before += 1
        else:
            after += 1
    return {"total": len(records), "before_6pm": before, "after_6pm": after}


# -------------------------
# View assembly
# -------------------------

def build_view(
    records: Sequence[Record],
    kind: str,
    query: ViewQuery,
    *,
    now: datetime,
    page_size: int = PAGE_SIZE,
) -> Dict[str, Any]:
    """
    Run the whole view pipeline over already-fetched records.

    Returns the page plus `rows` (every matching row, sorted) for export,
    and the effective query after stale selections were cleared.
    """
    view = kind_view(kind)
    window = resolve_date_window(query.preset, query.date_from, query.date_to, now)
    dated = filter_by_date(records, view.date_of, window)

    options: Dict[str, List[str]] = {}
    effective = query
    for field in view.category_fields:
        options[field] = option_values(dated, field)
        current = getattr(effective, field, None)
        reconciled = reconcile_selection(current, options[field])
        if reconciled != _selection(current):
            effective = effective.update(**{field: reconciled})

    filtered = dated
    for field in view.category_fields:
        filtered = filter_by_category(filtered, field, getattr(effective, field, None))
    filtered = search_records(filtered, view.search_fields, effective.search)
    ordered = sort_records(filtered, view.date_of, effective.sort)

    page = paginate(ordered, effective.page, page_size)
    if page["page"] != effective.page:
        effective = replace(effective, page=page["page"])

    result: Dict[str, Any] = {
        "kind": view.kind,
        "rows": ordered,
        "page": page,
        "options": options,
        "filter_label": filter_label(effective.preset, effective.date_from, effective.date_to),
        "query": effective,
    }
    if view.kind == "issuance":
        result["stats"] = issuance_stats(ordered)
    return result


def record_to_dict(row: Any) -> Record:
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


def list_records(
    db: Session,
    *,
    company_id: str,
    kind: str,
    workflow: Optional[str] = None,
    query: Optional[ViewQuery] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    require_company(db, company_id)
    rows = record_store.fetch_records(db, kind, company_id=company_id, workflow=workflow)
    result = build_view(
        [record_to_dict(r) for r in rows],
        kind,
        query or ViewQuery(),
        now=now or datetime.now(),
    )
    result["version"] = view_cache.version(view_cache.ViewScope(kind=kind, company_id=company_id, workflow=workflow))
    return result
