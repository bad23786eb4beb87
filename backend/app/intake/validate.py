"""
Intake - row validation and classification.

Every non-blank row gets exactly one decision: importable, or rejected with
a reason an operator can act on. Nothing here raises for bad data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .dedup import SeenKeys, compute_dedup_key, normalize_date_issue
from .headers import CanonicalField, HeaderResolver, RawRow
from .kinds import BILLING_DATE, INSURER
from .normalize import parse_numeric, to_canonical_date_string

REASON_NO_VALID_DATE = "No valid date"
REASON_MISSING_INSURER = "Missing insurer"
REASON_DUPLICATE = "Duplicate"

REASON_SEPARATOR = "; "


@dataclass
class RowDecision:
    values: Dict[str, Any]
    reasons: List[str] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return not self.reasons

    @property
    def rejection_reason(self) -> Optional[str]:
        if not self.reasons:
            return None
        return REASON_SEPARATOR.join(self.reasons)


def canonical_values(
    resolver: HeaderResolver,
    row: RawRow,
    fields: Sequence[CanonicalField],
    *,
    keep_unparsed_dates: bool = False,
) -> Dict[str, Any]:
    """
    Read and type every canonical field of one row.

    text -> trimmed str or None; dateOnly -> "YYYY-MM-DD" or None;
    numeric -> float or None.
    """
    out: Dict[str, Any] = {}
    for f in fields:
        raw = resolver.value(row, f)
        if f.type == "numeric":
            out[f.name] = parse_numeric(raw)
        elif f.type == "dateOnly":
            canonical = to_canonical_date_string(raw)
            if canonical is None and keep_unparsed_dates:
                canonical = raw
            out[f.name] = canonical
        else:
            out[f.name] = raw
    return out


# -------------------------
# Insurer billing
# -------------------------

def classify_billing_row(
    resolver: HeaderResolver,
    row: RawRow,
    fields: Sequence[CanonicalField],
    *,
    default_insurer: Optional[str] = None,
) -> RowDecision:
    values = canonical_values(resolver, row, fields)
    insurer = resolver.value(row, INSURER) or (default_insurer or "").strip() or None
    values["insurer"] = insurer

    billing_date = to_canonical_date_string(resolver.value(row, BILLING_DATE))
    # a date found only through a looser header ("Billing Date", "Posting Date") lands in issue_date
    if billing_date is not None and values.get("issue_date") is None and values.get("transaction_date") is None:
        values["issue_date"] = billing_date

    decision = RowDecision(values=values)
    if billing_date is None:
        decision.reasons.append(REASON_NO_VALID_DATE)
    if not insurer:
        decision.reasons.append(REASON_MISSING_INSURER)
    return decision


# -------------------------
# OCR
# -------------------------

def classify_ocr_row(
    resolver: HeaderResolver,
    row: RawRow,
    fields: Sequence[CanonicalField],
    seen: SeenKeys,
    *,
    default_insurer: Optional[str] = None,
    file_name: Optional[str] = None,
) -> RowDecision:
    values = canonical_values(resolver, row, fields, keep_unparsed_dates=True)
    values["date_issue"] = normalize_date_issue(values.get("date_issue"))
    insurer = values.get("insurer") or (default_insurer or "").strip() or None
    values["insurer"] = insurer
    if not values.get("file_name") and file_name:
        values["file_name"] = file_name

    decision = RowDecision(values=values)
    if not insurer:
        # a rejected row never claims its key
        decision.reasons.append(REASON_MISSING_INSURER)
        return decision

    if not seen.claim(compute_dedup_key(values.get("vehicle_no"), values.get("date_issue"))):
        decision.reasons.append(REASON_DUPLICATE)
    return decision


# -------------------------
# Issuance
# -------------------------

def classify_issuance_row(
    resolver: HeaderResolver,
    row: RawRow,
    fields: Sequence[CanonicalField],
) -> RowDecision:
    # purchased_date keeps its time-of-day, so it is read as text
    return RowDecision(values=canonical_values(resolver, row, fields))
