"""
Intake - pure partitioning of one parsed file.

parse -> resolve headers -> classify -> (valid rows, rejected rows)

No database access here: persisted dedup keys come in as a SeenKeys
snapshot and the caller decides what to do with the two partitions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .dedup import SeenKeys
from .headers import HeaderResolver
from .ingest import ParsedCsv, RawRecord
from .kinds import kind_spec, resolver_fields
from .validate import (
    RowDecision,
    classify_billing_row,
    classify_issuance_row,
    classify_ocr_row,
)

# Known billing statement vendors, matched against the upload file name.
FILE_NAME_INSURER_HINTS = (
    ("generali", "Generali"),
    ("allianz", "Allianz"),
)


@dataclass(frozen=True)
class RejectedRow:
    raw_data: RawRecord
    rejection_reason: str
    line_index: int


@dataclass
class Partition:
    kind: str
    valid: List[Dict[str, Any]] = field(default_factory=list)
    rejected: List[RejectedRow] = field(default_factory=list)
    blank_rows: int = 0
    total_rows: int = 0


def insurer_from_file_name(file_name: Optional[str]) -> Optional[str]:
    lowered = (file_name or "").lower()
    for needle, insurer in FILE_NAME_INSURER_HINTS:
        if needle in lowered:
            return insurer
    return None


def detect_billing_insurer(
    *,
    selected_insurer: Optional[str],
    file_name: Optional[str],
) -> Optional[str]:
    """
    Insurer for rows that do not name one: the user's pick, then a hint in
    the file name. Another row's insurer column is never borrowed, so a
    row with a blank insurer in an unlabelled file is rejected.
    """
    if selected_insurer and selected_insurer.strip():
        return selected_insurer.strip()
    return insurer_from_file_name(file_name)


def build_partition(
    kind: str,
    parsed: ParsedCsv,
    *,
    selected_insurer: Optional[str] = None,
    file_name: Optional[str] = None,
    seen: Optional[SeenKeys] = None,
) -> Partition:
    spec = kind_spec(kind)
    resolver = HeaderResolver.build(parsed.headers, resolver_fields(spec.kind))
    partition = Partition(kind=spec.kind, blank_rows=parsed.blank_rows, total_rows=parsed.total_rows)

    default_insurer: Optional[str] = None
    if spec.kind == "insurer_billing":
        default_insurer = detect_billing_insurer(selected_insurer=selected_insurer, file_name=file_name)
    elif selected_insurer:
        default_insurer = selected_insurer.strip() or None

    seen_keys = seen if seen is not None else SeenKeys()

    for index, row in enumerate(parsed.rows):
        decision: RowDecision
        if spec.kind == "insurer_billing":
            decision = classify_billing_row(resolver, row, spec.fields, default_insurer=default_insurer)
        elif spec.kind == "ocr":
            decision = classify_ocr_row(
                resolver,
                row,
                spec.fields,
                seen_keys,
                default_insurer=default_insurer,
                file_name=file_name,
            )
        else:
            decision = classify_issuance_row(resolver, row, spec.fields)
            if not decision.values.get("insurer") and default_insurer:
                decision.values["insurer"] = default_insurer

        if decision.accepted:
            partition.valid.append(decision.values)
        else:
            partition.rejected.append(
                RejectedRow(raw_data=row, rejection_reason=decision.rejection_reason or "", line_index=index)
            )

    return partition
