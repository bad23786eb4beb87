"""
Intake - CSV ingest layer.

Responsibility:
- Decode an uploaded file and split it into a header row + raw data rows.
- No business logic, no normalization: values stay exactly as read.

Design notes:
- This is the "IO edge" of the pipeline; everything after it is pure.
- Empty lines are skipped by the parser. Rows whose cells are all blank are
  counted and dropped here so they never reach validation.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from typing import Dict, List

from .errors import CsvParseError

RawRecord = Dict[str, str]


@dataclass
class ParsedCsv:
    headers: List[str]
    rows: List[RawRecord] = field(default_factory=list)
    blank_rows: int = 0

    @property
    def total_rows(self) -> int:
        """Data rows the parser produced, blank ones included."""
        return len(self.rows) + self.blank_rows


def decode_upload(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CsvParseError(f"file is not valid UTF-8 ({e.reason} at byte {e.start})") from e


def _dedupe_headers(headers: List[str]) -> List[str]:
    # Same convention as spreadsheet exporters: second "Date" becomes "Date_1".
    seen: Dict[str, int] = {}
    out: List[str] = []
    for h in headers:
        if h in seen:
            seen[h] += 1
            candidate = f"{h}_{seen[h]}"
            while candidate in seen:
                seen[h] += 1
                candidate = f"{h}_{seen[h]}"
            seen[candidate] = 0
            out.append(candidate)
        else:
            seen[h] = 0
            out.append(h)
    return out


def is_blank_row(row: RawRecord) -> bool:
    return all((v or "").strip() == "" for v in row.values())


def parse_csv_text(text: str) -> ParsedCsv:
    """
    Parse CSV text with a required header row.

    Raises:
        CsvParseError: no header row, broken quoting, or a row carrying
            non-empty cells beyond the header width.
    """
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)

    try:
        header_row: List[str] = []
        for candidate in reader:
            if candidate and any(c.strip() for c in candidate):
                header_row = candidate
                break
        if not header_row:
            raise CsvParseError("file has no header row")

        headers = _dedupe_headers([h.lstrip("\ufeff") for h in header_row])
        parsed = ParsedCsv(headers=headers)
        width = len(headers)

        for cells in reader:
            if not cells:
                continue
            if len(cells) > width:
                extra = cells[width:]
                if any(c.strip() for c in extra):
                    raise CsvParseError(
                        f"expected {width} fields, found {len(cells)}",
                        line_no=reader.line_num,
                    )
                cells = cells[:width]
            elif len(cells) < width:
                cells = cells + [""] * (width - len(cells))

            row = dict(zip(headers, cells))
            if is_blank_row(row):
                parsed.blank_rows += 1
                continue
            parsed.rows.append(row)
    except csv.Error as e:
        raise CsvParseError(str(e), line_no=reader.line_num) from e

    return parsed
