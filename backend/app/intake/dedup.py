"""
Intake - OCR deduplication.

Two OCR rows are the same entity when vehicle number and date of issue
match after normalization, whatever the other columns say. OCR extraction
is imprecise, so the key is deliberately coarse and exact-match only.
"""

from __future__ import annotations

from typing import Iterable, Optional, Set, Tuple

from .normalize import collapse_whitespace, to_canonical_date_string

KEY_SEPARATOR = "|"


def normalize_date_issue(value: Optional[str]) -> Optional[str]:
    """Canonical YYYY-MM-DD when parseable, otherwise the trimmed raw text."""
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    return to_canonical_date_string(s) or s


def compute_dedup_key(vehicle_no: Optional[str], date_issue: Optional[str]) -> str:
    vehicle = collapse_whitespace(vehicle_no)
    issued = collapse_whitespace(normalize_date_issue(date_issue))
    return f"{vehicle}{KEY_SEPARATOR}{issued}"


class SeenKeys:
    """
    Keys already taken in this ingestion: persisted rows first, then every
    row accepted from the current file, in file order.
    """

    def __init__(self, keys: Iterable[str] = ()):
        self._keys: Set[str] = set(keys)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[Optional[str], Optional[str]]]) -> "SeenKeys":
        return cls(compute_dedup_key(vehicle, issued) for vehicle, issued in pairs)

    def __contains__(self, key: str) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def claim(self, key: str) -> bool:
        """Record `key`; False when it was already seen."""
        if key in self._keys:
            return False
        self._keys.add(key)
        return True
