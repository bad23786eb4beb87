"""
Intake - header resolution.

Responsibility:
- Map a file's actual header row (vendor casing/spacing) onto canonical
  field names for one record kind.
- Read canonical values out of a raw row through that mapping.

Design notes:
- Exact alias match first, in the field's alias priority order.
- Fuzzy fallback rules run only when no alias matched. Each rule keeps its
  exclusions next to its inclusions so the two cannot drift apart.
- Resolution is deterministic: same headers in, same mapping out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Mapping, Optional, Sequence, Tuple

from .normalize import collapse_whitespace

FieldType = Literal["text", "dateOnly", "numeric"]

RawRow = Mapping[str, Optional[str]]


def normalize_header(header: Optional[str]) -> str:
    return collapse_whitespace(header)


# -------------------------
# Fuzzy fallback rules
# -------------------------

@dataclass(frozen=True)
class FallbackRule:
    """
    Substring rule evaluated against normalized headers.

    A header qualifies when it contains every `require` token and none of
    the `exclude` tokens.
    """
    require: Tuple[str, ...]
    exclude: Tuple[str, ...] = ()

    def matches(self, normalized: str) -> bool:
        if not all(token in normalized for token in self.require):
            return False
        return not any(token in normalized for token in self.exclude)


def contains(*tokens: str, exclude: Sequence[str] = ()) -> FallbackRule:
    return FallbackRule(require=tuple(tokens), exclude=tuple(exclude))


# -------------------------
# Canonical fields
# -------------------------

@dataclass(frozen=True)
class CanonicalField:
    name: str
    type: FieldType = "text"
    aliases: Tuple[str, ...] = ()
    fallbacks: Tuple[FallbackRule, ...] = ()

    @property
    def normalized_aliases(self) -> Tuple[str, ...]:
        return tuple(normalize_header(a) for a in self.aliases)


def text_field(name: str, *aliases: str, fallbacks: Sequence[FallbackRule] = ()) -> CanonicalField:
    return CanonicalField(name=name, type="text", aliases=tuple(aliases), fallbacks=tuple(fallbacks))


def date_field(name: str, *aliases: str, fallbacks: Sequence[FallbackRule] = ()) -> CanonicalField:
    return CanonicalField(name=name, type="dateOnly", aliases=tuple(aliases), fallbacks=tuple(fallbacks))


def numeric_field(name: str, *aliases: str, fallbacks: Sequence[FallbackRule] = ()) -> CanonicalField:
    return CanonicalField(name=name, type="numeric", aliases=tuple(aliases), fallbacks=tuple(fallbacks))


# -------------------------
# Resolver
# -------------------------

@dataclass
class HeaderResolver:
    """
    Lookup built fresh for every uploaded file.

    `by_normalized` maps a normalized header to the original header string,
    `resolved` maps a canonical field name to the original header chosen for it.
    """
    headers: List[str]
    by_normalized: Dict[str, str] = field(default_factory=dict)
    resolved: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(cls, headers: Sequence[str], fields: Sequence[CanonicalField]) -> "HeaderResolver":
        by_normalized: Dict[str, str] = {}
        for h in headers:
            if h is None:
                continue
            # first occurrence wins when two headers normalize the same way
            by_normalized.setdefault(normalize_header(h), h)

        resolver = cls(headers=[h for h in headers if h is not None], by_normalized=by_normalized)
        for f in fields:
            original = resolver._resolve_field(f)
            if original is not None:
                resolver.resolved[f.name] = original
        return resolver

    def _resolve_field(self, f: CanonicalField) -> Optional[str]:
        for alias in f.normalized_aliases:
            original = self.by_normalized.get(alias)
            if original is not None:
                return original
        for rule in f.fallbacks:
            for normalized, original in self.by_normalized.items():
                if rule.matches(normalized):
                    return original
        return None

    def header_for(self, field_name: str) -> Optional[str]:
        return self.resolved.get(field_name)

    def get(self, row: RawRow, *aliases: str) -> Optional[str]:
        """First non-empty trimmed value among the ranked alias keys, else None."""
        for alias in aliases:
            original = self.by_normalized.get(normalize_header(alias))
            if original is None:
                continue
            value = _non_empty(row.get(original))
            if value is not None:
                return value
        return None

    def value(self, row: RawRow, f: CanonicalField) -> Optional[str]:
        """
        Canonical value of `f` for one row.

        Walks the alias list (so a blank preferred column falls through to
        the next alias), then the fuzzy-resolved header.
        """
        found = self.get(row, *f.aliases)
        if found is not None:
            return found
        original = self.resolved.get(f.name)
        if original is None:
            return None
        return _non_empty(row.get(original))


def _non_empty(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def resolve_headers(headers: Sequence[str], fields: Sequence[CanonicalField]) -> Dict[str, str]:
    """Canonical field name -> original header present in this file."""
    return dict(HeaderResolver.build(headers, fields).resolved)
