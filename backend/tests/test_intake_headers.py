from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parents[2]))

from backend.app.intake.headers import HeaderResolver, contains, normalize_header, resolve_headers, text_field
from backend.app.intake.kinds import (
    BILLING_DATE,
    INSURER_BILLING_FIELDS,
    OCR_FIELDS,
    SUM_INSURED,
    resolver_fields,
)


def test_normalize_header_is_case_and_space_insensitive():
    assert normalize_header("  Sum   Insured (RM) ") == "sum insured (rm)"
    assert normalize_header(None) == ""


def test_sum_insured_spellings_resolve_to_same_field():
    exact = resolve_headers(["Policy No.", "Sum Insured (RM)"], INSURER_BILLING_FIELDS)
    squashed = resolve_headers(["Policy No.", "sum insured(rm)"], INSURER_BILLING_FIELDS)

    assert exact["sum_insured"] == "Sum Insured (RM)"
    assert squashed["sum_insured"] == "sum insured(rm)"


def test_name_of_insured_never_becomes_sum_insured():
    resolved = resolve_headers(["Name of Insured", "Vehicle No."], INSURER_BILLING_FIELDS)

    assert "sum_insured" not in resolved
    assert resolved["client_name"] == "Name of Insured"


def test_exact_alias_beats_fuzzy_rule():
    resolver = HeaderResolver.build(["Insurer Contact No.", "Insurer"], OCR_FIELDS)
    assert resolver.header_for("insurer") == "Insurer"
    assert resolver.header_for("insurer_contact_no") == "Insurer Contact No."


def test_fuzzy_insurer_excludes_contact_columns():
    resolver = HeaderResolver.build(["Insurer Contact No.", "Insurer Company Ltd"], OCR_FIELDS)
    assert resolver.header_for("insurer") == "Insurer Company Ltd"


def test_billing_date_fallback_skips_effective_and_expiry():
    resolver = HeaderResolver.build(
        ["Effective Date", "Expiry Date", "Posting Date"],
        resolver_fields("insurer_billing"),
    )
    assert resolver.header_for(BILLING_DATE.name) == "Posting Date"


def test_get_returns_first_non_empty_trimmed_value():
    resolver = HeaderResolver.build(["Issue Date", "Date"], [BILLING_DATE])
    row = {"Issue Date": "   ", "Date": " 15/01/2026 "}

    assert resolver.get(row, "issue date", "date") == "15/01/2026"
    assert resolver.get(row, "issue date") is None
    assert resolver.get(row, "missing header") is None


def test_value_falls_through_blank_preferred_alias():
    resolver = HeaderResolver.build(["Issue Date", "Transaction Date"], [BILLING_DATE])
    row = {"Issue Date": "", "Transaction Date": "2026-01-09"}
    assert resolver.value(row, BILLING_DATE) == "2026-01-09"


def test_first_of_two_equivalent_headers_wins():
    resolver = HeaderResolver.build(["Sum Insured", "SUM  INSURED"], [SUM_INSURED])
    assert resolver.header_for("sum_insured") == "Sum Insured"


def test_fallback_rule_requires_every_token():
    rule = contains("vehicle", "no", exclude=("type",))
    assert rule.matches("vehicle no.")
    assert not rule.matches("vehicle type no")
    assert not rule.matches("vehicle")


def test_unresolved_field_reads_as_none():
    field = text_field("agent_code", "agent code")
    resolver = HeaderResolver.build(["Something Else"], [field])
    assert resolver.value({"Something Else": "x"}, field) is None
