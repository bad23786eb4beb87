"""
Intake - record kinds and their canonical field tables.

Each kind lists its canonical fields in column order with ranked header
aliases. Aliases are written the way vendors spell them; matching is
case/whitespace-insensitive (see headers.normalize_header).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from .headers import CanonicalField, contains, date_field, numeric_field, text_field

RECORD_KINDS: Tuple[str, ...] = ("issuance", "insurer_billing", "ocr")


def _snake(name: str) -> Tuple[str, str]:
    """Both spellings of a snake_case column: "date_issue" and "date issue"."""
    return (name, name.replace("_", " "))


# -------------------------
# Shared fields
# -------------------------

INSURER = text_field(
    "insurer",
    "insurer",
    "insurer name",
    "insurer_name",
    "insurance company",
    fallbacks=[contains("insurer", exclude=("contact", "email", "phone"))],
)

VEHICLE_NO = text_field(
    "vehicle_no",
    "vehicle no",
    "vehicle no.",
    "vehicle_no",
    "vehicle number",
    "vehicle reg no",
    fallbacks=[
        contains("vehicle", "no", exclude=("type", "make", "model")),
        contains("plate"),
    ],
)

SUM_INSURED = numeric_field(
    "sum_insured",
    "sum insured (rm)",
    "sum insured",
    "sum_insured",
    fallbacks=[contains("sum", "insured", exclude=("name of insured",))],
)


# -------------------------
# Issuance (internal sales export)
# -------------------------

ISSUANCE_FIELDS: Tuple[CanonicalField, ...] = (
    text_field("purchased_date", "purchased date", "purchaseddate", "purchased_date", "date"),
    text_field("plate_no", "plate no", "plate no.", "plateno", "plate_no", "plate"),
    text_field("customer", "customer"),
    text_field("instant_quotation", "instant quotation", "instantquotation", "instant_quotation", "quotation"),
    INSURER,
    text_field("coverage", "coverage"),
    text_field("time_lapsed", "time lapsed", "timelapsed", "time_lapsed", "time"),
    text_field("partner", "partner"),
)


# -------------------------
# Insurer billing (Allianz / Generali statements)
# -------------------------

# Used only to decide validity: the statement's own date, whichever column carries it.
BILLING_DATE = date_field(
    "billing_date",
    "issue date",
    "issue_date",
    "billing date",
    "billing_date",
    "transaction date",
    "date",
    fallbacks=[contains("date", exclude=("effective", "expiry", "expiration", "birth"))],
)

INSURER_BILLING_FIELDS: Tuple[CanonicalField, ...] = (
    INSURER,
    text_field("row_number", "no.", "no"),
    text_field("policy_no", "policy no.", "policy no", "policy_no", "policy number"),
    text_field("client_name", "name of insured", "client", "client_name", "client name"),
    VEHICLE_NO,
    text_field("status", "status"),
    SUM_INSURED,
    text_field("cn_no", "c/n no.", "c/n no", "cn_no"),
    text_field("account_no", "account no.", "account no", "account_no"),
    date_field("issue_date", "issue date", "issue_date"),
    text_field("issued_by", "issued by", "issued_by"),
    text_field("type", "type"),
    date_field("effective_date", "effective date", "effective_date"),
    date_field("expiry_date", "expiry date", "expiry_date"),
    text_field("vehicle_type", "vehicle type", "vehicle_type"),
    text_field("coverage_type", "coverage type", "coverage_type"),
    text_field("chassis", "chassis"),
    text_field("jpj_status", "jpj status", "jpj_status"),
    numeric_field("gross_premium", "gross premium (rm)", "gross premium", "gross_premium"),
    numeric_field("rebate", "rebate (rm)", "rebate"),
    numeric_field("gst", "gst (rm)", "gst"),
    numeric_field("service_tax", "serv. tax (rm)", "serv. tax", "service_tax", "service tax"),
    numeric_field("stamp", "stamp (rm)", "stamp"),
    numeric_field("premium_due", "premium due (rm)", "premium due", "premium_due"),
    numeric_field("commission", "commission (rm)", "commission"),
    numeric_field("gst_commission", "gst commission (rm)", "gst commission", "gst_commission"),
    numeric_field("nett_premium", "nett premium (rm)", "nett premium", "nett_premium"),
    numeric_field(
        "amount_payable",
        "amount payable (rounded) (rm)",
        "amount payable",
        "amount_payable",
        fallbacks=[contains("amount payable")],
    ),
    numeric_field("ptv_amount", "ptv amount", "ptv_amount"),
    numeric_field("premium_due_after_ptv", "premium due after ptv", "premium_due_after_ptv"),
    text_field("agent_code", "agent code", "agent_code"),
    text_field("user_id", "userid", "user_id"),
    date_field("transaction_date", "date", "transaction date", "transaction_date"),
    text_field("transaction_time", "time", "transaction time", "transaction_time"),
    text_field("class_product", "class & product", "class_product"),
    text_field("quotation", "quotation"),
    text_field("repl_prev_no", "repl/prev no.", "repl/prev no", "repl_prev_no"),
    text_field("trx_status", "trx status", "trx_status"),
    numeric_field("total_amount", "totalamt", "total_amount", "total amount"),
)


# -------------------------
# OCR (extracted cover notes)
# -------------------------

DATE_ISSUE = date_field(
    "date_issue",
    *_snake("date_issue"),
    "date of issue",
    "issue date",
    fallbacks=[contains("issue", "date")],
)

OCR_FIELDS: Tuple[CanonicalField, ...] = (
    DATE_ISSUE,
    VEHICLE_NO,
    text_field("insured_name", *_snake("insured_name"), "name of insured"),
    text_field("insured_ic_no", *_snake("insured_ic_no"), "insured ic no.", "ic no"),
    text_field("insurer_contact_no", *_snake("insurer_contact_no"), "insurer contact no."),
    text_field("insured_email", *_snake("insured_email"), "email"),
    text_field("vehicle_make_model", *_snake("vehicle_make_model"), "vehicle make/model", "make/model"),
    text_field("type_of_cover", *_snake("type_of_cover"), "cover type"),
    SUM_INSURED,
    numeric_field("premium", "premium"),
    text_field("ncd", "ncd"),
    numeric_field("total_base_premium", *_snake("total_base_premium")),
    numeric_field("total_extra_coverage", *_snake("total_extra_coverage")),
    numeric_field("gross_premium", *_snake("gross_premium")),
    numeric_field("service_tax", *_snake("service_tax")),
    numeric_field("stamp_duty", *_snake("stamp_duty")),
    numeric_field(
        "total_amount_payable_rounded",
        *_snake("total_amount_payable_rounded"),
        "total amount payable",
    ),
    INSURER,
    text_field("file_name", *_snake("file_name"), "filename", "source_filename"),
    text_field("created_timestamp", *_snake("created_timestamp")),
    text_field("formatted_timestamp", *_snake("formatted_timestamp")),
    text_field("process_duration", *_snake("process_duration")),
)


# -------------------------
# Registry
# -------------------------

@dataclass(frozen=True)
class KindSpec:
    kind: str
    fields: Tuple[CanonicalField, ...]
    # OCR is the only kind where a repeated entity is a data error.
    deduplicate: bool = False


KIND_SPECS: Dict[str, KindSpec] = {
    "issuance": KindSpec(kind="issuance", fields=ISSUANCE_FIELDS),
    "insurer_billing": KindSpec(kind="insurer_billing", fields=INSURER_BILLING_FIELDS),
    "ocr": KindSpec(kind="ocr", fields=OCR_FIELDS, deduplicate=True),
}


def kind_spec(kind: str) -> KindSpec:
    spec = KIND_SPECS.get((kind or "").strip().lower())
    if spec is None:
        raise KeyError(f"unknown record kind '{kind}'. Choose from: {list(RECORD_KINDS)}")
    return spec


def resolver_fields(kind: str) -> Tuple[CanonicalField, ...]:
    """Fields the resolver should map for this kind, including validation-only ones."""
    spec = kind_spec(kind)
    if spec.kind == "insurer_billing":
        return spec.fields + (BILLING_DATE,)
    return spec.fields
