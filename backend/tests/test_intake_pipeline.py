from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))

from backend.app.intake.dedup import SeenKeys, compute_dedup_key
from backend.app.intake.errors import CsvParseError
from backend.app.intake.ingest import decode_upload, parse_csv_text
from backend.app.intake.pipeline import build_partition, insurer_from_file_name

BILLING_CSV = (
    "Insurer,Issue Date,Policy No.,Name of Insured,Vehicle No.,Sum Insured (RM),Gross Premium (RM)\n"
    "Allianz,15/01/2026,P-001,Ali Bin Abu,WXY 1234,\"25,000.00\",\"1,234.50\"\n"
    "Allianz,,P-002,Siti Aminah,ABC 9876,18000,900\n"
    ",16/01/2026,P-003,Tan Ah Kow,JKL 5555,12000,650\n"
)


def _billing(csv_text, **kwargs):
    return build_partition("insurer_billing", parse_csv_text(csv_text), **kwargs)


# -------------------------
# CSV parsing
# -------------------------

def test_parse_skips_empty_lines_and_counts_blank_rows():
    parsed = parse_csv_text("\n\nA,B\n1,2\n\n , \n3,4\n")

    assert parsed.headers == ["A", "B"]
    assert parsed.rows == [{"A": "1", "B": "2"}, {"A": "3", "B": "4"}]
    assert parsed.blank_rows == 1
    assert parsed.total_rows == 3


def test_parse_pads_short_rows_and_drops_blank_trailing_cells():
    parsed = parse_csv_text("A,B,C\n1\n2,3,4,,\n")
    assert parsed.rows == [{"A": "1", "B": "", "C": ""}, {"A": "2", "B": "3", "C": "4"}]


def test_parse_rejects_non_blank_extra_cells():
    with pytest.raises(CsvParseError) as exc:
        parse_csv_text("A,B\n1,2\n3,4,5\n")
    assert exc.value.line_no == 3
    assert "line 3" in str(exc.value)


def test_parse_rejects_unterminated_quote():
    with pytest.raises(CsvParseError):
        parse_csv_text('A,B\n"1,2\n')


def test_parse_requires_header_row():
    with pytest.raises(CsvParseError):
        parse_csv_text("\n\n")


def test_duplicate_headers_are_renamed():
    parsed = parse_csv_text("Date,Date,Insurer\n2026-01-01,2026-01-02,Allianz\n")
    assert parsed.headers == ["Date", "Date_1", "Insurer"]


def test_decode_strips_bom_and_rejects_binary():
    assert parse_csv_text(decode_upload("\ufeffInsurer\nAllianz\n".encode("utf-8"))).headers == ["Insurer"]
    with pytest.raises(CsvParseError):
        decode_upload(b"\xff\xfe\x00bad")


# -------------------------
# Billing classification
# -------------------------

def test_billing_partition_routes_bad_rows_with_reasons():
    partition = _billing(BILLING_CSV, file_name="statement.csv")

    assert len(partition.valid) == 1
    assert [r.rejection_reason for r in partition.rejected] == ["No valid date", "Missing insurer"]

    valid = partition.valid[0]
    assert valid["insurer"] == "Allianz"
    assert valid["issue_date"] == "2026-01-15"
    assert valid["sum_insured"] == 25000.0
    assert valid["gross_premium"] == 1234.5
    assert valid["policy_no"] == "P-001"


def test_rejected_rows_keep_raw_payload_verbatim():
    partition = _billing(BILLING_CSV, file_name="statement.csv")
    missing_insurer = partition.rejected[1]

    assert missing_insurer.raw_data == {
        "Insurer": "",
        "Issue Date": "16/01/2026",
        "Policy No.": "P-003",
        "Name of Insured": "Tan Ah Kow",
        "Vehicle No.": "JKL 5555",
        "Sum Insured (RM)": "12000",
        "Gross Premium (RM)": "650",
    }
    assert missing_insurer.line_index == 2


def test_missing_date_and_insurer_reason_composition():
    partition = _billing("Insurer,Issue Date,Policy No.\n,,P-9\n", file_name="statement.csv")
    assert partition.rejected[0].rejection_reason == "No valid date; Missing insurer"


def test_selected_insurer_fills_blank_insurer():
    partition = _billing(BILLING_CSV, selected_insurer="Generali", file_name="statement.csv")
    assert len(partition.valid) == 2
    assert partition.valid[0]["insurer"] == "Allianz"
    assert partition.valid[1]["insurer"] == "Generali"


def test_file_name_hint_fills_blank_insurer():
    assert insurer_from_file_name("GENERALI_Jan2026.csv") == "Generali"
    assert insurer_from_file_name("statement.csv") is None

    partition = _billing(BILLING_CSV, file_name="allianz_jan.csv")
    assert [r.rejection_reason for r in partition.rejected] == ["No valid date"]


def test_billing_date_from_transaction_date_column():
    csv_text = "Insurer,Transaction Date,Policy No.\nAllianz,2026-01-08 09:14:45,P-1\n"
    partition = _billing(csv_text, file_name="statement.csv")

    assert len(partition.valid) == 1
    assert partition.valid[0]["transaction_date"] == "2026-01-08"
    assert partition.valid[0]["issue_date"] is None


@pytest.mark.parametrize("header", ["Billing Date", "Posting Date"])
def test_billing_date_from_loose_header_is_stored_as_issue_date(header):
    csv_text = f"Insurer,{header},Policy No.\nAllianz,15/02/2026,P-1\n"
    partition = _billing(csv_text)

    assert len(partition.valid) == 1
    assert partition.valid[0]["issue_date"] == "2026-02-15"


def test_partition_is_complete():
    csv_text = BILLING_CSV + ",,,,,,\n" + " , , , , , , \n"
    parsed = parse_csv_text(csv_text)
    partition = build_partition("insurer_billing", parsed, file_name="statement.csv")

    assert partition.blank_rows == 2
    assert len(partition.valid) + len(partition.rejected) + partition.blank_rows == partition.total_rows


# -------------------------
# OCR dedup
# -------------------------

OCR_HEADER = "date_issue,vehicle_no,insured_name,insurer,sum_insured\n"


def test_ocr_duplicate_within_batch_rejected_once():
    csv_text = OCR_HEADER + (
        "2026-02-01,WXY 1234,Ali,Allianz,\"30,000\"\n"
        "01/02/2026,  wxy   1234 ,Ali bin Abu,Allianz,30000\n"
    )
    partition = build_partition("ocr", parse_csv_text(csv_text), file_name="ocr.csv")

    assert len(partition.valid) == 1
    assert [r.rejection_reason for r in partition.rejected] == ["Duplicate"]
    assert partition.valid[0]["date_issue"] == "2026-02-01"
    assert partition.valid[0]["file_name"] == "ocr.csv"


def test_ocr_row_matching_persisted_key_is_duplicate():
    seen = SeenKeys.from_pairs([("WXY 1234", "2026-02-01")])
    csv_text = OCR_HEADER + "2026-02-01,wxy 1234,Ali,Allianz,1\n2026-02-02,WXY 1234,Ali,Allianz,1\n"
    partition = build_partition("ocr", parse_csv_text(csv_text), seen=seen)

    assert [r.rejection_reason for r in partition.rejected] == ["Duplicate"]
    assert len(partition.valid) == 1
    assert partition.valid[0]["date_issue"] == "2026-02-02"


def test_ocr_missing_insurer_does_not_claim_key():
    csv_text = OCR_HEADER + "2026-02-01,WXY 1234,Ali,,1\n2026-02-01,WXY 1234,Ali,Allianz,1\n"
    partition = build_partition("ocr", parse_csv_text(csv_text))

    assert [r.rejection_reason for r in partition.rejected] == ["Missing insurer"]
    assert len(partition.valid) == 1


def test_ocr_unparseable_date_issue_kept_as_text():
    csv_text = OCR_HEADER + "early Feb,WXY 1234,Ali,Allianz,1\n"
    partition = build_partition("ocr", parse_csv_text(csv_text))
    assert partition.valid[0]["date_issue"] == "early Feb"


def test_dedup_key_is_case_and_whitespace_insensitive():
    assert compute_dedup_key(" WXY  1234", "2026-02-01") == compute_dedup_key("wxy 1234", "01/02/2026")
    assert compute_dedup_key("WXY 1234", "2026-02-01") != compute_dedup_key("WXY 1235", "2026-02-01")


# -------------------------
# Issuance
# -------------------------

def test_issuance_rows_are_never_rejected():
    csv_text = "Purchased Date,Plate No.,Customer,Insurer,Partner\n10/02/2026 19:30,ABC 1,Ali,,Shopee\n,,Siti,,\n"
    partition = build_partition("issuance", parse_csv_text(csv_text))

    assert partition.rejected == []
    assert len(partition.valid) == 2
    assert partition.valid[0]["purchased_date"] == "10/02/2026 19:30"
    assert partition.valid[0]["partner"] == "Shopee"


def test_unknown_kind_raises_key_error():
    with pytest.raises(KeyError):
        build_partition("claims", parse_csv_text("A\n1\n"))
