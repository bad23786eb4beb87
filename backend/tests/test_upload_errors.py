from pathlib import Path
import sys

import pytest
from fastapi import HTTPException

sys.path.append(str(Path(__file__).resolve().parents[2]))

from backend.app.models import UploadError
from backend.app.services import upload_error_service
from backend.app.services.upload_error_service import display_value


def _reject(db_session, company, reason, raw, *, source="insurer_billing", file_name="s.csv", workflow="imotorbike"):
    row = UploadError(
        company_id=company.id,
        workflow=workflow,
        source=source,
        rejection_reason=reason,
        raw_data=raw,
        file_name=file_name,
    )
    db_session.add(row)
    db_session.flush()
    return row


def test_display_value_prefers_normalized_exact_key():
    raw = {"Vehicle  No.": "WXY 1234", "Vehicle No Type": "Car"}
    assert display_value(raw, "vehicle no", "vehicle no.", "vehicle_no") == "WXY 1234"


def test_display_value_falls_back_to_substring():
    raw = {"Client Full Name": "", "Policy No. (Renewal)": "P-77"}
    assert display_value(raw, "policy no.", "policy no", "policy_no") == "P-77"
    assert display_value(raw, "client") == "—"


def test_list_upload_errors_newest_first_with_display_fields(db_session, company):
    _reject(db_session, company, "No valid date", {"Name of Insured": "Ali", "Policy No.": "P-1"})
    _reject(db_session, company, "Duplicate", {"vehicle_no": "WXY 1234"}, source="ocr", file_name="ocr.csv")
    db_session.commit()

    result = upload_error_service.list_upload_errors(db_session, company.id, workflow="imotorbike")

    assert result["total_items"] == 2
    by_reason = {item["rejection_reason"]: item for item in result["items"]}
    assert by_reason["No valid date"]["client_name"] == "Ali"
    assert by_reason["No valid date"]["policy_no"] == "P-1"
    assert by_reason["No valid date"]["vehicle_no"] == "—"
    assert by_reason["Duplicate"]["vehicle_no"] == "WXY 1234"


@pytest.mark.parametrize(
    "needle, expected",
    [
        ("duplicate", {"Duplicate"}),
        ("OCR.CSV", {"Duplicate"}),
        ("wxy", {"Duplicate"}),
        ("insurer_billing", {"No valid date"}),
        ("", {"Duplicate", "No valid date"}),
    ],
)
def test_search_covers_reason_source_file_and_payload(db_session, company, needle, expected):
    _reject(db_session, company, "No valid date", {"Name of Insured": "Ali"})
    _reject(db_session, company, "Duplicate", {"vehicle_no": "WXY 1234"}, source="ocr", file_name="ocr.csv")
    db_session.commit()

    result = upload_error_service.list_upload_errors(db_session, company.id, search=needle)
    assert {item["rejection_reason"] for item in result["items"]} == expected


def test_source_filter_and_workflow_scope(db_session, company):
    _reject(db_session, company, "Duplicate", {"vehicle_no": "A"}, source="ocr")
    _reject(db_session, company, "Missing insurer", {"vehicle_no": "B"}, workflow="other")
    db_session.commit()

    only_ocr = upload_error_service.list_upload_errors(db_session, company.id, source="ocr")
    scoped = upload_error_service.list_upload_errors(db_session, company.id, workflow="other")

    assert [i["rejection_reason"] for i in only_ocr["items"]] == ["Duplicate"]
    assert [i["rejection_reason"] for i in scoped["items"]] == ["Missing insurer"]

    with pytest.raises(HTTPException):
        upload_error_service.list_upload_errors(db_session, company.id, source="claims")


def test_unknown_company_is_404(db_session):
    with pytest.raises(HTTPException) as exc:
        upload_error_service.list_upload_errors(db_session, "missing")
    assert exc.value.status_code == 404
