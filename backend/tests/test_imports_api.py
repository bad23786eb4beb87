from pathlib import Path
import sys

import pytest

pytest.importorskip("httpx")

from sqlalchemy.exc import IntegrityError

sys.path.append(str(Path(__file__).resolve().parents[2]))

from backend.app.services import record_store

BILLING_CSV = (
    "Insurer,Issue Date,Policy No.,Name of Insured,Vehicle No.\n"
    "Allianz,15/01/2026,P-001,Ali Bin Abu,WXY 1234\n"
    "Allianz,,P-002,Siti Aminah,ABC 9876\n"
    ",16/01/2026,P-003,Tan Ah Kow,JKL 5555\n"
)


def _upload(api_client, kind, content, *, workflow="imotorbike", file_name="statement.csv", **form):
    return api_client.post(
        f"/api/imports/{workflow}/{kind}",
        files={"file": (file_name, content, "text/csv")},
        data=form,
    )


def test_billing_upload_reports_counts(api_client, company):
    resp = _upload(api_client, "insurer_billing", BILLING_CSV.encode("utf-8"))

    assert resp.status_code == 200
    body = resp.json()
    assert body["imported_count"] == 1
    assert body["rejected_count"] == 2
    assert body["blank_rows"] == 0
    assert body["message"] == "1 row(s) imported. 2 row(s) skipped (see Errors tab)."


def test_selected_insurer_form_field(api_client, company):
    resp = _upload(api_client, "insurer_billing", BILLING_CSV.encode("utf-8"), insurer="Generali")
    assert resp.json()["imported_count"] == 2


def test_upload_then_browse_records_and_errors(api_client, company):
    _upload(api_client, "insurer_billing", BILLING_CSV.encode("utf-8"))

    records = api_client.get(
        "/api/records/imotorbike/insurer_billing",
        params={"preset": "custom", "date_from": "2026-01-01", "date_to": "2026-01-31"},
    )
    assert records.status_code == 200
    body = records.json()
    assert body["total_items"] == 1
    assert body["items"][0]["policy_no"] == "P-001"
    assert body["items"][0]["issue_date"] == "2026-01-15"
    assert body["filter_label"] == "Custom (2026-01-01 – 2026-01-31)"
    assert body["options"]["insurer"] == ["Allianz"]
    assert body["version"] == 1

    errors = api_client.get("/api/upload-errors/imotorbike", params={"q": "tan ah"})
    assert errors.status_code == 200
    items = errors.json()["items"]
    assert [i["rejection_reason"] for i in items] == ["Missing insurer"]
    assert items[0]["client_name"] == "Tan Ah Kow"

    audit = api_client.get("/api/audit/imotorbike", params={"time_filter": "7d"})
    assert audit.status_code == 200
    assert audit.json()["items"][0]["event_type"] == "csv_imported"


def test_export_download(api_client, company):
    _upload(api_client, "insurer_billing", BILLING_CSV.encode("utf-8"))

    resp = api_client.get("/api/records/imotorbike/insurer_billing/export", params={"preset": "all_time"})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "insurer_billing_export_" in resp.headers["content-disposition"]
    lines = resp.text.strip().splitlines()
    assert lines[0].startswith("Insurer,Issue Date,Policy No.")
    assert len(lines) == 2


def test_parse_error_is_400(api_client, company):
    resp = _upload(api_client, "insurer_billing", b'Insurer,Issue Date\n"Allianz,2026-01-01\n')
    assert resp.status_code == 400
    assert "CSV parse error" in resp.json()["detail"]


def test_unknown_kind_is_404(api_client, company):
    resp = _upload(api_client, "claims", BILLING_CSV.encode("utf-8"))
    assert resp.status_code == 404


def test_unknown_workflow_is_422(api_client, company):
    resp = _upload(api_client, "ocr", BILLING_CSV.encode("utf-8"), workflow="nowhere")
    assert resp.status_code == 422


def test_missing_company_is_422(api_client):
    resp = _upload(api_client, "ocr", BILLING_CSV.encode("utf-8"))
    assert resp.status_code == 422
    assert "iMotorbike" in resp.json()["detail"]


def test_oversize_upload_is_413(api_client, company, monkeypatch):
    monkeypatch.setenv("IMPORT_MAX_UPLOAD_BYTES", "64")
    resp = _upload(api_client, "insurer_billing", BILLING_CSV.encode("utf-8"))
    assert resp.status_code == 413


def test_store_failure_is_502_with_verbatim_message(api_client, company, monkeypatch):
    def _refuse(*args, **kwargs):
        raise IntegrityError("INSERT ...", {}, Exception('null value in column "company_id"'))

    monkeypatch.setattr(record_store, "insert_batch", _refuse)
    resp = _upload(api_client, "insurer_billing", BILLING_CSV.encode("utf-8"))

    assert resp.status_code == 502
    assert resp.json()["message"] == 'null value in column "company_id"'
    assert resp.json()["detail"]["error"] == "Exception"


def test_billing_insurer_options(api_client, monkeypatch):
    monkeypatch.delenv("BILLING_UPLOAD_INSURERS", raising=False)
    assert api_client.get("/api/imports/insurers").json() == {"insurers": ["Allianz", "Generali"]}
