from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys

import pytest
from fastapi import HTTPException

sys.path.append(str(Path(__file__).resolve().parents[2]))

from backend.app.models import AuditLog
from backend.app.services import audit_service

NOW = datetime(2026, 2, 14, 12, 0, tzinfo=timezone.utc)


def _event(db_session, company, *, days_ago=0, event_type="csv_imported", reason="ingest_orchestrator"):
    row = audit_service.log_audit_event(
        db_session,
        company_id=company.id,
        workflow="imotorbike",
        event_type=event_type,
        actor="system",
        reason=reason,
        after={"imported_count": 1},
    )
    row.created_at = (NOW - timedelta(days=days_ago)).replace(tzinfo=None)
    db_session.flush()
    return row


def test_log_audit_event_persists(db_session, company):
    row = _event(db_session, company)
    db_session.commit()

    stored = db_session.get(AuditLog, row.id)
    assert stored.event_type == "csv_imported"
    assert stored.after_state == {"imported_count": 1}


@pytest.mark.parametrize("time_filter, expected", [("all", 3), ("30d", 2), ("7d", 1)])
def test_time_filters(db_session, company, time_filter, expected):
    _event(db_session, company, days_ago=1)
    _event(db_session, company, days_ago=10)
    _event(db_session, company, days_ago=45)
    db_session.commit()

    result = audit_service.list_audit_events(db_session, company.id, time_filter=time_filter, now=NOW)
    assert result["total_items"] == expected


def test_audit_pages_hold_ten(db_session, company):
    for i in range(23):
        _event(db_session, company, days_ago=i % 5)
    db_session.commit()

    first = audit_service.list_audit_events(db_session, company.id, now=NOW)
    last = audit_service.list_audit_events(db_session, company.id, page=3, now=NOW)

    assert first["page_size"] == 10
    assert len(first["items"]) == 10
    assert first["total_pages"] == 3
    assert len(last["items"]) == 3
    assert first["items"][0]["created_at"] >= first["items"][-1]["created_at"]


def test_search_matches_event_type_actor_and_reason(db_session, company):
    _event(db_session, company, event_type="csv_imported")
    _event(db_session, company, event_type="company_created", reason="dev_reset_db")
    db_session.commit()

    by_reason = audit_service.list_audit_events(db_session, company.id, search="RESET", now=NOW)
    by_actor = audit_service.list_audit_events(db_session, company.id, search="system", now=NOW)

    assert [i["event_type"] for i in by_reason["items"]] == ["company_created"]
    assert by_actor["total_items"] == 2


def test_invalid_time_filter(db_session, company):
    with pytest.raises(HTTPException) as exc:
        audit_service.list_audit_events(db_session, company.id, time_filter="1y")
    assert exc.value.status_code == 400
