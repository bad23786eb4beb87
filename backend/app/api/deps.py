# backend/app/api/deps.py
from __future__ import annotations

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from backend.app.db import get_db
from backend.app.intake.errors import MissingContextError
from backend.app.intake.kinds import RECORD_KINDS
from backend.app.models import Company
from backend.app.services import company_service


def require_kind(kind: str) -> str:
    normalized = (kind or "").strip().lower()
    if normalized not in RECORD_KINDS:
        raise HTTPException(status_code=404, detail=f"unknown record kind '{kind}'")
    return normalized


def workflow_company(
    workflow: str,
    db: Session = Depends(get_db),
) -> Company:
    """
    Resolve the company that owns a workflow's data.

    Used as a dependency so an upload is refused before the orchestrator
    decodes the file when the workflow has no company behind it.
    """
    try:
        return company_service.company_for_workflow(db, workflow)
    except MissingContextError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
