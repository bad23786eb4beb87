from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backend.app.api import config
from backend.app.intake.errors import MissingContextError
from backend.app.models import Company

logger = logging.getLogger(__name__)


def find_company_by_name(db: Session, name: str) -> Optional[Company]:
    # case-insensitive, matching how operators type company names
    return (
        db.execute(
            select(Company)
            .where(func.lower(Company.name) == name.strip().lower())
            .order_by(Company.created_at.asc())
            .limit(1)
        )
        .scalars()
        .first()
    )


def company_for_workflow(db: Session, workflow: str) -> Company:
    workflow_key = (workflow or "").strip().lower()
    name = config.workflow_company_names().get(workflow_key)
    if not name:
        raise MissingContextError(f"no company is configured for workflow '{workflow}'")
    company = find_company_by_name(db, name)
    if not company:
        raise MissingContextError(f"company '{name}' for workflow '{workflow}' does not exist")
    return company


def ensure_company(db: Session, name: str) -> Company:
    """Get-or-create by name. Flushes; the caller commits."""
    company = find_company_by_name(db, name)
    if company:
        return company
    company = Company(name=name.strip())
    db.add(company)
    db.flush()
    logger.info("created company name=%s id=%s", company.name, company.id)
    return company
