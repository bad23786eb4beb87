from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from backend.app.api import config
from backend.app.api.deps import require_kind, workflow_company
from backend.app.db import get_db
from backend.app.intake.errors import CsvParseError, MissingContextError, StoreInsertError
from backend.app.models import Company
from backend.app.services import ingest_orchestrator
from backend.app.services.ingest_orchestrator import IngestContext

router = APIRouter(prefix="/api/imports", tags=["imports"])

logger = logging.getLogger(__name__)


class ImportResultOut(BaseModel):
    imported_count: int
    rejected_count: int
    blank_rows: int
    message: str


class InsurerOptionsOut(BaseModel):
    insurers: List[str]


@router.get("/insurers", response_model=InsurerOptionsOut)
def list_billing_insurers():
    """Insurers offered in the billing upload picker."""
    return InsurerOptionsOut(insurers=config.billing_upload_insurers())


@router.post("/{workflow}/{kind}", response_model=ImportResultOut)
async def import_csv(
    workflow: str,
    kind: str,
    file: UploadFile = File(...),
    insurer: Optional[str] = Form(None),
    company: Company = Depends(workflow_company),
    db: Session = Depends(get_db),
):
    record_kind = require_kind(kind)

    data = await file.read()
    limit = config.max_upload_bytes()
    if len(data) > limit:
        logger.warning("upload over limit workflow=%s kind=%s bytes=%s limit=%s", workflow, record_kind, len(data), limit)
        raise HTTPException(status_code=413, detail=f"File too large (max {limit} bytes)")

    context = IngestContext(
        company_id=company.id,
        kind=record_kind,
        workflow=workflow.strip().lower(),
        insurer=insurer,
    )
    try:
        result = await run_in_threadpool(
            ingest_orchestrator.ingest_csv,
            db,
            context=context,
            data=data,
            file_name=file.filename,
        )
    except CsvParseError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except MissingContextError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except StoreInsertError as e:
        return JSONResponse(status_code=502, content={"message": e.message, "detail": e.detail})

    return ImportResultOut(
        imported_count=result["imported_count"],
        rejected_count=result["rejected_count"],
        blank_rows=result["blank_rows"],
        message=result["message"],
    )
