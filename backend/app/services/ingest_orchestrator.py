from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.intake.dedup import SeenKeys
from backend.app.intake.errors import MissingContextError, StoreInsertError
from backend.app.intake.ingest import decode_upload, parse_csv_text
from backend.app.intake.kinds import kind_spec
from backend.app.intake.pipeline import build_partition
from backend.app.models import Company
from backend.app.services import audit_service, record_store, view_cache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestContext:
    company_id: Optional[str]
    kind: str
    workflow: Optional[str] = None
    insurer: Optional[str] = None


def import_message(imported: int, rejected: int) -> str:
    message = f"{imported} row(s) imported."
    if rejected:
        message += f" {rejected} row(s) skipped (see Errors tab)."
    return message


def _store_error(exc: SQLAlchemyError) -> StoreInsertError:
    # the driver's own message is what an operator needs; keep it verbatim
    orig = getattr(exc, "orig", None)
    message = str(orig) if orig is not None else str(exc)
    detail: Dict[str, Any] = {"error": type(orig if orig is not None else exc).__name__}
    statement = getattr(exc, "statement", None)
    if statement:
        detail["statement"] = statement
    return StoreInsertError(message, detail=detail)


def _require_context(db: Session, context: IngestContext) -> Company:
    if not context.company_id:
        raise MissingContextError("no company selected for this upload")
    company = db.get(Company, context.company_id)
    if company is None:
        raise MissingContextError(f"company '{context.company_id}' does not exist")
    return company


def ingest_csv(
    db: Session,
    *,
    context: IngestContext,
    data: Optional[bytes] = None,
    text: Optional[str] = None,
    file_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Import one CSV file into the store.

    Order is fixed: context check, parse, classify, valid batch, quarantine
    batch, audit, commit, view notification. A parse error or a refused
    valid batch aborts with nothing written. A refused quarantine batch is
    logged and the import still succeeds.

    Raises:
        MissingContextError: no resolvable company (checked before the file is read).
        CsvParseError: the file is not valid CSV.
        StoreInsertError: the valid batch was refused; message/detail verbatim.
    """
    company = _require_context(db, context)
    spec = kind_spec(context.kind)

    if text is None:
        text = decode_upload(data or b"")
    parsed = parse_csv_text(text)

    seen: Optional[SeenKeys] = None
    if spec.deduplicate:
        seen = SeenKeys.from_pairs(
            record_store.existing_ocr_pairs(db, company_id=company.id, workflow=context.workflow)
        )

    partition = build_partition(
        spec.kind,
        parsed,
        selected_insurer=context.insurer,
        file_name=file_name,
        seen=seen,
    )

    try:
        with db.begin_nested():
            imported = record_store.insert_batch(
                db,
                spec.kind,
                partition.valid,
                company_id=company.id,
                workflow=context.workflow,
            )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "valid batch refused kind=%s company_id=%s file=%s rows=%s: %s",
            spec.kind,
            company.id,
            file_name,
            len(partition.valid),
            exc,
        )
        raise _store_error(exc) from exc

    quarantined = 0
    if partition.rejected:
        try:
            with db.begin_nested():
                quarantined = record_store.insert_rejected(
                    db,
                    partition.rejected,
                    company_id=company.id,
                    workflow=context.workflow,
                    source=spec.kind,
                    file_name=file_name,
                )
        except SQLAlchemyError:
            logger.warning(
                "quarantine insert failed kind=%s company_id=%s file=%s rows=%s",
                spec.kind,
                company.id,
                file_name,
                len(partition.rejected),
                exc_info=True,
            )

    rejected = len(partition.rejected)
    audit_row = audit_service.log_audit_event(
        db,
        company_id=company.id,
        workflow=context.workflow,
        event_type="csv_imported",
        actor="system",
        reason="ingest_orchestrator",
        before=None,
        after={
            "kind": spec.kind,
            "file_name": file_name,
            "imported_count": imported,
            "rejected_count": rejected,
            "quarantined_count": quarantined,
            "blank_rows": partition.blank_rows,
            "total_rows": partition.total_rows,
        },
        message=import_message(imported, rejected),
    )
    db.commit()

    logger.info(
        "csv imported kind=%s company_id=%s file=%s imported=%s rejected=%s blank=%s",
        spec.kind,
        company.id,
        file_name,
        imported,
        rejected,
        partition.blank_rows,
    )

    if imported:
        view_cache.notify(view_cache.ViewScope(kind=spec.kind, company_id=company.id, workflow=context.workflow))
    if quarantined:
        view_cache.notify(view_cache.ViewScope(kind="upload_errors", company_id=company.id, workflow=context.workflow))

    return {
        "imported_count": imported,
        "rejected_count": rejected,
        "quarantined_count": quarantined,
        "blank_rows": partition.blank_rows,
        "message": import_message(imported, rejected),
        "audit_ids": {"csv_imported": audit_row.id},
    }
