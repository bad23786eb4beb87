from __future__ import annotations

import os
from typing import Dict, List

DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://127.0.0.1:5173"]
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_WORKFLOW_COMPANIES = "imotorbike=iMotorbike"
DEFAULT_BILLING_UPLOAD_INSURERS = "Allianz,Generali"


def _split_csv(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def cors_origins() -> List[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS")
    origins = list(DEFAULT_CORS_ORIGINS) if raw is None else _split_csv(raw)
    if not origins:
        raise RuntimeError("CORS_ALLOW_ORIGINS must not be empty.")
    return origins


def max_upload_bytes() -> int:
    raw = os.getenv("IMPORT_MAX_UPLOAD_BYTES")
    if not raw:
        return DEFAULT_MAX_UPLOAD_BYTES
    try:
        value = int(raw)
    except ValueError as e:
        raise RuntimeError(f"IMPORT_MAX_UPLOAD_BYTES must be an integer, got {raw!r}") from e
    if value <= 0:
        raise RuntimeError("IMPORT_MAX_UPLOAD_BYTES must be positive.")
    return value


def workflow_company_names() -> Dict[str, str]:
    """
    WORKFLOW_COMPANIES="imotorbike=iMotorbike,other=Other Co" -> {workflow: company name}.
    Workflow keys are lowercased.
    """
    raw = os.getenv("WORKFLOW_COMPANIES") or DEFAULT_WORKFLOW_COMPANIES
    out: Dict[str, str] = {}
    for pair in _split_csv(raw):
        workflow, sep, name = pair.partition("=")
        if not sep or not workflow.strip() or not name.strip():
            raise RuntimeError(f"WORKFLOW_COMPANIES entry must look like workflow=Company Name, got {pair!r}")
        out[workflow.strip().lower()] = name.strip()
    return out


def billing_upload_insurers() -> List[str]:
    raw = os.getenv("BILLING_UPLOAD_INSURERS")
    return _split_csv(raw if raw is not None else DEFAULT_BILLING_UPLOAD_INSURERS)
