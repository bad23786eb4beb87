import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api import config
from backend.app.api.routes.audit import router as audit_router
from backend.app.api.routes.imports import router as imports_router
from backend.app.api.routes.records import router as records_router
from backend.app.api.routes.upload_errors import router as upload_errors_router


logger = logging.getLogger(__name__)

LOCAL_DEV_ORIGINS = ("http://localhost:5173", "http://127.0.0.1:5173")


def _cors_origins() -> list[str]:
    origins = config.cors_origins()
    if not any(origin in origins for origin in LOCAL_DEV_ORIGINS):
        logger.warning("CORS allowlist does not include local dev origins: %s", origins)
    return origins


app = FastAPI(title="Back Office Intake API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(imports_router)
app.include_router(records_router)
app.include_router(upload_errors_router)
app.include_router(audit_router)
