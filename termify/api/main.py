from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from termify.api.cors import ALLOWED_HEADERS, EmptyPreflightCORSMiddleware
from termify.api.errors import (
    termify_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from termify.api.routes_analyze import router as analyze_router
from termify.api.routes_documents import router as documents_router
from termify.api.routes_export import router as export_router
from termify.documents.errors import TermifyError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Termify",
    version="0.1.0",
    description="Clause-by-clause risk breakdown of EULAs and Terms of Service",
)

app.add_middleware(
    EmptyPreflightCORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=ALLOWED_HEADERS,
)

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(TermifyError, termify_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)
app.include_router(analyze_router)
app.include_router(documents_router)
app.include_router(export_router)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
