from __future__ import annotations

import logging
import re
import time

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from termify.api.deps import get_settings, get_store
from termify.api.errors import ErrorBody
from termify.documents.errors import FileTooLarge, UnsupportedFormat
from termify.documents.extractor import KNOWN_EXTENSIONS, file_extension
from termify.settings.config import TermifySettings
from termify.storage.store import ObjectStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])

STAGING_PREFIX = "temp"
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class StagedDocument(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    file_path: str


def staging_path(filename: str, now_ms: int | None = None) -> str:
    """temp/<epoch-millis>-<sanitized filename>"""
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    name = _UNSAFE_CHARS.sub("_", filename.rsplit("/", 1)[-1]).strip("._") or "document"
    return f"{STAGING_PREFIX}/{timestamp}-{name}"


@router.post(
    "",
    response_model=StagedDocument,
    status_code=201,
    responses={400: {"model": ErrorBody}, 500: {"model": ErrorBody}},
)
async def stage_document(
    file: UploadFile = File(...),
    settings: TermifySettings = Depends(get_settings),
    store: ObjectStore = Depends(get_store),
) -> StagedDocument:
    """Stage an upload for a later POST /analyze-document with filePath."""
    filename = file.filename or ""
    if file_extension(filename) not in KNOWN_EXTENSIONS:
        raise UnsupportedFormat("Please upload a PDF, DOCX, or TXT file")

    data = await file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise FileTooLarge()

    path = staging_path(filename)
    await store.upload(path, data)
    logger.info("Staged %d bytes at %s", len(data), path)
    return StagedDocument(file_path=path)
