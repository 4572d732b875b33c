from __future__ import annotations

import io
import logging

from pypdf import PdfReader

from termify.documents.errors import CorruptDocument, UnsupportedFormat
from termify.storage.store import ObjectStore

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ("pdf", "txt")
KNOWN_EXTENSIONS = ("pdf", "txt", "docx", "doc")


def file_extension(path: str) -> str:
    """Lower-cased text after the last dot of the final path segment, or ''."""
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def _extract_pdf(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    pages_text = [(page.extract_text() or "") for page in reader.pages]
    return "\n".join(pages_text)


def extract(data: bytes, extension: str) -> str:
    """Return the raw text of a document given its bytes and declared extension."""
    ext = extension.lower().lstrip(".")

    if ext == "docx":
        raise UnsupportedFormat(
            "DOCX support coming soon. Please convert to PDF or paste text directly."
        )
    if ext == "doc":
        raise UnsupportedFormat("Legacy DOC format not supported. Please convert to DOCX or PDF.")
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormat()

    try:
        if ext == "pdf":
            text = _extract_pdf(data)
        else:
            text = data.decode("utf-8")
    except Exception as exc:
        logger.error("Error parsing %s document: %s", ext, exc)
        raise CorruptDocument() from exc

    logger.info("Extracted text from %s: %d characters", ext.upper(), len(text))
    return text


async def extract_staged(store: ObjectStore, path: str) -> str:
    """Download a staged upload, extract its text, and always remove the staged copy."""
    logger.info("Downloading and parsing file: %s", path)
    try:
        data = await store.download(path)
        return extract(data, file_extension(path))
    finally:
        try:
            await store.remove(path)
        except Exception as exc:
            logger.warning("Failed to remove staged file %s: %s", path, exc)
