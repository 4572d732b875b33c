from __future__ import annotations

import logging

from pydantic import ValidationError

from termify.documents.errors import (
    InputTooShort,
    SegmentationParseError,
    SegmentationServiceError,
)
from termify.documents.models import MIN_DOCUMENT_CHARS, SegmentedClause
from termify.llm.client import ChatClient, UpstreamError, UpstreamResponseError
from termify.llm.parsing import JsonShape, extract_json

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are a legal document analyzer. Your task is to segment legal documents into distinct clauses.

For each clause, provide:
1. A descriptive title
2. The exact original text from the document
3. A category (e.g., "Privacy & Data", "Billing & Payments", "Liability", "Account Management", "Legal")

Return the result as a JSON array of objects with fields: title, originalText, category.
Identify 3-7 major clauses from the document.
"""

EXPECTED_MIN_CLAUSES = 3
EXPECTED_MAX_CLAUSES = 7


def check_length(document_text: str) -> None:
    """Reject documents shorter than the minimum once surrounding whitespace is trimmed."""
    if len(document_text.strip()) < MIN_DOCUMENT_CHARS:
        raise InputTooShort()


def build_user_message(document_text: str) -> str:
    return f"Segment this legal document into clauses:\n\n{document_text}"


def parse_segments(reply: str) -> list[SegmentedClause]:
    """Turn the model's reply into clauses or raise SegmentationParseError."""
    extraction = extract_json(reply, JsonShape.ARRAY)
    if not extraction.ok:
        logger.error("Failed to parse segmentation result: %s", extraction.error)
        raise SegmentationParseError()

    if not extraction.value:
        logger.error("Segmentation returned no clauses")
        raise SegmentationParseError()

    try:
        clauses = [SegmentedClause.model_validate(item) for item in extraction.value]
    except ValidationError as exc:
        logger.error("Segmentation result has malformed clauses: %s", exc)
        raise SegmentationParseError() from exc

    if not EXPECTED_MIN_CLAUSES <= len(clauses) <= EXPECTED_MAX_CLAUSES:
        logger.warning(
            "Segmentation returned %d clauses, outside the requested %d-%d range",
            len(clauses),
            EXPECTED_MIN_CLAUSES,
            EXPECTED_MAX_CLAUSES,
        )
    return clauses


async def segment(
    document_text: str, client: ChatClient, temperature: float = 0.3
) -> list[SegmentedClause]:
    """Split a document into clauses with one model request."""
    check_length(document_text)

    try:
        reply = await client.complete(SYSTEM_PROMPT, build_user_message(document_text), temperature)
    except UpstreamError as exc:
        logger.error("Segmentation API error: %s %.500s", exc.status, exc.body)
        raise SegmentationServiceError(exc.status, exc.body) from exc
    except UpstreamResponseError as exc:
        logger.error("Segmentation API returned an unusable envelope: %s", exc)
        raise SegmentationParseError() from exc

    clauses = parse_segments(reply)
    logger.info("Segmented into %d clauses", len(clauses))
    return clauses
