from __future__ import annotations

import asyncio
import logging
from typing import Any

from termify.documents.models import (
    FALLBACK_ANALYSIS,
    ClauseAnalysis,
    RiskTier,
    SegmentedClause,
)
from termify.llm.client import ChatClient
from termify.llm.parsing import JsonShape, extract_json

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are a legal document risk analyzer. Analyze clauses and provide:

1. risk: "high", "medium", or "low"
   - HIGH: Broad data sharing without consent, unexpected fees, one-sided terms, severe liability limitations, difficult cancellation
   - MEDIUM: Auto-renewal with advance notice, standard liability clauses, reasonable restrictions
   - LOW: Standard terms, fair termination, clear jurisdiction

2. summaryEn: 1-2 sentence plain English summary (max 150 chars)
3. summaryHi: Same summary in Hindi (max 200 chars)
4. rationale: 1-2 sentence explanation of the risk assessment

Return as JSON with fields: risk, summaryEn, summaryHi, rationale
"""

_TEXT_FIELDS = ("summaryEn", "summaryHi", "rationale")


def build_user_message(clause: SegmentedClause) -> str:
    return (
        "Analyze this legal clause:\n\n"
        f"Title: {clause.title}\n"
        f"Category: {clause.category}\n\n"
        f"Clause: {clause.original_text}"
    )


def parse_analysis(reply: str) -> ClauseAnalysis | None:
    """Parse a model reply into a ClauseAnalysis, or None when it is unusable.

    An unrecognized risk label is treated as medium; missing summaries or
    rationale make the whole reply unusable.
    """
    extraction = extract_json(reply, JsonShape.OBJECT)
    if not extraction.ok:
        logger.warning("Unparsable clause analysis: %s", extraction.error)
        return None

    data: dict[str, Any] = extraction.value
    missing = [f for f in _TEXT_FIELDS if not isinstance(data.get(f), str)]
    if missing:
        logger.warning("Clause analysis missing fields: %s", ", ".join(missing))
        return None

    return ClauseAnalysis(
        risk=RiskTier.normalize(data.get("risk")),
        summary_en=data["summaryEn"],
        summary_hi=data["summaryHi"],
        rationale=data["rationale"],
    )


async def analyze(
    clause: SegmentedClause,
    client: ChatClient,
    temperature: float = 0.2,
    position: int = 0,
) -> ClauseAnalysis:
    """Assess one clause. Never raises: failures degrade to FALLBACK_ANALYSIS."""
    try:
        reply = await client.complete(SYSTEM_PROMPT, build_user_message(clause), temperature)
    except Exception as exc:
        logger.error("Failed to analyze clause %d (%s): %s", position, clause.title, exc)
        return FALLBACK_ANALYSIS

    analysis = parse_analysis(reply)
    if analysis is None:
        logger.warning("Failed to parse analysis for clause %d (%s)", position, clause.title)
        return FALLBACK_ANALYSIS
    return analysis


async def analyze_all(
    clauses: list[SegmentedClause],
    client: ChatClient,
    temperature: float = 0.2,
) -> list[ClauseAnalysis]:
    """Analyze every clause concurrently; results come back in input order."""
    async with asyncio.TaskGroup() as group:
        tasks = [
            group.create_task(analyze(clause, client, temperature, position=idx))
            for idx, clause in enumerate(clauses, start=1)
        ]
    return [task.result() for task in tasks]
