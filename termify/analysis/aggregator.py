from __future__ import annotations

from termify.documents.models import AnalysisResult, Clause, ClauseAnalysis, SegmentedClause


def aggregate(
    segmented: list[SegmentedClause], analyses: list[ClauseAnalysis]
) -> AnalysisResult:
    """Merge clauses with their analyses and tally risk tiers. Pure, deterministic."""
    if len(segmented) != len(analyses):
        raise ValueError(
            f"got {len(analyses)} analyses for {len(segmented)} segmented clauses"
        )

    clauses = [
        Clause(
            id=idx,
            title=segment.title,
            category=segment.category,
            original_text=segment.original_text,
            risk=analysis.risk,
            summary_en=analysis.summary_en,
            summary_hi=analysis.summary_hi,
            rationale=analysis.rationale,
        )
        for idx, (segment, analysis) in enumerate(zip(segmented, analyses), start=1)
    ]
    return AnalysisResult.from_clauses(clauses)
