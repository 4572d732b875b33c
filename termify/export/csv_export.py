from __future__ import annotations

import csv
import io

from termify.documents.models import AnalysisResult

CSV_COLUMNS = [
    "id",
    "title",
    "category",
    "risk",
    "summaryEn",
    "summaryHi",
    "rationale",
    "originalText",
]

CSV_FILENAME = "termify-analysis.csv"


def to_csv(result: AnalysisResult) -> str:
    """Render one row per clause, in id order, under a header row."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    for clause in result.clauses:
        writer.writerow(clause.model_dump(mode="json", by_alias=True))
    return buffer.getvalue()
