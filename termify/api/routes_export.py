from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response

from termify.documents.models import AnalysisResult
from termify.export.csv_export import CSV_FILENAME, to_csv

router = APIRouter(prefix="/export", tags=["export"])


@router.post("/csv", response_class=Response)
async def export_csv(result: AnalysisResult) -> Response:
    """Download a previously returned analysis as CSV."""
    return Response(
        content=to_csv(result),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={CSV_FILENAME}"},
    )
