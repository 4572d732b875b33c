from __future__ import annotations

from fastapi import APIRouter, Depends

from termify.analysis.pipeline import AnalysisPipeline
from termify.api.deps import get_pipeline
from termify.api.errors import ErrorBody
from termify.documents.models import AnalysisResult, AnalyzeRequest

router = APIRouter(tags=["analysis"])


@router.post(
    "/analyze-document",
    response_model=AnalysisResult,
    status_code=200,
    responses={400: {"model": ErrorBody}, 500: {"model": ErrorBody}},
)
async def analyze_document(
    request: AnalyzeRequest,
    pipeline: AnalysisPipeline = Depends(get_pipeline),
) -> AnalysisResult:
    """Clause-by-clause risk breakdown of pasted text or a staged upload."""
    return await pipeline.run(request)
