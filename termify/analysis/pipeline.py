from __future__ import annotations

import logging
from typing import Optional

from termify.analysis.aggregator import aggregate
from termify.analysis.analyzer import analyze_all
from termify.analysis.segmenter import check_length, segment
from termify.documents.extractor import extract_staged
from termify.documents.models import AnalysisResult, AnalyzeRequest
from termify.llm.client import ChatClient, build_chat_client
from termify.settings.config import TermifySettings
from termify.storage.store import ObjectStore, build_object_store

logger = logging.getLogger(__name__)


class AnalysisPipeline:
    """Extract → segment → analyze each clause → aggregate.

    Everything external (model endpoint, object store) is injected so tests
    can swap in fakes. Collaborators left as None are built from settings on
    first use, so a missing model credential surfaces only after the staged
    upload has been extracted and removed and the text length checked.
    """

    def __init__(
        self,
        settings: TermifySettings,
        client: Optional[ChatClient] = None,
        store: Optional[ObjectStore] = None,
    ) -> None:
        self.settings = settings
        self._client = client
        self._store = store

    @classmethod
    def from_settings(cls, settings: TermifySettings) -> AnalysisPipeline:
        return cls(settings)

    @property
    def client(self) -> ChatClient:
        if self._client is None:
            self._client = build_chat_client(self.settings.llm)
        return self._client

    @property
    def store(self) -> ObjectStore:
        if self._store is None:
            self._store = build_object_store(self.settings.storage)
        return self._store

    async def run_text(self, text: str) -> AnalysisResult:
        check_length(text)
        logger.info("Starting document analysis (%d characters)", len(text))

        segmented = await segment(text, self.client, self.settings.llm.segment_temperature)
        analyses = await analyze_all(
            segmented, self.client, self.settings.llm.analyze_temperature
        )
        result = aggregate(segmented, analyses)

        logger.info("Analysis complete: %s", result.statistics.model_dump(by_alias=True))
        return result

    async def run_staged(self, path: str) -> AnalysisResult:
        text = await extract_staged(self.store, path)
        return await self.run_text(text)

    async def run(self, request: AnalyzeRequest) -> AnalysisResult:
        if request.text:
            return await self.run_text(request.text)
        return await self.run_staged(request.file_path or "")
