from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

MIN_DOCUMENT_CHARS = 100


class RiskTier(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def normalize(cls, value: object) -> RiskTier:
        """Map a model-supplied risk label onto a tier. Unknown labels become MEDIUM."""
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.MEDIUM


class _WireModel(BaseModel):
    """Base for payloads exchanged with the browser: camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyzeRequest(_WireModel):
    """Body of POST /analyze-document. Exactly one of text / filePath."""

    text: Optional[str] = None
    file_path: Optional[str] = None

    @model_validator(mode="after")
    def exactly_one_source(self) -> AnalyzeRequest:
        has_text = bool(self.text)
        has_path = bool(self.file_path)
        if has_text == has_path:
            raise ValueError("Provide exactly one of text or filePath")
        return self


class SegmentedClause(_WireModel):
    """One clause as delimited by the segmentation step."""

    title: str
    original_text: str
    category: str

    model_config = ConfigDict(frozen=True)


class ClauseAnalysis(_WireModel):
    """Risk assessment and summaries for a single clause."""

    risk: RiskTier = RiskTier.MEDIUM
    summary_en: str
    summary_hi: str
    rationale: str

    model_config = ConfigDict(frozen=True)


FALLBACK_ANALYSIS = ClauseAnalysis(
    risk=RiskTier.MEDIUM,
    summary_en="Analysis unavailable",
    summary_hi="विश्लेषण उपलब्ध नहीं",
    rationale="Unable to assess risk automatically",
)


class Clause(_WireModel):
    """A segmented clause merged with its analysis."""

    id: int = Field(ge=1)
    title: str
    category: str
    original_text: str
    risk: RiskTier
    summary_en: str
    summary_hi: str
    rationale: str

    model_config = ConfigDict(frozen=True)


class Statistics(_WireModel):
    total_clauses: int = Field(ge=0)
    high_risk: int = Field(ge=0)
    medium_risk: int = Field(ge=0)
    low_risk: int = Field(ge=0)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def tally(cls, clauses: list[Clause]) -> Statistics:
        return cls(
            total_clauses=len(clauses),
            high_risk=sum(1 for c in clauses if c.risk == RiskTier.HIGH),
            medium_risk=sum(1 for c in clauses if c.risk == RiskTier.MEDIUM),
            low_risk=sum(1 for c in clauses if c.risk == RiskTier.LOW),
        )


class AnalysisResult(_WireModel):
    """Ordered clauses plus statistics derived from them."""

    clauses: list[Clause]
    statistics: Statistics

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def statistics_match_clauses(self) -> AnalysisResult:
        if self.statistics != Statistics.tally(self.clauses):
            raise ValueError("statistics do not match the clause list")
        ids = [c.id for c in self.clauses]
        if ids != list(range(1, len(ids) + 1)):
            raise ValueError("clause ids must be 1..n in order")
        return self

    @classmethod
    def from_clauses(cls, clauses: list[Clause]) -> AnalysisResult:
        return cls(clauses=clauses, statistics=Statistics.tally(clauses))
