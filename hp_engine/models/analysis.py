"""
Analysis data model returned by the remote model.

Field aliases are the camelCase names used on the wire (request schema and
JSON response), attribute names are snake_case.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Tense(str, Enum):
    """Closed set of inferred tenses."""

    PAST = "Past"
    PRESENT_HP = "Historical Present"
    FUTURE = "Future"
    HABITUAL = "Habitual"


class HPCategory(str, Enum):
    """Closed set of Historical Present categories."""

    NARRATIVE = "Narrative HP"
    QUOTATIVE = "Quotative HP"
    EPISODIC = "Episodic HP"
    VISUALIZING = "Visualizing HP"
    INTERNAL_EVAL = "Internal Evaluation"
    NONE = "None"


class SegmentAnnotation(BaseModel):
    """One logical narrative sentence and its annotation."""

    original_text: str = Field(..., alias="originalText", min_length=1)
    inferred_tense: Tense = Field(..., alias="inferredTense")
    omitted_elements: str = Field(..., alias="omittedElements")
    hp_category: HPCategory = Field(..., alias="hpCategory")
    reasoning: str
    contextual_metadata: Optional[str] = Field(None, alias="contextualMetadata")
    position: int

    model_config = ConfigDict(populate_by_name=True)


class AnalysisSummary(BaseModel):
    """Aggregate counts, trusted verbatim from the oracle."""

    total_sentences: int = Field(..., alias="totalSentences")
    hp_count: int = Field(..., alias="hpCount")
    tense_switch_ratio: float = Field(..., alias="tenseSwitchRatio")

    model_config = ConfigDict(populate_by_name=True)


class AnalysisResponse(BaseModel):
    """Top-level result of one analysis call."""

    summary: AnalysisSummary
    qualitative_analysis: str = Field(..., alias="qualitativeAnalysis")
    sentences: List[SegmentAnnotation]

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def _positions_follow_array_order(self) -> "AnalysisResponse":
        previous: Optional[int] = None
        for segment in self.sentences:
            if previous is not None and segment.position <= previous:
                raise ValueError(
                    f"segment positions must increase in array order "
                    f"(got {segment.position} after {previous})"
                )
            previous = segment.position
        return self
