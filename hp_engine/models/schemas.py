"""
Pydantic schemas for request/response validation.
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum

from hp_engine.models.analysis import AnalysisResponse, SegmentAnnotation


class FeedbackType(str, Enum):
    """Kinds of researcher feedback."""

    ISSUE = "Issue"
    IMPROVEMENT = "Improvement"


# Credential Schemas
class CredentialUpdateRequest(BaseModel):
    """Schema for saving a new API key."""

    api_key: str = Field(..., min_length=1)


class CredentialStatusResponse(BaseModel):
    """Whether a key is stored; the key itself is never returned."""

    configured: bool
    hint: Optional[str] = None


# Corpus Schemas
class CorpusUpdateRequest(BaseModel):
    """Schema for replacing the corpus text."""

    text: str


class CorpusResponse(BaseModel):
    """Schema for the current corpus text."""

    text: str
    characters: int
    source: Optional[str] = None


# Analysis Schemas
class SummaryCardsResponse(BaseModel):
    """The three figures shown above the narrative."""

    total_sentences: int
    hp_count: int
    tense_switch_ratio: float
    tense_switch_percentage: str


class CategoryCount(BaseModel):
    """One bar of the HP type frequency chart."""

    name: str
    count: int


class DashboardResponse(BaseModel):
    """Everything the dashboard renders after (or while) analysing."""

    is_analyzing: bool
    is_exporting: bool
    error: Optional[str] = None
    analysis: Optional[AnalysisResponse] = None
    cards: Optional[SummaryCardsResponse] = None
    chart: List[CategoryCount] = []
    categories: List[str] = []


class SegmentListResponse(BaseModel):
    """Annotation table rows after applying the category filter."""

    category: str
    total: int
    segments: List[SegmentAnnotation]


# Feedback Schemas
class FeedbackRequest(BaseModel):
    """Schema for researcher feedback."""

    feedback_type: FeedbackType = FeedbackType.IMPROVEMENT
    description: str = Field(..., min_length=1, max_length=5000)


class FeedbackResponse(BaseModel):
    """Acknowledgement for submitted feedback."""

    received: bool = True
    message: str = "Your feedback helps improve the Shahmukhi HP Engine."


# Health Schemas
class HealthCheckResponse(BaseModel):
    """Schema for health check response."""

    status: str
    model: str
    credential: str
    timestamp: datetime
    details: Optional[Dict[str, str]] = None
