"""Analysis and schema models for the Shahmukhi HP Engine."""
from hp_engine.models.analysis import (
    AnalysisResponse,
    AnalysisSummary,
    HPCategory,
    SegmentAnnotation,
    Tense,
)
from hp_engine.models.schemas import (
    CorpusResponse,
    CredentialStatusResponse,
    DashboardResponse,
    FeedbackRequest,
    FeedbackResponse,
    HealthCheckResponse,
    SegmentListResponse,
)

__all__ = [
    # Analysis models
    "AnalysisResponse",
    "AnalysisSummary",
    "HPCategory",
    "SegmentAnnotation",
    "Tense",
    # Pydantic schemas
    "CorpusResponse",
    "CredentialStatusResponse",
    "DashboardResponse",
    "FeedbackRequest",
    "FeedbackResponse",
    "HealthCheckResponse",
    "SegmentListResponse",
]
