"""
Researcher feedback endpoint.  Submissions are logged, not stored.
"""
from fastapi import APIRouter, status
import logging

from hp_engine.models.schemas import FeedbackRequest, FeedbackResponse
from hp_engine.utils.helpers import truncate_text

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=FeedbackResponse, status_code=status.HTTP_202_ACCEPTED)
async def submit_feedback(body: FeedbackRequest) -> FeedbackResponse:
    logger.info(
        "Feedback submitted [%s]: %s",
        body.feedback_type.value,
        truncate_text(body.description.strip(), 300),
    )
    return FeedbackResponse()
