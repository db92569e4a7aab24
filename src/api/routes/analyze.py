"""
POST /api/analyze — NVC rating of a piece of conversation.
"""

import logging

from fastapi import APIRouter, Depends

from src.api.dependencies import get_rater
from src.core.models import AnalysisResult, AnalyzeRequest
from src.services.analysis.rater import CommunicationRater

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analysis"])


@router.post("/analyze", response_model=AnalysisResult)
async def analyze(
    body: AnalyzeRequest,
    rater: CommunicationRater = Depends(get_rater),
) -> AnalysisResult:
    """Rate the text against NVC principles and return feedback."""
    result = await rater.rate(body.text)
    logger.info("Analysis: %s (%d chars)", result.rating, len(body.text))
    return result
