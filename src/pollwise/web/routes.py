# src/pollwise/web/routes.py
from fastapi import APIRouter, Depends, HTTPException

from pollwise.analysis import (
    GatewayError,
    InvalidInputError,
    PollBiasAnalyzer,
    get_analyzer,
)
from pollwise.core.logs import get_logger
from pollwise.models import AnalysisResult, AnalyzeBiasRequest

logger = get_logger(__name__)

# Create the router
router = APIRouter()


@router.post(
    "/api/polls/analyze-bias",
    response_model=AnalysisResult,
    response_model_exclude_none=True,
)
async def analyze_bias(
    request: AnalyzeBiasRequest,
    analyzer: PollBiasAnalyzer = Depends(get_analyzer),
) -> AnalysisResult:
    """Flag biased and ungrammatical spans in a poll message."""
    try:
        return await analyzer.analyze_text(request.poll_text, request.user_id)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except GatewayError as e:
        logger.error("Poll bias analysis failed: %s", e)
        raise HTTPException(status_code=502, detail=e.message) from e
