"""HTTP access to the answer-scoring assistant."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..auth import get_current_active_user
from ..errors import AIServiceError
from ..models import User
from .client import AIClient, get_ai_client
from .flows import ScoreAnswerInput, ScoreAnswerOutput, score_answer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["AI"])


@router.post("/score", response_model=ScoreAnswerOutput)
async def score_student_answer(
    request: ScoreAnswerInput,
    current_user: User = Depends(get_current_active_user),
    ai_client: AIClient = Depends(get_ai_client),
):
    """Suggest a score and feedback for a free-text answer."""
    if not current_user.is_teacher:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only teachers can score answers")
    try:
        return await score_answer(ai_client, request)
    except AIServiceError as e:
        logger.error(f"Scoring failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Scoring Failed: {e}")
