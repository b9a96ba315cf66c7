"""
Leaderboard endpoints
"""
from fastapi import APIRouter

from codequiz import state
from codequiz.api.errors import to_http
from codequiz.core.errors import QuizError
from codequiz.services.leaderboard import get_leaderboard_data


router = APIRouter(tags=["leaderboard"])


@router.get("/sessions/{session_id}/leaderboard")
async def leaderboard(session_id: str):
    """
    Ranked teams for a session

    Scores reflect the last final-score update.
    """
    try:
        return get_leaderboard_data(state.STORE, session_id)
    except QuizError as exc:
        raise to_http(exc) from exc
