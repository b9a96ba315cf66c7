"""Team registration endpoints"""
from fastapi import APIRouter

from codequiz import state
from codequiz.api.errors import to_http
from codequiz.core.errors import QuizError
from codequiz.models import JoinRequest, Team
from codequiz.services.team_registry import list_teams, register_team


router = APIRouter(prefix="/sessions/{session_id}/teams", tags=["teams"])


@router.post("", status_code=201)
async def register(session_id: str, payload: JoinRequest):
    try:
        info = register_team(state.STORE, session_id, payload.team_name)
    except QuizError as exc:
        raise to_http(exc) from exc
    return {
        **info,
        "message": "Team registered. Keep your team_id to submit answers."
    }


@router.get("")
async def teams(session_id: str):
    try:
        return {"teams": [Team(**t) for t in list_teams(state.STORE, session_id)]}
    except QuizError as exc:
        raise to_http(exc) from exc
