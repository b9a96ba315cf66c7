"""
Health check and system status endpoints
"""
from fastapi import APIRouter

from codequiz import state
from codequiz.core.questions import list_questions
from codequiz.core.session import list_sessions


router = APIRouter(tags=["health"])


@router.get("/")
async def health_check():
    """Health check endpoint"""
    active = list_sessions(state.STORE, status="active")
    return {
        "status": "ok",
        "message": "Code Quiz Server",
        "version": "1.0.0",
        "total_questions": len(list_questions(state.STORE)),
        "active_session_id": active[0]["id"] if active else None,
    }
