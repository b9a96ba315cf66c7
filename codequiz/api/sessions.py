"""
Session endpoints: admin lifecycle control and the participant read model
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends

from codequiz import state
from codequiz.api.auth import AuthContext, require_admin
from codequiz.api.errors import to_http
from codequiz.core.errors import QuizError
from codequiz.core.session import (
    activate_session, complete_session, create_session, delete_session,
    get_session, get_session_state, list_sessions, unlock_next_question
)
from codequiz.models import Session, SessionCreate, TransitionRequest


logger = logging.getLogger(__name__)

admin_router = APIRouter(prefix="/admin/sessions", tags=["admin"], dependencies=[Depends(require_admin)])
router = APIRouter(prefix="/sessions", tags=["sessions"])


# ==================== ADMIN ====================

@admin_router.post("", status_code=201, response_model=Session)
async def create_session_endpoint(payload: SessionCreate, auth: AuthContext = Depends(require_admin)):
    """
    Admin: Create a pending session

    Request:
        {"name": "Dev Day 2025", "question_ids": ["<id>", "<id>"]}
    """
    try:
        session = create_session(state.STORE, payload.name, payload.question_ids)
    except QuizError as exc:
        raise to_http(exc) from exc
    logger.info(f"Session {session['id']} created by {auth.email}")
    return session


@admin_router.get("")
async def list_sessions_endpoint(status: Optional[str] = None):
    sessions = list_sessions(state.STORE, status)
    return {
        "sessions": sessions,
        "total_active": len([s for s in sessions if s["status"] == "active"]),
    }


@admin_router.get("/{session_id}", response_model=Session)
async def get_session_endpoint(session_id: str):
    try:
        return get_session(state.STORE, session_id)
    except QuizError as exc:
        raise to_http(exc) from exc


@admin_router.post("/{session_id}/activate", response_model=Session)
async def activate_session_endpoint(session_id: str, request: Optional[TransitionRequest] = None):
    """Admin: Force a session to active (other active sessions go back to pending)"""
    try:
        return activate_session(state.STORE, session_id, _version(request))
    except QuizError as exc:
        raise to_http(exc) from exc


@admin_router.post("/{session_id}/unlock-next")
async def unlock_next_endpoint(session_id: str, request: Optional[TransitionRequest] = None):
    """
    Admin: Unlock the next question

    Unlocking past the last question completes the session.
    """
    try:
        session = unlock_next_question(state.STORE, session_id, _version(request))
    except QuizError as exc:
        raise to_http(exc) from exc
    return {
        "session": session,
        "completed": session["status"] == "completed",
    }


@admin_router.post("/{session_id}/complete", response_model=Session)
async def complete_session_endpoint(session_id: str, request: Optional[TransitionRequest] = None):
    try:
        return complete_session(state.STORE, session_id, _version(request))
    except QuizError as exc:
        raise to_http(exc) from exc


@admin_router.delete("/{session_id}")
async def delete_session_endpoint(session_id: str, auth: AuthContext = Depends(require_admin)):
    """Admin: Delete a session with its teams and submissions"""
    try:
        removed = delete_session(state.STORE, session_id)
    except QuizError as exc:
        raise to_http(exc) from exc
    logger.info(f"Session {session_id} deleted by {auth.email}")
    return {"success": True, "deleted": removed}


def _version(request: Optional[TransitionRequest]) -> Optional[int]:
    return request.expected_version if request else None


# ==================== PARTICIPANT ====================

@router.get("/active")
async def list_active_sessions():
    """Sessions that teams can currently join"""
    sessions = list_sessions(state.STORE, status="active")
    return {"sessions": [{"id": s["id"], "name": s["name"]} for s in sessions]}


@router.get("/{session_id}")
async def get_session_state_endpoint(session_id: str):
    """Current status, advisory timer and question (without answer key)"""
    try:
        return get_session_state(state.STORE, session_id)
    except QuizError as exc:
        raise to_http(exc) from exc
