"""
Submission endpoints: team answers and admin marking
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from codequiz import state
from codequiz.api.auth import AuthContext, require_admin
from codequiz.api.errors import to_http
from codequiz.core.errors import ConflictError, InvalidInputError, QuizError
from codequiz.core.submissions import (
    apply_concise_bonus, group_by_question, list_submissions,
    mark_submission, submit_answer, update_final_scores
)
from codequiz.models import MarkRequest, SubmitRequest, Submission


router = APIRouter(tags=["submission"])
admin_router = APIRouter(prefix="/admin/sessions", tags=["marking"], dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)


@router.post("/sessions/{session_id}/submissions", status_code=201)
async def submit_endpoint(session_id: str, payload: SubmitRequest, request: Request):
    """
    Submit an answer to the session's current question

    Request:
        {
            "team_id": "<id>",
            "question_id": "<id>",          # optional stale-question guard
            "selected_option_index": 1,     # mcq
            "answer": "...",                # qa
            "code": "...",                  # edit_code / concise_code
            "explanation": "...",           # explain_code
            "forced": false                 # true when the countdown ran out
        }

    Response:
        {
            "success": true,
            "status": "correct|incorrect|pending",
            "score": 5,
            "submission_id": "<id>"
        }
    """
    try:
        submission = submit_answer(state.STORE, session_id, payload)
    except (InvalidInputError, ConflictError) as exc:
        client_ip = request.client.host if request.client else "unknown"
        logger.warning(f"⚠️ Submission rejected from {client_ip} | Session {session_id} | {exc}")
        raise to_http(exc) from exc
    except QuizError as exc:
        raise to_http(exc) from exc
    except Exception as e:
        logger.error(
            f"❌ ERROR in submission for session {session_id}\n"
            f"Request Body: {payload.model_dump()}\n"
            f"Error: {str(e)}\n"
            f"Error Type: {type(e).__name__}",
            exc_info=True
        )
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

    messages = {
        "correct": "Correct!",
        "incorrect": "Incorrect.",
        "pending": "Answer received. It will be marked by the host.",
    }
    return {
        "success": True,
        "status": submission["status"],
        "score": submission["score"],
        "submission_id": submission["id"],
        "message": messages.get(submission["status"], "Answer received."),
    }


# ==================== ADMIN MARKING ====================

@admin_router.get("/{session_id}/submissions")
async def list_submissions_endpoint(session_id: str, question_id: Optional[str] = None, grouped: bool = False):
    """All submissions of a session, optionally for one question or grouped per question"""
    try:
        if grouped:
            return {"questions": group_by_question(state.STORE, session_id)}
        submissions = list_submissions(state.STORE, session_id, question_id)
    except QuizError as exc:
        raise to_http(exc) from exc
    return {"submissions": submissions, "total": len(submissions)}


@admin_router.post("/{session_id}/submissions/{submission_id}/mark", response_model=Submission)
async def mark_endpoint(
    session_id: str,
    submission_id: str,
    payload: MarkRequest,
    auth: AuthContext = Depends(require_admin)
):
    """
    Admin: Save rubric star ratings

    Request:
        {"criteria": {"readability": 4, "maintainability": 3, "elegance": 5,
                      "language_knowledge": 4, "simplicity": 2}}
    """
    try:
        submission = mark_submission(
            state.STORE, session_id, submission_id, payload.criteria,
            max_stars=state.SETTINGS.rubric_max_stars,
            weights=state.SETTINGS.rubric_weights
        )
    except QuizError as exc:
        raise to_http(exc) from exc
    logger.info(f"Submission {submission_id} marked by {auth.email}")
    return submission


@admin_router.post("/{session_id}/questions/{question_id}/concise-bonus")
async def concise_bonus_endpoint(session_id: str, question_id: str):
    """Admin: (Re)apply the concise bonus for a concise_code question"""
    try:
        updated = apply_concise_bonus(
            state.STORE, session_id, question_id, state.SETTINGS.concise_bonus_points,
            weights=state.SETTINGS.rubric_weights
        )
    except QuizError as exc:
        raise to_http(exc) from exc
    return {
        "success": True,
        "submissions": updated,
        "message": "Concise code bonuses calculated and applied",
    }


@admin_router.post("/{session_id}/final-scores")
async def final_scores_endpoint(session_id: str):
    """Admin: Overwrite every team's score with the sum of its submission scores"""
    try:
        teams = update_final_scores(state.STORE, session_id)
    except QuizError as exc:
        raise to_http(exc) from exc
    return {"success": True, "teams": teams}
