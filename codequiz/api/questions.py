"""
Admin endpoints for question authoring
"""
from typing import Optional

from fastapi import APIRouter, Depends

from codequiz import state
from codequiz.api.auth import AuthContext, require_admin
from codequiz.api.errors import to_http
from codequiz.core.errors import QuizError
from codequiz.core.questions import (
    create_question, delete_question, get_question, list_questions, update_question
)
from codequiz.models import Question, QuestionIn


router = APIRouter(prefix="/admin/questions", tags=["questions"], dependencies=[Depends(require_admin)])


@router.post("", status_code=201, response_model=Question)
async def create_question_endpoint(payload: QuestionIn):
    """
    Admin: Create a question

    Request (mcq):
        {
            "title": "Which keyword defines a generator?",
            "type": "mcq",
            "options": ["return", "yield"],
            "correct_option_index": 1,
            "points": 5,
            "time_limit": 120
        }
    """
    return create_question(state.STORE, payload, state.SETTINGS.default_time_limit)


@router.get("")
async def list_questions_endpoint(type: Optional[str] = None):
    """List all questions, newest first"""
    questions = list_questions(state.STORE, type)
    return {"questions": questions, "total": len(questions)}


@router.get("/{question_id}", response_model=Question)
async def get_question_endpoint(question_id: str):
    try:
        return get_question(state.STORE, question_id)
    except QuizError as exc:
        raise to_http(exc) from exc


@router.put("/{question_id}", response_model=Question)
async def update_question_endpoint(question_id: str, payload: QuestionIn):
    try:
        return update_question(state.STORE, question_id, payload, state.SETTINGS.default_time_limit)
    except QuizError as exc:
        raise to_http(exc) from exc


@router.delete("/{question_id}")
async def delete_question_endpoint(question_id: str, auth: AuthContext = Depends(require_admin)):
    try:
        delete_question(state.STORE, question_id)
    except QuizError as exc:
        raise to_http(exc) from exc
    return {"success": True, "message": f"Question {question_id} deleted by {auth.email}"}
