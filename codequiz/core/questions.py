"""
Question catalog backed by the "questions" collection
"""
import logging
import time
from typing import Dict, List, Optional

from codequiz.core.errors import NotFoundError
from codequiz.core.store import DocumentStore
from codequiz.models import QuestionIn


logger = logging.getLogger(__name__)

QUESTIONS = "questions"

# Fields never shown to participants
ANSWER_FIELDS = ("correct_option_index", "correct_answer", "scoring_criteria")


def _to_document(payload: QuestionIn, default_time_limit: int) -> Dict:
    data = payload.model_dump()
    if data.get("time_limit") is None:
        data["time_limit"] = default_time_limit
    data["title"] = data["title"].strip()
    return data


def create_question(store: DocumentStore, payload: QuestionIn, default_time_limit: int = 300) -> Dict:
    data = _to_document(payload, default_time_limit)
    data["created_at"] = time.time()
    doc = store.add(QUESTIONS, data)
    logger.info(f"📝 Question {doc['id']} created ({doc['type']}): {doc['title']}")
    return doc


def get_question(store: DocumentStore, question_id: str) -> Dict:
    return store.require(QUESTIONS, question_id, "Question")


def list_questions(store: DocumentStore, question_type: Optional[str] = None) -> List[Dict]:
    """List questions, newest first"""
    where = (lambda q: q["type"] == question_type) if question_type else None
    return store.list(QUESTIONS, where=where, order_by="created_at", descending=True)


def update_question(
    store: DocumentStore,
    question_id: str,
    payload: QuestionIn,
    default_time_limit: int = 300
) -> Dict:
    """
    Replace the editable fields of a question

    Edits are not versioned against sessions: a session referencing the
    question sees the new content from its next read.
    """
    existing = get_question(store, question_id)
    data = _to_document(payload, default_time_limit)
    data["created_at"] = existing.get("created_at", time.time())
    doc = store.set(QUESTIONS, question_id, data)
    logger.info(f"✏️ Question {question_id} updated")
    return doc


def delete_question(store: DocumentStore, question_id: str) -> None:
    if store.get(QUESTIONS, question_id) is None:
        raise NotFoundError(f"Question {question_id} not found")
    store.delete(QUESTIONS, question_id)
    logger.info(f"🗑️ Question {question_id} deleted")


def participant_view(question: Dict) -> Dict:
    """Question as shown to teams: answer keys and marking notes removed"""
    return {k: v for k, v in question.items() if k not in ANSWER_FIELDS}
