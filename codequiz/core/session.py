"""
Session state machine

States: pending → active → completed
  - activate:     pending → active (any other active session is demoted to pending)
  - unlock next:  pending/active → active at index + 1, stamping the start time;
                  past the last question → completed with index -1
  - complete:     pending/active → completed

Timing is advisory only: elapsed/remaining time is derived from the start
stamp and never changes state.
"""
import logging
import time
from typing import Dict, List, Optional

from codequiz.core.errors import ConflictError, InvalidInputError, NotFoundError
from codequiz.core.questions import QUESTIONS, participant_view
from codequiz.core.store import DocumentStore, WriteBatch


logger = logging.getLogger(__name__)

SESSIONS = "sessions"


def teams_path(session_id: str) -> str:
    return f"{SESSIONS}/{session_id}/teams"


def submissions_path(session_id: str) -> str:
    return f"{SESSIONS}/{session_id}/submissions"


def create_session(store: DocumentStore, name: str, question_ids: List[str]) -> Dict:
    """
    Create a pending session over a snapshot of question ids

    Args:
        store: Document store
        name: Display name (required)
        question_ids: Ordered question ids, each must exist

    Returns:
        Session document
    """
    clean_name = (name or "").strip()
    if not clean_name:
        raise InvalidInputError("Session name is required")
    if not question_ids:
        raise InvalidInputError("Please select at least one question")

    missing = [qid for qid in question_ids if store.get(QUESTIONS, qid) is None]
    if missing:
        raise NotFoundError(f"Questions not found: {', '.join(missing)}")

    doc = store.add(SESSIONS, {
        "name": clean_name,
        "status": "pending",
        "question_ids": list(question_ids),
        "current_question_index": -1,
        "current_question_started_at": None,
        "created_at": time.time(),
    })
    logger.info(f"✅ Session {doc['id']} '{clean_name}' created with {len(question_ids)} questions")
    return doc


def get_session(store: DocumentStore, session_id: str) -> Dict:
    return store.require(SESSIONS, session_id, "Session")


def list_sessions(store: DocumentStore, status: Optional[str] = None) -> List[Dict]:
    """List sessions, newest first"""
    where = (lambda s: s["status"] == status) if status else None
    return store.list(SESSIONS, where=where, order_by="created_at", descending=True)


def _demote_other_active(store: DocumentStore, batch: WriteBatch, session_id: str) -> List[str]:
    """Queue every other active session back to pending"""
    demoted = []
    for other in list_sessions(store, status="active"):
        if other["id"] != session_id:
            batch.update(SESSIONS, other["id"], {"status": "pending"})
            demoted.append(other["id"])
    if demoted:
        logger.info(f"⏸️ Demoting sessions to pending: {', '.join(demoted)}")
    return demoted


def activate_session(store: DocumentStore, session_id: str, expected_version: Optional[int] = None) -> Dict:
    """
    Force a session to active, demoting any other active session to pending
    """
    session = get_session(store, session_id)
    if session["status"] == "completed":
        raise ConflictError(f"Session {session_id} is completed and cannot be activated")

    batch = store.batch()
    _demote_other_active(store, batch, session_id)
    batch.update(SESSIONS, session_id, {"status": "active"}, expected_version)
    result = batch.commit()[-1]

    logger.info(f"▶️ Session {session_id} activated")
    return result


def unlock_next_question(store: DocumentStore, session_id: str, expected_version: Optional[int] = None) -> Dict:
    """
    Advance to the next question

    Unlocking on the last question (or with an empty question list) ends the
    session: status completed, index -1, start time cleared. Unlocking a
    pending session makes it the only active one.
    """
    session = get_session(store, session_id)
    if session["status"] == "completed":
        raise ConflictError(f"Session {session_id} is already completed")

    next_index = session.get("current_question_index", -1) + 1
    if next_index >= len(session.get("question_ids", [])):
        result = store.update(SESSIONS, session_id, {
            "status": "completed",
            "current_question_index": -1,
            "current_question_started_at": None,
        }, expected_version)
        logger.info(f"🏁 Session {session_id} completed: no more questions")
        return result

    batch = store.batch()
    if session["status"] != "active":
        _demote_other_active(store, batch, session_id)
    batch.update(SESSIONS, session_id, {
        "status": "active",
        "current_question_index": next_index,
        "current_question_started_at": time.time(),
    }, expected_version)
    result = batch.commit()[-1]
    logger.info(
        f"🔓 Session {session_id} unlocked question {next_index + 1}/{len(session['question_ids'])} "
        f"({session['question_ids'][next_index]})"
    )
    return result


def complete_session(store: DocumentStore, session_id: str, expected_version: Optional[int] = None) -> Dict:
    session = get_session(store, session_id)
    if session["status"] == "completed":
        raise ConflictError(f"Session {session_id} is already completed")
    result = store.update(SESSIONS, session_id, {"status": "completed"}, expected_version)
    logger.info(f"🛑 Session {session_id} marked completed")
    return result


def delete_session(store: DocumentStore, session_id: str) -> Dict[str, int]:
    """Delete a session together with its teams and submissions in one batch"""
    get_session(store, session_id)
    batch = store.batch()
    teams = store.delete_collection(teams_path(session_id), batch)
    submissions = store.delete_collection(submissions_path(session_id), batch)
    batch.delete(SESSIONS, session_id)
    batch.commit()
    logger.info(f"🗑️ Session {session_id} deleted ({teams} teams, {submissions} submissions)")
    return {"teams": teams, "submissions": submissions}


def current_question_id(session: Dict) -> Optional[str]:
    index = session.get("current_question_index", -1)
    question_ids = session.get("question_ids", [])
    if session.get("status") != "active" or index < 0 or index >= len(question_ids):
        return None
    return question_ids[index]


def get_current_question(store: DocumentStore, session: Dict) -> Optional[Dict]:
    question_id = current_question_id(session)
    if question_id is None:
        return None
    return store.get(QUESTIONS, question_id)


def get_elapsed_time(session: Dict, now: Optional[float] = None) -> float:
    """Seconds since the current question was unlocked"""
    started = session.get("current_question_started_at")
    if not started:
        return 0.0
    return max(0.0, (now or time.time()) - started)


def get_remaining_time(session: Dict, time_limit: int, now: Optional[float] = None) -> float:
    """Advisory countdown for the current question"""
    if not session.get("current_question_started_at"):
        return 0.0
    return max(0.0, time_limit - get_elapsed_time(session, now))


def get_session_state(store: DocumentStore, session_id: str) -> Dict:
    """
    Participant read model: status, position, timer and the current question
    without its answer key
    """
    session = get_session(store, session_id)
    question = get_current_question(store, session)
    return {
        "session_id": session["id"],
        "name": session["name"],
        "status": session["status"],
        "current_question_index": session.get("current_question_index", -1),
        "total_questions": len(session.get("question_ids", [])),
        "current_question_started_at": session.get("current_question_started_at"),
        "elapsed_time": round(get_elapsed_time(session), 2),
        "remaining_time": round(get_remaining_time(session, question["time_limit"]), 2) if question else 0.0,
        "question": participant_view(question) if question else None,
        "version": session["version"],
    }
