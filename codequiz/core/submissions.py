"""
Submission ledger: admission, rubric marking, concise bonus and final scores
"""
import logging
import time
from collections import Counter
from typing import Dict, List, Optional

from codequiz.core import scoring
from codequiz.core.errors import ConflictError, InvalidInputError
from codequiz.core.questions import QUESTIONS, get_question
from codequiz.core.session import (
    current_question_id, get_session, submissions_path, teams_path
)
from codequiz.core.store import DocumentStore
from codequiz.models import CODE_TYPES, SubmitRequest


logger = logging.getLogger(__name__)


def find_submission(store: DocumentStore, session_id: str, team_id: str, question_id: str) -> Optional[Dict]:
    matches = store.list(
        submissions_path(session_id),
        where=lambda s: s["team_id"] == team_id and s["question_id"] == question_id
    )
    return matches[0] if matches else None


def _answer_payload(question_type: str, request: SubmitRequest) -> Dict:
    """Pick the type-specific answer field from the request"""
    if question_type == "mcq":
        if request.selected_option_index is None:
            raise InvalidInputError("Please select an option")
        return {"selected_option_index": request.selected_option_index}
    if question_type == "qa":
        return {"answer": request.answer or ""}
    if question_type in CODE_TYPES:
        code = request.code or ""
        return {"code": code, "code_length": scoring.code_length(code)}
    return {"explanation": request.explanation or ""}


def submit_answer(store: DocumentStore, session_id: str, request: SubmitRequest) -> Dict:
    """
    Record a team's answer to the session's current question

    Auto-scored types (mcq, qa) are resolved immediately; the others stay
    pending until rubric-marked. One submission is accepted per
    (team, question).

    Args:
        store: Document store
        session_id: Session the team belongs to
        request: Answer payload

    Returns:
        Stored submission document
    """
    session = get_session(store, session_id)
    question_id = current_question_id(session)
    if question_id is None:
        raise ConflictError("No active question. Wait for the host to unlock the next question.")
    if request.question_id and request.question_id != question_id:
        raise ConflictError(f"Question {request.question_id} is no longer active")

    team = store.require(teams_path(session_id), request.team_id, "Team")
    question = get_question(store, question_id)

    payload = _answer_payload(question["type"], request)

    if find_submission(store, session_id, team["id"], question_id) is not None:
        raise ConflictError(f"Team {team['name']} already submitted an answer for this question")

    status, score = scoring.score_on_submit(question, payload)
    data = {
        "team_id": team["id"],
        "team_name": team["name"],
        "question_id": question_id,
        "question_index": session["current_question_index"],
        "question_type": question["type"],
        "status": status,
        "score": score,
        "criteria": None,
        "concise_bonus": 0,
        "forced": request.forced,
        "submitted_at": time.time(),
        "marked_at": None,
    }
    data.update(payload)
    doc = store.add(submissions_path(session_id), data)

    icon = {"correct": "✅", "incorrect": "❌"}.get(status, "📨")
    logger.info(
        f"{icon} Team {team['name']} | Session {session_id} | Q{session['current_question_index'] + 1} "
        f"({question['type']}) | Status: {status} | Score: {score}"
        + (" | forced" if request.forced else "")
    )
    return doc


def list_submissions(store: DocumentStore, session_id: str, question_id: Optional[str] = None) -> List[Dict]:
    get_session(store, session_id)
    where = (lambda s: s["question_id"] == question_id) if question_id else None
    return store.list(submissions_path(session_id), where=where, order_by="submitted_at")


def group_by_question(store: DocumentStore, session_id: str) -> List[Dict]:
    """
    Submissions per question in session order, for the marking screen
    """
    session = get_session(store, session_id)
    submissions = list_submissions(store, session_id)
    grouped = []
    for index, question_id in enumerate(session.get("question_ids", [])):
        question = store.get(QUESTIONS, question_id)
        subs = [s for s in submissions if s["question_id"] == question_id]
        grouped.append({
            "question_id": question_id,
            "question_index": index,
            "title": question["title"] if question else None,
            "type": question["type"] if question else None,
            "submissions": subs,
            "marked_count": sum(1 for s in subs if s["status"] == "marked"),
            "pending_count": sum(1 for s in subs if s["status"] == "pending"),
        })
    return grouped


def mark_submission(
    store: DocumentStore,
    session_id: str,
    submission_id: str,
    criteria: Dict[str, int],
    max_stars: int = scoring.MAX_STARS,
    weights: Optional[Dict[str, float]] = None
) -> Dict:
    """
    Save rubric ratings on a submission

    Re-saving replaces the previous ratings. An already applied concise
    bonus is kept on top of the new rubric total.
    """
    path = submissions_path(session_id)
    submission = store.require(path, submission_id, "Submission")
    ratings, total = scoring.calculate_rubric_score(
        submission["question_type"], criteria, weights=weights, max_stars=max_stars
    )
    bonus = submission.get("concise_bonus") or 0

    result = store.update(path, submission_id, {
        "criteria": ratings,
        "score": total + bonus,
        "status": "marked",
        "marked_at": time.time(),
    })
    logger.info(
        f"⭐ Submission {submission_id} ({submission['team_name']}) marked: "
        f"rubric {total}" + (f" + bonus {bonus}" if bonus else "")
    )
    return result


def apply_concise_bonus(
    store: DocumentStore,
    session_id: str,
    question_id: str,
    bonus_points: List[int] = scoring.CONCISE_BONUS_POINTS,
    weights: Optional[Dict[str, float]] = None
) -> List[Dict]:
    """
    Award the concise bonus for one concise_code question

    Every marked submission's score is reset to rubric total + its new bonus,
    so re-running yields the same values.

    Returns:
        Updated submissions, shortest code first
    """
    question = get_question(store, question_id)
    if question["type"] != "concise_code":
        raise InvalidInputError(f"Concise bonus applies to concise_code questions, not {question['type']}")

    submissions = list_submissions(store, session_id, question_id)
    bonuses = scoring.rank_concise_bonus(submissions, bonus_points)
    if not bonuses:
        raise InvalidInputError("No marked submissions for this question yet")

    path = submissions_path(session_id)
    batch = store.batch()
    for sub in submissions:
        if sub["id"] not in bonuses:
            continue
        bonus = bonuses[sub["id"]]
        batch.update(path, sub["id"], {
            "concise_bonus": bonus,
            "score": scoring.rubric_total(sub, weights) + bonus,
        })
    batch.commit()

    updated = [store.get(path, sub_id) for sub_id in bonuses]
    logger.info(
        f"🏅 Concise bonus applied for question {question_id} in session {session_id}: "
        f"{sum(1 for b in bonuses.values() if b)} submissions awarded"
    )
    return updated


def update_final_scores(store: DocumentStore, session_id: str) -> List[Dict]:
    """
    Recompute every team's total from its submissions and overwrite the
    team score. Teams without submissions are set to 0.

    Returns:
        Teams, highest score first
    """
    get_session(store, session_id)
    totals = scoring.aggregate_team_scores(list_submissions(store, session_id))
    teams = store.list(teams_path(session_id))

    duplicated = [name for name, n in Counter(t["name"] for t in teams).items() if n > 1]
    if duplicated:
        logger.warning(
            f"⚠️ Session {session_id} has teams sharing a display name: {', '.join(duplicated)}. "
            f"Totals are attributed by team id."
        )

    orphaned = set(totals) - {t["id"] for t in teams}
    if orphaned:
        logger.warning(f"⚠️ Submissions reference unknown teams: {', '.join(sorted(orphaned))}")

    batch = store.batch()
    for team in teams:
        batch.update(teams_path(session_id), team["id"], {"score": totals.get(team["id"], 0)})
    if len(batch):
        batch.commit()

    logger.info(f"📊 Final scores updated for {len(teams)} teams in session {session_id}")
    return store.list(teams_path(session_id), order_by="score", descending=True)
