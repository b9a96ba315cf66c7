"""Team registration utilities"""
import logging
import time
from typing import Dict, List

from codequiz.core.errors import ConflictError, InvalidInputError
from codequiz.core.session import get_session, teams_path
from codequiz.core.store import DocumentStore


logger = logging.getLogger(__name__)


def register_team(store: DocumentStore, session_id: str, team_name: str) -> Dict[str, str]:
    """
    Join a team to an active session

    Returns:
        The participant's local identity: session_id, team_id, team_name
    """
    clean_name = (team_name or "").strip()
    if not clean_name:
        raise InvalidInputError("Please enter a team name")

    session = get_session(store, session_id)
    if session["status"] != "active":
        raise ConflictError(f"Session {session_id} is not active ({session['status']})")

    doc = store.add(teams_path(session_id), {
        "name": clean_name,
        "score": 0,
        "created_at": time.time(),
    })
    logger.info(f"👥 Team '{clean_name}' joined session {session_id} as {doc['id']}")

    return {
        "session_id": session_id,
        "team_id": doc["id"],
        "team_name": clean_name,
    }


def get_team(store: DocumentStore, session_id: str, team_id: str) -> Dict:
    return store.require(teams_path(session_id), team_id, "Team")


def list_teams(store: DocumentStore, session_id: str) -> List[Dict]:
    """Teams of a session, highest score first"""
    get_session(store, session_id)
    return store.list(teams_path(session_id), order_by="score", descending=True)
