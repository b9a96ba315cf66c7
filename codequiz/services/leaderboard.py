"""
Leaderboard service - Assemble and format leaderboard data
"""
from typing import Dict

from codequiz.core.session import get_session, submissions_path
from codequiz.core.store import DocumentStore
from codequiz.services.team_registry import list_teams


def get_leaderboard_data(store: DocumentStore, session_id: str) -> Dict:
    """
    Get leaderboard data for display

    Team scores are the stored totals written by the final-score update,
    not a live sum of submissions.

    Args:
        store: Document store
        session_id: Session ID

    Returns:
        Formatted leaderboard data
    """
    session = get_session(store, session_id)
    submissions = store.list(submissions_path(session_id))

    teams = []
    for team in list_teams(store, session_id):
        team_subs = [s for s in submissions if s["team_id"] == team["id"]]
        teams.append({
            "team_id": team["id"],
            "team_name": team["name"],
            "score": round(team.get("score") or 0, 1),
            "submit_count": len(team_subs),
            "correct_count": sum(1 for s in team_subs if s["status"] == "correct"),
            "marked_count": sum(1 for s in team_subs if s["status"] == "marked"),
            "created_at": team.get("created_at"),
        })

    # Sort by score (desc), then join time (asc)
    teams.sort(key=lambda x: (-x["score"], x["created_at"] or 0))

    for idx, team in enumerate(teams):
        team["rank"] = idx + 1

    return {
        "session_id": session_id,
        "session_name": session["name"],
        "status": session["status"],
        "teams": teams,
        "total_teams": len(teams),
    }
