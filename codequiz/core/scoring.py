"""
Quiz Scoring Engine

Rules:
  - mcq: full points if selected index == correct index, else 0 (resolved on submit)
  - qa: correct answer compiled into a case-insensitive full-match pattern,
        internal whitespace becomes \\s+, surrounding whitespace ignored
  - edit_code / concise_code / explain_code: left pending until rubric-marked
  - Rubric: score = sum(weight × stars), each criterion rated 0-5
  - Concise bonus (concise_code only):
        rank marked submissions by whitespace-stripped code length (ascending),
        shortest five get 5, 4, 3, 2, 1; re-running overwrites, never stacks
  - Final scores: team total = sum of its submission scores (overwrite)
"""
import re
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

from codequiz.core.errors import InvalidInputError


MAX_STARS = 5
CONCISE_BONUS_POINTS = [5, 4, 3, 2, 1]

CODE_CRITERIA = (
    "readability",
    "maintainability",
    "elegance",
    "language_knowledge",
    "simplicity",
)
EXPLAIN_CRITERIA = ("explanation",)

# All criteria count equally
DEFAULT_WEIGHTS: Dict[str, float] = {name: 1.0 for name in CODE_CRITERIA + EXPLAIN_CRITERIA}

_WHITESPACE = re.compile(r"\s+")


def build_answer_pattern(correct_answer: str) -> Pattern:
    """
    Compile a short-answer key into a whitespace-tolerant matcher

    Example:
        "Hello World" → ^\\s*Hello\\s+World\\s*$ (case-insensitive)

    Args:
        correct_answer: Expected answer text

    Returns:
        Compiled pattern to be used with fullmatch()
    """
    words = _WHITESPACE.split(correct_answer.strip())
    body = r"\s+".join(re.escape(w) for w in words if w)
    return re.compile(rf"\s*{body}\s*", re.IGNORECASE)


def check_short_answer(answer: Optional[str], correct_answer: str) -> bool:
    if answer is None:
        return False
    return build_answer_pattern(correct_answer).fullmatch(answer) is not None


def score_mcq(selected_index: int, correct_index: int, points: float) -> Tuple[str, float]:
    """Return (status, score) for a multiple-choice answer"""
    if selected_index == correct_index:
        return "correct", points
    return "incorrect", 0


def score_short_answer(answer: Optional[str], correct_answer: str, points: float) -> Tuple[str, float]:
    """Return (status, score) for a short-answer submission"""
    if check_short_answer(answer, correct_answer):
        return "correct", points
    return "incorrect", 0


def score_on_submit(question: Dict, payload: Dict) -> Tuple[str, float]:
    """
    Resolve a submission at submit time

    Args:
        question: Question document
        payload: Submission fields (selected_option_index / answer / code / explanation)

    Returns:
        (status, score); rubric-marked types stay ("pending", 0)
    """
    qtype = question["type"]
    points = question.get("points", 0)
    if qtype == "mcq":
        return score_mcq(payload.get("selected_option_index"), question.get("correct_option_index"), points)
    if qtype == "qa":
        return score_short_answer(payload.get("answer"), question.get("correct_answer") or "", points)
    return "pending", 0


def rubric_criteria_for(question_type: str) -> Tuple[str, ...]:
    if question_type == "explain_code":
        return EXPLAIN_CRITERIA
    if question_type in ("edit_code", "concise_code"):
        return CODE_CRITERIA
    raise InvalidInputError(f"{question_type} questions are scored automatically, not by rubric")


def calculate_rubric_score(
    question_type: str,
    criteria: Dict[str, int],
    weights: Optional[Dict[str, float]] = None,
    max_stars: int = MAX_STARS
) -> Tuple[Dict[str, int], float]:
    """
    Validate star ratings and compute the weighted rubric total

    Missing criteria are rated 0. Unknown criteria and ratings outside
    0..max_stars are rejected.

    Args:
        question_type: Type of the marked question
        criteria: Star ratings keyed by criterion name
        weights: Per-criterion weight (default 1.0 each)
        max_stars: Highest allowed rating

    Returns:
        (complete criteria dict, weighted total)
    """
    allowed = rubric_criteria_for(question_type)
    unknown = sorted(set(criteria) - set(allowed))
    if unknown:
        raise InvalidInputError(f"Unknown criteria for {question_type}: {', '.join(unknown)}")

    weights = weights or DEFAULT_WEIGHTS
    ratings = {}
    total = 0.0
    for name in allowed:
        stars = criteria.get(name, 0)
        if isinstance(stars, bool) or not isinstance(stars, int) or not 0 <= stars <= max_stars:
            raise InvalidInputError(f"Rating for {name} must be an integer between 0 and {max_stars}")
        ratings[name] = stars
        total += weights.get(name, 1.0) * stars

    return ratings, total


def code_length(code: Optional[str]) -> int:
    """Character count with all whitespace removed"""
    return len(_WHITESPACE.sub("", code or ""))


def rank_concise_bonus(
    submissions: Iterable[Dict],
    bonus_points: List[int] = CONCISE_BONUS_POINTS
) -> Dict[str, int]:
    """
    Assign concise bonuses to marked submissions

    Ties keep submission order (earlier submission ranks first).

    Args:
        submissions: Submission documents (only status "marked" are ranked)
        bonus_points: Bonus by rank, shortest first

    Returns:
        Mapping submission id → bonus (0 for marked submissions outside the top ranks)
    """
    marked = [s for s in submissions if s.get("status") == "marked"]
    marked.sort(key=lambda s: (code_length(s.get("code")), s.get("submitted_at") or 0))

    bonuses = {}
    for rank, sub in enumerate(marked):
        bonuses[sub["id"]] = bonus_points[rank] if rank < len(bonus_points) else 0
    return bonuses


def rubric_total(submission: Dict, weights: Optional[Dict[str, float]] = None) -> float:
    """Weighted rubric total of an already-marked submission (0 if never marked)"""
    criteria = submission.get("criteria") or {}
    weights = weights or DEFAULT_WEIGHTS
    return float(sum(weights.get(name, 1.0) * stars for name, stars in criteria.items()))


def aggregate_team_scores(submissions: Iterable[Dict]) -> Dict[str, float]:
    """Sum submission scores per team id"""
    totals: Dict[str, float] = {}
    for sub in submissions:
        team_id = sub.get("team_id")
        if not team_id:
            continue
        totals[team_id] = totals.get(team_id, 0) + (sub.get("score") or 0)
    return totals
