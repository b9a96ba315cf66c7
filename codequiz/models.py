"""
Data models for the quiz server
"""
from pydantic import BaseModel, Field, model_validator
from typing import List, Dict, Literal, Optional


QuestionType = Literal["mcq", "edit_code", "concise_code", "qa", "explain_code"]
SessionStatus = Literal["pending", "active", "completed"]
SubmissionStatus = Literal["pending", "correct", "incorrect", "marked"]

CODE_TYPES = ("edit_code", "concise_code")
RUBRIC_TYPES = ("edit_code", "concise_code", "explain_code")


class Settings(BaseModel):
    """Server configuration loaded from YAML"""
    admin_emails: List[str] = []
    default_time_limit: int = 300         # seconds
    rubric_max_stars: int = 5
    rubric_weights: Dict[str, float] = {}  # per-criterion multiplier, unlisted criteria count 1.0
    concise_bonus_points: List[int] = [5, 4, 3, 2, 1]
    seed_questions: Optional[str] = None  # path to a YAML question file


class QuestionIn(BaseModel):
    """Question authoring payload (create and full update)"""
    title: str = Field(min_length=1)
    description: str = ""
    type: QuestionType
    points: int = Field(default=5, ge=0)
    time_limit: Optional[int] = Field(default=None, gt=0)  # seconds, falls back to settings
    topic: str = ""
    image_url: Optional[str] = None

    # mcq
    options: Optional[List[str]] = None
    correct_option_index: Optional[int] = None

    # qa
    correct_answer: Optional[str] = None

    # edit_code / concise_code / explain_code
    initial_code: Optional[str] = None
    instructions: Optional[str] = None
    scoring_criteria: Optional[str] = None

    @model_validator(mode="after")
    def check_type_payload(self):
        if not self.title.strip():
            raise ValueError("title is required")
        if self.type == "mcq":
            options = self.options or []
            if len(options) < 2:
                raise ValueError("mcq questions need at least two options")
            if any(not o.strip() for o in options):
                raise ValueError("mcq options must not be blank")
            if self.correct_option_index is None:
                raise ValueError("mcq questions need correct_option_index")
            if not 0 <= self.correct_option_index < len(self.options):
                raise ValueError(
                    f"correct_option_index {self.correct_option_index} out of range "
                    f"for {len(self.options)} options"
                )
        elif self.type == "qa":
            if not (self.correct_answer or "").strip():
                raise ValueError("qa questions need a correct_answer")
        elif self.type in RUBRIC_TYPES:
            if self.initial_code is None:
                raise ValueError(f"{self.type} questions need initial_code")
        return self


class Question(QuestionIn):
    id: str
    time_limit: int
    created_at: float
    version: int = 1


class SessionCreate(BaseModel):
    name: str
    question_ids: List[str]


class Session(BaseModel):
    """One timed run of a quiz over an ordered list of questions"""
    id: str
    name: str
    status: SessionStatus = "pending"
    question_ids: List[str] = []
    current_question_index: int = -1               # -1 = not started
    current_question_started_at: Optional[float] = None
    created_at: float
    version: int = 1


class TransitionRequest(BaseModel):
    """Optional compare-and-swap guard for admin session transitions"""
    expected_version: Optional[int] = None


class JoinRequest(BaseModel):
    team_name: str = ""


class Team(BaseModel):
    id: str
    name: str
    score: float = 0
    created_at: float
    version: int = 1


class SubmitRequest(BaseModel):
    """Participant answer for the current question"""
    team_id: str
    question_id: Optional[str] = None     # guards against answering a stale question
    selected_option_index: Optional[int] = None
    code: Optional[str] = None
    answer: Optional[str] = None
    explanation: Optional[str] = None
    forced: bool = False                  # submitted by the countdown reaching zero


class Submission(BaseModel):
    id: str
    team_id: str
    team_name: str
    question_id: str
    question_index: int
    question_type: QuestionType
    selected_option_index: Optional[int] = None
    code: Optional[str] = None
    code_length: Optional[int] = None
    answer: Optional[str] = None
    explanation: Optional[str] = None
    status: SubmissionStatus = "pending"
    score: float = 0
    criteria: Optional[Dict[str, int]] = None
    concise_bonus: int = 0
    forced: bool = False
    submitted_at: float
    marked_at: Optional[float] = None
    version: int = 1


class MarkRequest(BaseModel):
    """Rubric star ratings keyed by criterion name"""
    criteria: Dict[str, int]
