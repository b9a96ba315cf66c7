import pytest

from codequiz.core.questions import create_question
from codequiz.core.store import DocumentStore
from codequiz.models import QuestionIn


QUESTION_DEFAULTS = {
    "mcq": {"options": ["a", "b", "c"], "correct_option_index": 1},
    "qa": {"correct_answer": "Hello World"},
    "edit_code": {"initial_code": "x = 1", "instructions": "Refactor"},
    "concise_code": {"initial_code": "", "instructions": "Shortest wins"},
    "explain_code": {"initial_code": "print(1)"},
}


@pytest.fixture
def store():
    return DocumentStore()


@pytest.fixture
def make_question(store):
    """Factory creating a valid question of the given type"""
    def _make(qtype="mcq", **fields):
        data = {"title": f"{qtype} question", "type": qtype, "points": 5, "time_limit": 60}
        data.update(QUESTION_DEFAULTS[qtype])
        data.update(fields)
        return create_question(store, QuestionIn(**data))
    return _make
