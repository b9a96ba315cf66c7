"""
Question seed loader from YAML
"""
import logging
import yaml
from pathlib import Path
from typing import Dict, List

from pydantic import ValidationError

from codequiz.core.questions import create_question
from codequiz.core.store import DocumentStore
from codequiz.models import QuestionIn


logger = logging.getLogger(__name__)


def read_questions(yaml_path: str) -> List[QuestionIn]:
    """
    Parse and validate a YAML question file

    File format:
        questions:
          - title: Capital of France
            type: qa
            correct_answer: Paris
          - title: Pick the list comprehension
            type: mcq
            options: ["[x for x in y]", "map(y)"]
            correct_option_index: 0

    Args:
        yaml_path: Path to YAML file

    Returns:
        Validated question payloads

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If an entry is invalid
    """
    path = Path(yaml_path)

    if not path.exists():
        raise FileNotFoundError(f"Question file not found: {yaml_path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    entries = (data.get("questions") if isinstance(data, dict) else data) or []
    questions = []
    for idx, entry in enumerate(entries, start=1):
        try:
            questions.append(QuestionIn(**entry))
        except (TypeError, ValidationError) as e:
            raise ValueError(f"Question #{idx} in {yaml_path} is invalid: {e}") from e

    return questions


def seed_questions(store: DocumentStore, yaml_path: str, default_time_limit: int = 300) -> List[Dict]:
    """Load a question file into the store"""
    docs = [
        create_question(store, q, default_time_limit)
        for q in read_questions(yaml_path)
    ]
    logger.info(f"✅ Seeded {len(docs)} questions from {yaml_path}")
    return docs
