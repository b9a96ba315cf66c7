"""
Tests for settings and question seed loading
"""
import pytest

from codequiz.api.auth import build_auth_context
from codequiz.config import load_config
from codequiz.core.questions import list_questions
from codequiz.question_loader import read_questions, seed_questions


def test_missing_config_uses_defaults(tmp_path):
    settings = load_config(str(tmp_path / "absent.yaml"))
    assert settings.admin_emails == []
    assert settings.default_time_limit == 300
    assert settings.concise_bonus_points == [5, 4, 3, 2, 1]


def test_config_normalizes_admin_emails(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("admin_emails:\n  - ' Host@Example.com '\n  - ''\ndefault_time_limit: 90\n")

    settings = load_config(str(path))

    assert settings.admin_emails == ["host@example.com"]
    assert settings.default_time_limit == 90


def test_config_must_be_mapping(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_config_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("rubric_max_stars: 3\n")
    monkeypatch.setenv("CODEQUIZ_CONFIG", str(path))
    assert load_config().rubric_max_stars == 3


def test_auth_context():
    """Admin check is case-insensitive; a missing identity is unauthenticated"""
    admins = ["host@example.com"]
    assert build_auth_context("HOST@example.com", admins).is_admin
    assert not build_auth_context("guest@example.com", admins).is_admin
    anonymous = build_auth_context(None, admins)
    assert not anonymous.is_authenticated
    assert not anonymous.is_admin


def test_seed_questions(store, tmp_path):
    path = tmp_path / "questions.yaml"
    path.write_text(
        "questions:\n"
        "  - title: Capital of France\n"
        "    type: qa\n"
        "    correct_answer: Paris\n"
        "  - title: Keyword\n"
        "    type: mcq\n"
        "    options: [def, yield]\n"
        "    correct_option_index: 1\n"
        "    time_limit: 30\n"
    )

    docs = seed_questions(store, str(path), default_time_limit=120)

    assert len(docs) == 2
    assert docs[0]["time_limit"] == 120
    assert docs[1]["time_limit"] == 30
    assert len(list_questions(store, "mcq")) == 1


def test_invalid_seed_entry_reports_position(tmp_path):
    path = tmp_path / "questions.yaml"
    path.write_text(
        "questions:\n"
        "  - title: Fine\n"
        "    type: qa\n"
        "    correct_answer: ok\n"
        "  - title: Broken\n"
        "    type: mcq\n"
        "    options: [only]\n"
        "    correct_option_index: 0\n"
    )
    with pytest.raises(ValueError, match="#2"):
        read_questions(str(path))


def test_missing_seed_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_questions(str(tmp_path / "nope.yaml"))


def test_empty_seed_list(store, tmp_path):
    path = tmp_path / "questions.yaml"
    path.write_text("questions:\n")
    assert read_questions(str(path)) == []
    assert seed_questions(store, str(path)) == []
