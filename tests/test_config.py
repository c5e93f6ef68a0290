import logging
from pathlib import Path

import pytest

from protein_quality.app_logging import configure_logging
from protein_quality.config import Settings, load_settings
from protein_quality.education import TOPIC_DISPLAY_NAMES, TOPICS, cards_for


def test_defaults() -> None:
    settings = load_settings({})
    assert settings == Settings()
    assert settings.history_path == Path("history.db")
    assert settings.history_limit == 100
    assert settings.log_level_number == logging.WARNING


def test_environment_overrides() -> None:
    settings = load_settings(
        {
            "PROTEIN_HISTORY_PATH": "/tmp/history.json",
            "PROTEIN_HISTORY_LIMIT": "25",
            "PROTEIN_LOG_LEVEL": "debug",
        }
    )
    assert settings.history_path == Path("/tmp/history.json")
    assert settings.history_limit == 25
    assert settings.log_level == "DEBUG"
    assert settings.log_level_number == logging.DEBUG


@pytest.mark.parametrize(
    "env",
    [
        {"PROTEIN_HISTORY_LIMIT": "0"},
        {"PROTEIN_HISTORY_LIMIT": "-3"},
        {"PROTEIN_HISTORY_LIMIT": "ten"},
        {"PROTEIN_LOG_LEVEL": "chatty"},
    ],
)
def test_invalid_environment(env: dict[str, str]) -> None:
    with pytest.raises(ValueError):
        load_settings(env)


@pytest.mark.parametrize(
    ("verbosity", "base", "expected"),
    [
        (0, logging.WARNING, logging.WARNING),
        (1, logging.WARNING, logging.INFO),
        (2, logging.WARNING, logging.DEBUG),
        (5, logging.WARNING, logging.DEBUG),
        (0, logging.ERROR, logging.ERROR),
    ],
)
def test_configure_logging_levels(verbosity: int, base: int, expected: int) -> None:
    assert configure_logging(verbosity, base_level=base) == expected
    assert logging.getLogger().level == expected


def test_configure_logging_writes_file(tmp_path: Path) -> None:
    log_file = tmp_path / "app.log"
    configure_logging(1, str(log_file))
    logging.getLogger("protein_quality.test").info("hello history")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "hello history" in log_file.read_text(encoding="utf-8")
    configure_logging()


def test_education_topics() -> None:
    assert set(TOPICS) == set(TOPIC_DISPLAY_NAMES)
    for topic in TOPICS:
        cards = cards_for(topic)
        assert cards
        assert all(card.title and card.content for card in cards)
    assert cards_for("overview")[0].title == "What is Protein Quality?"
    with pytest.raises(ValueError):
        cards_for("recipes")  # type: ignore[arg-type]
