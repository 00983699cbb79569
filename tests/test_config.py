import json
import logging
from pathlib import Path

import pytest

from davemode.config import _reset_config_for_tests, get_config, load_config
from davemode.logging import JsonFormatter, RequestIdFilter, log_context, log_extra


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in (
        "DAVEMODE_ENV",
        "DAVEMODE_DB_URL",
        "DAVEMODE_DB_PATH",
        "DAVEMODE_CORS_ORIGINS",
        "DAVEMODE_SANDBOX_URL",
        "DAVEMODE_LEARNING_MIN_USES",
        "DAVEMODE_AGENT_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    _reset_config_for_tests()
    yield
    _reset_config_for_tests()


def test_defaults() -> None:
    config = load_config()

    assert config.environment == "local"
    assert config.db_path == Path(".davemode.sqlite")
    assert config.is_postgres is False
    assert config.sandbox_enabled is False
    assert config.learning_min_uses == 3
    assert config.agent_timeout_seconds is None
    assert config.cors_allow_origins == ["*"]


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DAVEMODE_ENV", "prod")
    monkeypatch.setenv("DAVEMODE_DB_URL", "postgresql://davemode@db/davemode")
    monkeypatch.setenv("DAVEMODE_SANDBOX_URL", "https://sandbox.internal")
    monkeypatch.setenv("DAVEMODE_LEARNING_MIN_USES", "5")
    monkeypatch.setenv("DAVEMODE_AGENT_TIMEOUT_SECONDS", "45")
    monkeypatch.setenv("DAVEMODE_CORS_ORIGINS", "https://a.example, https://b.example")

    config = load_config()

    assert config.is_postgres is True
    assert config.sandbox_enabled is True
    assert config.learning_min_uses == 5
    assert config.agent_timeout_seconds == 45.0
    assert config.cors_allow_origins == ["https://a.example", "https://b.example"]


def test_get_config_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    first = get_config()
    monkeypatch.setenv("DAVEMODE_LEARNING_MIN_USES", "9")

    assert get_config() is first
    _reset_config_for_tests()
    assert get_config().learning_min_uses == 9


def test_min_uses_threshold_is_configurable(db, monkeypatch: pytest.MonkeyPatch) -> None:
    from davemode.models.domain import CreationStrategy
    from davemode.services.base import ServiceContext
    from davemode.services.learning import LearningEngine
    from davemode.services.learning_store import LearningStore

    monkeypatch.setenv("DAVEMODE_LEARNING_MIN_USES", "1")
    engine = LearningEngine(ServiceContext(config=load_config()), db, LearningStore(db).load())
    winner = CreationStrategy(architect="deepseek-r1", builders=["deepseek-r1"], styler="deepseek-r1")
    loser = CreationStrategy(architect="qwen3-coder", builders=["deepseek-v3"], styler="deepseek-v3")

    engine.record_interaction("creation", "api", loser, {"validation": {"success": False}})
    engine.record_interaction("creation", "api", winner, {"validation": {"success": True}})

    assert engine.get_best_strategy("creation", "api").architect == "deepseek-r1"


def test_json_formatter_includes_context_and_redacts_secrets() -> None:
    formatter = JsonFormatter()
    with log_context(interaction_id="abc", task_kind="creation"):
        record = logging.LogRecord("davemode", logging.INFO, __file__, 1, "pattern_updated", None, None)
        for key, value in log_extra(project_type="web-app", api_key="sk-123").items():
            setattr(record, key, value)
        RequestIdFilter().filter(record)
        data = json.loads(formatter.format(record))

    assert data["message"] == "pattern_updated"
    assert data["interaction_id"] == "abc"
    assert data["project_type"] == "web-app"
    assert data["api_key"] == "[REDACTED]"
