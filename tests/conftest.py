import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

# Ensure repository root is on sys.path so the in-tree package imports cleanly.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from davemode.agents.interface import AgentTask, empty_result  # noqa: E402
from davemode.config import Config  # noqa: E402
from davemode.db.database import SQLiteDatabase  # noqa: E402
from davemode.models.domain import ValidationResult  # noqa: E402
from davemode.services.base import ServiceContext  # noqa: E402
from davemode.services.clarification import ClarificationEngine  # noqa: E402
from davemode.services.learning import LearningEngine  # noqa: E402
from davemode.services.learning_store import LearningStore  # noqa: E402
from davemode.services.orchestrator import OrchestratorService  # noqa: E402


class FakeAgents:
    """Records agent calls and replies with canned results per task name."""

    def __init__(self, replies: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        self.replies = replies or {}
        self.calls: List[Tuple[str, str, AgentTask]] = []

    def _reply(self, kind: str, agent_id: str, task: AgentTask) -> Dict[str, Any]:
        self.calls.append((kind, agent_id, task))
        result = empty_result(kind)
        result.update(self.replies.get(task.task or "", {}))
        return result

    def analyze(self, agent_id: str, task: AgentTask) -> Dict[str, Any]:
        return self._reply("analysis", agent_id, task)

    def create(self, agent_id: str, task: AgentTask) -> Dict[str, Any]:
        return self._reply("creation", agent_id, task)


class FakeValidator:
    def __init__(self, success: bool = True, errors: Optional[List[str]] = None) -> None:
        self.success = success
        self.errors = errors or []
        self.validated: List[List[Dict[str, Any]]] = []

    def validate_project(self, files) -> ValidationResult:
        self.validated.append(list(files))
        return ValidationResult(success=self.success, errors=list(self.errors))


@pytest.fixture
def db():
    with tempfile.TemporaryDirectory() as tmpdir:
        database = SQLiteDatabase(Path(tmpdir) / "davemode-test.sqlite")
        database.init_schema()
        yield database


@pytest.fixture
def context() -> ServiceContext:
    return ServiceContext(config=Config())


@pytest.fixture
def learning(context, db) -> LearningEngine:
    return LearningEngine(context, db, LearningStore(db).load())


@pytest.fixture
def agents() -> FakeAgents:
    return FakeAgents()


@pytest.fixture
def validator() -> FakeValidator:
    return FakeValidator()


@pytest.fixture
def orchestrator(context, db, learning, agents, validator) -> OrchestratorService:
    return OrchestratorService(context, db, learning, ClarificationEngine(context), agents, validator)
