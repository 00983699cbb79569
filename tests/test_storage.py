import pytest

from davemode.errors import ClarificationRequestNotFoundError, EntityNotFoundError
from davemode.models.domain import (
    ClarificationRequest,
    ClarificationResponse,
    Interaction,
    LearnedPattern,
    ProjectSnapshot,
)
from davemode.models.payloads import Feature, ProjectContext, Requirements, SourceFile


def _request(interaction_id: str = "req-1", **overrides) -> ClarificationRequest:
    data = dict(
        id=interaction_id,
        kind="creation",
        questions=["What specific features should the app have?", "Who are the target users for this application?"],
        requirements=Requirements(
            name="Shop",
            type="web-app",
            features=[Feature(name="cart", requires_backend=True)],
        ),
        context={"source": "cli"},
        ambiguities=["missing-features", "missing-users"],
        contextual_matches=["e-commerce"],
    )
    data.update(overrides)
    return ClarificationRequest(**data)


def test_clarification_request_round_trip(db) -> None:
    request = _request()
    db.store_clarification_request(request)

    assert db.get_clarification_request("req-1") == request


def test_clarification_request_with_files_round_trip(db) -> None:
    request = _request(
        "req-2",
        kind="analysis",
        requirements=None,
        files=[SourceFile(path="src/app.js", name="app.js", content="console.log(1)")],
        project_context=ProjectContext(type="web-app", analysis_focus="security"),
        original_interaction_id="req-1",
        is_follow_up=True,
    )
    db.store_clarification_request(request)

    loaded = db.get_clarification_request("req-2")
    assert loaded == request
    assert loaded.files[0].filename == "app.js"


def test_missing_clarification_request_raises(db) -> None:
    with pytest.raises(ClarificationRequestNotFoundError) as excinfo:
        db.get_clarification_request("nope")

    assert isinstance(excinfo.value, EntityNotFoundError)
    assert db.get_clarification_response("nope") is None


def test_clarification_history_joins_answered_creation_requests(db) -> None:
    db.store_clarification_request(_request("answered"))
    db.store_clarification_request(_request("pending"))
    db.store_clarification_request(
        _request("other-type", requirements=Requirements(name="Svc", type="api"))
    )
    updated = Requirements(name="Shop", type="web-app", features=[Feature(name="checkout")])
    db.store_clarification_response(
        ClarificationResponse(interaction_id="answered", responses=["checkout", None], updated_requirements=updated)
    )
    db.store_clarification_response(ClarificationResponse(interaction_id="other-type", responses=["x", "y"]))

    history = db.list_clarification_history("web-app")

    assert [entry.interaction_id for entry in history] == ["answered"]
    assert history[0].responses == ["checkout", None]
    assert history[0].updated_requirements == updated
    assert history[0].contextual_matches == ["e-commerce"]


def test_agent_ledger_increments_atomically(db) -> None:
    db.record_agent_outcome("deepseek-v3", "building", "web-app", True)
    db.record_agent_outcome("deepseek-v3", "building", "web-app", False)
    record = db.record_agent_outcome("deepseek-v3", "building", "web-app", True)

    assert record.uses == 3
    assert record.successes == 2
    assert record.success_rate == pytest.approx(2 / 3)
    assert len(db.list_agent_performance(agent_name="deepseek-v3")) == 1


def test_update_pattern_creates_then_mutates(db) -> None:
    def bump(pattern: LearnedPattern) -> LearnedPattern:
        pattern.uses += 1
        pattern.best_agents.setdefault("architect", "qwen3-coder")
        return pattern

    first = db.update_pattern("creation", "web-app", bump)
    second = db.update_pattern("creation", "web-app", bump)

    assert first.uses == 1
    assert second.uses == 2
    assert second.best_agents == {"architect": "qwen3-coder"}
    assert [p.project_type for p in db.list_patterns("creation")] == ["web-app"]
    assert db.get_pattern("analysis", "web-app") is None


def test_projects_store_and_fetch(db) -> None:
    project = ProjectSnapshot(
        id="proj-1",
        name="Shop",
        type="web-app",
        technologies=["react"],
        files=[{"path": "package.json", "content": "{}"}],
        validation={"success": False, "errors": [], "skipped": True},
    )
    db.store_project(project)

    assert db.get_project("proj-1") == project
    assert [p.id for p in db.list_projects()] == ["proj-1"]
    with pytest.raises(EntityNotFoundError):
        db.get_project("proj-2")


def test_interactions_filtered_by_kind_and_type(db) -> None:
    db.store_interaction(Interaction(id="i-1", kind="creation", project_type="web-app", success=True))
    db.store_interaction(Interaction(id="i-2", kind="analysis", project_type="web-app", success=False))
    db.store_interaction(Interaction(id="i-3", kind="analysis", project_type="api", success=True))

    analysis = db.list_interactions(kind="analysis")
    web = db.list_interactions(project_type="web-app", kind="analysis")

    assert {i.id for i in analysis} == {"i-2", "i-3"}
    assert [i.id for i in web] == ["i-2"]
    assert web[0].success is False
