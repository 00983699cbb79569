import json
from unittest import mock

import pytest

from conftest import FakeAgents, FakeValidator
from davemode.errors import ClarificationRequestNotFoundError
from davemode.models.payloads import (
    DeploymentTarget,
    Feature,
    ProjectContext,
    Requirements,
    SourceFile,
    Timeline,
    UserProfile,
)
from davemode.services import clarification_rules as rules
from davemode.services.clarification import ClarificationEngine
from davemode.services.orchestrator import OrchestratorService

SHOP = Requirements(name="Shop", description="build a shop with cart and checkout")

SHOP_ANSWERS = {
    "What specific features should the app have?": "catalog, checkout",
    "Do you have a preferred technology stack?": "React",
    "Who are the target users for this application?": "local customers",
    "Where do you plan to deploy this application?": "AWS",
    "What is your timeline for this project?": "next month",
}

PACKAGE_JSON = json.dumps({"dependencies": {"react": "^18.2.0"}, "scripts": {"start": "react-scripts start"}})


def _answers_for(questions, answers):
    return [answers.get(question) for question in questions]


def _count_responses(db) -> int:
    return db._fetchone("SELECT COUNT(*) AS n FROM clarification_responses")["n"]


def test_ambiguous_creation_is_parked_with_questions(orchestrator, db) -> None:
    result = orchestrator.create_program(SHOP)

    assert result["needs_clarification"] is True
    assert result["confidence"] == pytest.approx(0.55)
    assert result["contextual_matches"] == ["e-commerce"]
    assert len(result["questions"]) == 18
    stored = db.get_clarification_request(result["interaction_id"])
    assert stored.questions == result["questions"]
    assert stored.requirements == SHOP
    assert stored.is_follow_up is False


def test_unknown_interaction_id_raises(orchestrator) -> None:
    with pytest.raises(ClarificationRequestNotFoundError):
        orchestrator.submit_clarification_response("does-not-exist", ["anything"])


def test_answering_every_question_dispatches_creation_once(orchestrator, db, agents) -> None:
    agents.replies = {
        "architecture": {"files": [{"path": "package.json", "content": PACKAGE_JSON}]},
        "component": {"files": [{"path": "src/App.jsx", "content": "export default App;"}]},
    }
    parked = orchestrator.create_program(SHOP)

    with mock.patch.object(orchestrator, "create_program", wraps=orchestrator.create_program) as create:
        result = orchestrator.submit_clarification_response(
            parked["interaction_id"],
            _answers_for(parked["questions"], SHOP_ANSWERS),
        )

    assert create.call_count == 1
    merged = create.call_args.args[0]
    assert [f.name for f in merged.features] == ["catalog", "checkout"]
    assert merged.framework == "react"
    assert merged.deployment.platform == "aws"
    assert _count_responses(db) == 1

    assert result["status"] == "success"
    assert result["project"]["name"] == "Shop"
    assert result["project"]["dependencies"] == {"react": "^18.2.0"}
    assert [f["path"] for f in result["project"]["files"]] == ["package.json", "src/App.jsx"]
    assert [(agent, task.task) for _, agent, task in agents.calls] == [
        ("qwen3-coder", "architecture"),
        ("deepseek-v3", "component"),
        ("deepseek-v3", "styling"),
        ("deepseek-r1", "testing"),
    ]
    assert db.get_project(result["project_id"]).name == "Shop"
    assert db.list_interactions(kind="creation")[0].success is True


def test_complex_feature_answer_triggers_follow_up_round(orchestrator, db) -> None:
    parked = orchestrator.create_program(SHOP)
    answers = dict(SHOP_ANSWERS)
    answers["What specific features should the app have?"] = "user login, catalog"

    follow_up = orchestrator.submit_clarification_response(
        parked["interaction_id"],
        _answers_for(parked["questions"], answers),
    )

    assert follow_up["needs_clarification"] is True
    assert follow_up["is_follow_up"] is True
    assert follow_up["original_interaction_id"] == parked["interaction_id"]
    assert follow_up["questions"] == [rules.FOLLOW_UP_IMPORTANT_FEATURE.text]
    assert follow_up["confidence"] == pytest.approx(0.8)
    assert _count_responses(db) == 0

    stored = db.get_clarification_request(follow_up["interaction_id"])
    assert [f.name for f in stored.requirements.features] == ["user login", "catalog"]

    result = orchestrator.submit_clarification_response(follow_up["interaction_id"], ["email and password"])

    assert "needs_clarification" not in result
    assert result["status"] == "success"
    assert _count_responses(db) == 1


def test_unanswered_questions_are_not_asked_again(orchestrator) -> None:
    parked = orchestrator.create_program(SHOP)

    result = orchestrator.submit_clarification_response(parked["interaction_id"], [])

    assert "needs_clarification" not in result
    assert result["project"]["type"] == "web-app"


def test_analysis_without_focus_asks_analysis_questions(orchestrator, agents) -> None:
    issue = {"file": "src/App.jsx", "line": 3, "message": "Missing key prop", "severity": "medium", "type": "code-quality"}
    critical = {"file": "src/api.js", "line": 9, "message": "Token in source", "severity": "critical", "type": "security"}
    agents.replies = {"analysis": {"issues": [issue, critical]}}
    files = [
        SourceFile(path="package.json", content=PACKAGE_JSON),
        SourceFile(path="src/App.jsx", content="import React, { useState } from 'react';"),
    ]

    parked = orchestrator.analyze_existing_code(files)

    assert parked["needs_clarification"] is True
    assert parked["questions"] == [t.text for t in rules.ANALYSIS_QUESTIONS]
    assert parked["confidence"] == pytest.approx(0.7)
    assert "ambiguities" not in parked

    result = orchestrator.submit_clarification_response(parked["interaction_id"], ["security", "auth", "audit"])

    assert result["project_type"] == "web-app"
    assert result["summary"]["total_files"] == 2
    assert result["summary"]["total_issues"] == 2
    assert result["summary"]["critical_issues"] == 1
    assert [i["severity"] for i in result["issues"]] == ["critical", "medium"]
    assert [(agent, task.focus_area) for _, agent, task in agents.calls] == [
        ("qwen3-coder", "frontend-optimization, state-management"),
        ("deepseek-r1", "frontend-optimization, state-management"),
    ]
    assert agents.calls[1][2].issues == [issue, critical]


def test_analysis_with_focus_runs_immediately(orchestrator, agents) -> None:
    files = [SourceFile(path="server/index.js", content="const app = express();")]

    result = orchestrator.analyze_existing_code(files, ProjectContext(analysis_focus="performance"))

    assert result["summary"]["total_issues"] == 0
    assert result["project_type"] == "unknown"
    assert agents.calls[0][1] == "deepseek-r1"
    assert agents.calls[0][2].focus_area == "performance"


def test_extension_merges_created_and_modified_files(orchestrator, agents, validator) -> None:
    agents.replies = {
        "integration-points": {"integrationPoints": [{"type": "route", "location": "src/App.jsx"}]},
        "generate-files": {"files": [{"path": "src/components/Cart.jsx", "content": "export const Cart = () => null;"}]},
        "modify-files": {"modifiedFiles": [{"path": "src/App.jsx", "content": "import { Cart } from './components/Cart';"}]},
    }
    files = [
        SourceFile(path="src/App.jsx", content="export default App;"),
        SourceFile(path="src/index.js", content="createRoot(root).render(<App />);"),
    ]
    requirements = Requirements(
        name="Cart drawer",
        features=[Feature(name="Cart", type="ui-component")],
        framework="react",
        users=UserProfile(description="shoppers"),
        deployment=DeploymentTarget(preferences="same as today"),
        timeline=Timeline(description="this sprint"),
    )

    result = orchestrator.extend_existing_project(files, requirements, ProjectContext(type="web-app"))

    assert result["project_type"] == "web-app"
    assert result["modified_files"] == [
        {"path": "src/App.jsx", "content": "import { Cart } from './components/Cart';"}
    ]
    assert [f["path"] for f in result["new_files"]] == ["src/components/Cart.jsx"]
    assert result["integration_points"][0]["type"] == "component"
    assert result["integration_points"][1]["type"] == "route"
    assert sorted(f["path"] for f in validator.validated[0]) == [
        "src/App.jsx",
        "src/components/Cart.jsx",
        "src/index.js",
    ]
    assert [(kind, agent) for kind, agent, _ in agents.calls] == [
        ("analysis", "deepseek-r1"),
        ("creation", "qwen3-coder"),
        ("creation", "deepseek-v3"),
    ]


def test_failed_validation_reported_and_learned(context, db, learning) -> None:
    validator = FakeValidator(success=False, errors=["Installation failed: missing package.json"])
    orchestrator = OrchestratorService(
        context, db, learning, ClarificationEngine(context), FakeAgents(), validator
    )
    requirements = Requirements(
        name="Notes",
        type="api",
        features=[Feature(name="notes", requires_backend=True)],
        backend="node",
        data_model={"type": "sql"},
        users=UserProfile(description="me"),
        deployment=DeploymentTarget(platform="aws"),
        timeline=Timeline(urgency="low"),
    )

    result = orchestrator.create_program(requirements)

    assert result["status"] == "failed"
    assert result["errors"] == ["Installation failed: missing package.json"]
    pattern = learning.store.get("creation", "api")
    assert pattern.uses == 1
    assert pattern.success_rate == 0.0


def test_clarification_history_lists_answered_creations(orchestrator) -> None:
    shop = SHOP.model_copy(update={"type": "web-app"})
    parked = orchestrator.create_program(shop)
    orchestrator.submit_clarification_response(
        parked["interaction_id"],
        _answers_for(parked["questions"], SHOP_ANSWERS),
    )

    history = orchestrator.get_clarification_history("web-app")

    assert [entry.interaction_id for entry in history] == [parked["interaction_id"]]
    assert history[0].updated_requirements.framework == "react"
    assert orchestrator.get_clarification_history("api") == []
