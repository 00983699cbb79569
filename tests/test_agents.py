import json

import httpx
import pytest

from davemode.agents.interface import AgentTask
from davemode.agents.prompts import build_analysis_prompt, build_creation_prompt
from davemode.agents.registry import AgentRegistry
from davemode.agents.together import TogetherAgentClient, extract_json_object
from davemode.config import Config
from davemode.errors import AgentError, ConfigError, MalformedAgentResponse, UnknownAgentError
from davemode.models.payloads import SourceFile


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _client(handler) -> TogetherAgentClient:
    http = httpx.Client(base_url="https://inference.test", transport=httpx.MockTransport(handler))
    return TogetherAgentClient(Config(), AgentRegistry.with_defaults(), client=http)


def test_default_registry_has_three_agents() -> None:
    registry = AgentRegistry.with_defaults()

    assert registry.list_ids() == ["deepseek-r1", "deepseek-v3", "qwen3-coder"]
    assert registry.get("qwen3-coder").model == "Qwen/Qwen3-Coder-480B"


def test_unknown_agent_is_fatal() -> None:
    with pytest.raises(UnknownAgentError):
        AgentRegistry.with_defaults().get("gpt-9")


def test_yaml_overrides_replace_agents(tmp_path) -> None:
    path = tmp_path / "agents.yaml"
    path.write_text(
        "agents:\n"
        "  - id: deepseek-v3\n"
        "    model: deepseek-ai/DeepSeek-V3.1\n"
        "  - id: local-coder\n"
        "    name: Local Coder\n"
        "    model: local/coder\n"
        "    capabilities: [coding]\n"
    )
    registry = AgentRegistry.with_defaults()

    assert registry.load_from_yaml(path) == 2
    assert registry.get("deepseek-v3").model == "deepseek-ai/DeepSeek-V3.1"
    assert registry.get("local-coder").capabilities == ["coding"]
    assert registry.load_from_yaml(tmp_path / "missing.yaml") == 0


def test_yaml_entries_need_id_and_model(tmp_path) -> None:
    path = tmp_path / "agents.yaml"
    path.write_text("agents:\n  - id: broken\n")

    with pytest.raises(ConfigError):
        AgentRegistry.with_defaults().load_from_yaml(path)


def test_extract_json_object_from_chatty_reply() -> None:
    reply = 'Sure! Here you go:\n```json\n{"issues": [{"severity": "low"}]}\n```'

    assert extract_json_object(reply) == {"issues": [{"severity": "low"}]}
    with pytest.raises(MalformedAgentResponse):
        extract_json_object("no json here")
    with pytest.raises(MalformedAgentResponse):
        extract_json_object("{broken")


def test_analyze_posts_chat_completion_and_parses_reply() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion('{"issues": [{"file": "a.js", "severity": "high"}]}'))

    task = AgentTask(files=[SourceFile(path="a.js", content="eval(x)")], focus_area="security")
    result = _client(handler).analyze("deepseek-r1", task)

    assert seen["path"] == "/v1/chat/completions"
    assert seen["body"]["model"] == "deepseek-ai/DeepSeek-R1-0528"
    assert seen["body"]["messages"][0]["role"] == "system"
    assert "Focus area: security" in seen["body"]["messages"][1]["content"]
    assert result["issues"] == [{"file": "a.js", "severity": "high"}]
    assert result["recommendations"] == []


def test_unparseable_reply_falls_back_to_empty_shape() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_completion("I could not do that."))

    result = _client(handler).create("qwen3-coder", AgentTask(task="component"))

    assert result == {"files": [], "fixes": [], "modifiedFiles": []}


def test_transport_failure_raises_agent_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": "overloaded"})

    with pytest.raises(AgentError):
        _client(handler).analyze("deepseek-v3", AgentTask())


def test_unknown_agent_rejected_before_any_request() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not be called
        raise AssertionError("unexpected request")

    with pytest.raises(UnknownAgentError):
        _client(handler).create("gpt-9", AgentTask())


def test_prompts_include_task_context() -> None:
    analysis = build_analysis_prompt(AgentTask(task="integration-points", feature={"name": "Cart"}))
    creation = build_creation_prompt(AgentTask(task="modify-files", project_type="web-app"))

    assert '"integrationPoints"' in analysis
    assert 'Feature to integrate: {"name": "Cart"}' in analysis
    assert "Project type: web-app" in creation
    assert '"modifiedFiles"' in creation


def test_second_analysis_pass_sees_earlier_issues() -> None:
    issue = {"file": "a.js", "line": 3, "severity": "high", "message": "eval"}

    prompt = build_analysis_prompt(AgentTask(task="analysis", issues=[issue]))

    assert "Issues already found: " + json.dumps([issue]) in prompt
