"""
DaveMode Together Agent Client

HTTP client for the chat-completions inference endpoint that backs every
agent. Replies are expected to contain a JSON object; anything else is
replaced by the empty result shape for the task kind.
"""

import json
import re
from typing import Any, Dict, Optional

import httpx

from davemode.agents.interface import AgentTask, empty_result
from davemode.agents.prompts import SYSTEM_PROMPT, build_analysis_prompt, build_creation_prompt
from davemode.agents.registry import AgentRegistry
from davemode.config import Config
from davemode.errors import AgentError, MalformedAgentResponse
from davemode.logging import get_logger, log_extra

logger = get_logger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def extract_json_object(content: str) -> Dict[str, Any]:
    """
    Parse the outermost ``{...}`` span of ``content``.

    Raises MalformedAgentResponse when there is no object or it does not parse.
    """
    match = _JSON_OBJECT.search(content or "")
    if match is None:
        raise MalformedAgentResponse("Agent reply contains no JSON object")
    try:
        parsed = json.loads(match.group(0))
    except ValueError as exc:
        raise MalformedAgentResponse(f"Agent reply is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise MalformedAgentResponse("Agent reply JSON is not an object")
    return parsed


def completion_content(payload: Dict[str, Any]) -> str:
    try:
        return payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise MalformedAgentResponse("Completion payload has no message content") from exc


class TogetherAgentClient:
    """
    Agent invocation over the Together chat-completions API.

    Example:
        client = TogetherAgentClient(config, AgentRegistry.with_defaults())
        result = client.analyze("deepseek-r1", AgentTask(files=files, focus_area="security"))
        issues = result["issues"]
    """

    def __init__(
        self,
        config: Config,
        registry: AgentRegistry,
        *,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self._client = client

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.config.together_api_url,
                timeout=self.config.agent_timeout_seconds,
                headers={
                    "Authorization": f"Bearer {self.config.together_api_key or ''}",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    def _chat(self, model: str, prompt: str) -> Dict[str, Any]:
        body = {
            "model": model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": 4096,
            "temperature": 0.7,
            "top_p": 0.9,
            "stream": False,
        }
        try:
            resp = self._get_client().post("/v1/chat/completions", json=body)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as exc:
            raise AgentError(f"Inference call for {model} failed: {exc}", metadata={"model": model}) from exc
        except ValueError as exc:
            raise AgentError(f"Inference response for {model} is not JSON", metadata={"model": model}) from exc

    def _invoke(self, kind: str, agent_id: str, prompt: str) -> Dict[str, Any]:
        agent = self.registry.get(agent_id)
        logger.info("agent_invoked", extra=log_extra(agent_id=agent_id, task_kind=kind, model=agent.model))
        payload = self._chat(agent.model, prompt)
        result = empty_result(kind)
        try:
            result.update(extract_json_object(completion_content(payload)))
        except MalformedAgentResponse as exc:
            logger.warning(
                "agent_response_unparseable",
                extra=log_extra(agent_id=agent_id, task_kind=kind, error=str(exc)),
            )
        return result

    def analyze(self, agent_id: str, task: AgentTask) -> Dict[str, Any]:
        return self._invoke("analysis", agent_id, build_analysis_prompt(task))

    def create(self, agent_id: str, task: AgentTask) -> Dict[str, Any]:
        return self._invoke("creation", agent_id, build_creation_prompt(task))
