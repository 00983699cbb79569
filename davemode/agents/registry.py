"""
DaveMode Agent Registry

Fixed registry of inference agents, optionally overridden from YAML.
Invoking an id outside the registry is fatal.
"""

from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml

from davemode.agents.interface import AgentMetadata
from davemode.errors import ConfigError, UnknownAgentError
from davemode.logging import get_logger

logger = get_logger(__name__)


DEFAULT_AGENTS = (
    AgentMetadata(
        id="deepseek-r1",
        name="DeepSeek-R1-0528",
        model="deepseek-ai/DeepSeek-R1-0528",
        capabilities=["code-review", "document-analysis", "planning", "information-extraction", "coding"],
    ),
    AgentMetadata(
        id="deepseek-v3",
        name="DeepSeek-V3",
        model="deepseek-ai/DeepSeek-V3",
        capabilities=["coding", "optimization", "refactoring"],
    ),
    AgentMetadata(
        id="qwen3-coder",
        name="Qwen3-Coder-480B",
        model="Qwen/Qwen3-Coder-480B",
        capabilities=["coding", "architecture", "debugging"],
    ),
)


class AgentRegistry:
    """
    Lookup table of agents by id.

    Example:
        registry = AgentRegistry.with_defaults()
        registry.load_from_yaml("config/agents.yaml")
        model = registry.get("deepseek-v3").model
    """

    def __init__(self) -> None:
        self._agents: Dict[str, AgentMetadata] = {}

    @classmethod
    def with_defaults(cls) -> "AgentRegistry":
        registry = cls()
        for agent in DEFAULT_AGENTS:
            registry.register(agent)
        return registry

    def register(self, agent: AgentMetadata, *, replace: bool = False) -> None:
        if agent.id in self._agents and not replace:
            raise ValueError(f"Agent '{agent.id}' already registered")
        self._agents[agent.id] = agent
        logger.debug("agent_registered", extra={"agent_id": agent.id, "model": agent.model})

    def get(self, agent_id: str) -> AgentMetadata:
        """Raises UnknownAgentError if the id is not registered."""
        agent = self._agents.get(agent_id)
        if agent is None:
            raise UnknownAgentError(f"Unknown agent: {agent_id}", metadata={"agent_id": agent_id})
        return agent

    def has(self, agent_id: str) -> bool:
        return agent_id in self._agents

    def list_ids(self) -> List[str]:
        return list(self._agents.keys())

    def list_metadata(self) -> List[AgentMetadata]:
        return list(self._agents.values())

    def load_from_yaml(self, path: Union[str, Path]) -> int:
        """
        Register or replace agents from a YAML file.

        Expected layout::

            agents:
              - id: deepseek-v3
                name: DeepSeek-V3
                model: deepseek-ai/DeepSeek-V3
                capabilities: [coding]

        Returns the number of agents loaded. A missing file loads nothing.
        """
        config_path = Path(path)
        if not config_path.exists():
            logger.warning("agent_config_not_found", extra={"path": str(config_path)})
            return 0

        with open(config_path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigError(f"Invalid agent config {config_path}: {exc}") from exc

        entries = (data or {}).get("agents") or []
        loaded = 0
        for entry in entries:
            agent_id = entry.get("id")
            model = entry.get("model")
            if not agent_id or not model:
                raise ConfigError(
                    f"Agent entries in {config_path} need 'id' and 'model'",
                    metadata={"entry": entry},
                )
            self.register(
                AgentMetadata(
                    id=agent_id,
                    name=entry.get("name") or agent_id,
                    model=model,
                    capabilities=list(entry.get("capabilities") or []),
                    description=entry.get("description"),
                ),
                replace=True,
            )
            loaded += 1
        logger.info("agent_config_loaded", extra={"path": str(config_path), "agents": loaded})
        return loaded


_registry: Optional[AgentRegistry] = None


def get_registry(config_path: Optional[Union[str, Path]] = None) -> AgentRegistry:
    """Get the global agent registry, loading YAML overrides on first use."""
    global _registry
    if _registry is None:
        registry = AgentRegistry.with_defaults()
        if config_path is not None:
            registry.load_from_yaml(config_path)
        _registry = registry
    return _registry


def _reset_registry_for_tests() -> None:
    global _registry
    _registry = None
