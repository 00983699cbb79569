"""
DaveMode Agents

Registry and client for the inference agents used by the orchestrator.
"""

from davemode.agents.interface import AgentClient, AgentMetadata, AgentTask, empty_result
from davemode.agents.registry import AgentRegistry, get_registry
from davemode.agents.together import TogetherAgentClient

__all__ = [
    "AgentClient",
    "AgentMetadata",
    "AgentRegistry",
    "AgentTask",
    "TogetherAgentClient",
    "empty_result",
    "get_registry",
]
