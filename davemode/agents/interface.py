"""
DaveMode Agent Interface

Shared types for invoking inference agents for analysis and creation tasks.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from davemode.models.payloads import SourceFile


@dataclass
class AgentMetadata:
    """Metadata about a registered agent."""
    id: str
    name: str
    model: str
    capabilities: List[str] = field(default_factory=list)
    description: Optional[str] = None


@dataclass
class AgentTask:
    """
    Structured instructions for one agent call.

    ``task`` names the job (e.g. "architecture", "component", "analysis",
    "integration-points"); the remaining fields are optional context that
    is rendered into the prompt when present.
    """
    task: Optional[str] = None
    files: List[SourceFile] = field(default_factory=list)
    focus_area: Optional[str] = None
    project_type: Optional[str] = None
    project_plan: Optional[Dict[str, Any]] = None
    component: Optional[Dict[str, Any]] = None
    components: Optional[List[Dict[str, Any]]] = None
    feature: Optional[Dict[str, Any]] = None
    architecture: Optional[Dict[str, Any]] = None
    issues: Optional[List[Dict[str, Any]]] = None
    integration_points: Optional[List[Dict[str, Any]]] = None


EMPTY_ANALYSIS_RESULT: Dict[str, Any] = {
    "issues": [],
    "patterns": [],
    "metrics": {},
    "recommendations": [],
}

EMPTY_CREATION_RESULT: Dict[str, Any] = {
    "files": [],
    "fixes": [],
    "modifiedFiles": [],
}


def empty_result(kind: str) -> Dict[str, Any]:
    base = EMPTY_ANALYSIS_RESULT if kind == "analysis" else EMPTY_CREATION_RESULT
    return copy.deepcopy(base)


class AgentClient(Protocol):
    """Contract for the agent invocation collaborator."""

    def analyze(self, agent_id: str, task: AgentTask) -> Dict[str, Any]: ...

    def create(self, agent_id: str, task: AgentTask) -> Dict[str, Any]: ...
