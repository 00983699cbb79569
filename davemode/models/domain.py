"""
DaveMode Domain Models

Data classes representing the core entities in the DaveMode system.
These are used for data transfer between storage and services.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from davemode.models.payloads import ProjectContext, Requirements, SourceFile


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


# Enumerations

class TaskKind(str, Enum):
    """Kinds of request the orchestrator accepts."""
    CREATION = "creation"
    ANALYSIS = "analysis"
    EXTENSION = "extension"


class LearningKind(str, Enum):
    """Pattern families tracked by the learning engine."""
    CREATION = "creation"
    ANALYSIS = "analysis"
    HYBRID = "hybrid"


class Ambiguity(str, Enum):
    """Gaps in requirements that need a clarifying question."""
    MISSING_FEATURES = "missing-features"
    MISSING_TECH_STACK = "missing-tech-stack"
    MISSING_DESIGN = "missing-design"
    MISSING_INTEGRATION = "missing-integration"
    MISSING_DATA = "missing-data"
    MISSING_USERS = "missing-users"
    MISSING_DEPLOYMENT = "missing-deployment"
    MISSING_TIMELINE = "missing-timeline"


class StrategyApproach:
    """Where a strategy's agent assignment came from."""
    DEFAULT = "default"
    STANDARD = "standard"
    LEARNED = "learned"


# Strategies

@dataclass
class CreationStrategy:
    """Agent assignment for building a new project."""
    architect: str
    builders: List[str]
    styler: str
    tester: str = "deepseek-r1"
    approach: str = StrategyApproach.DEFAULT
    confidence: float = 0.5

    def agents(self) -> List[str]:
        """Agents whose outcome is credited to the learned pattern."""
        return [self.architect, *self.builders, self.styler]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AnalysisStrategy:
    """Agent assignment for analysing an existing codebase."""
    primary_agent: str
    secondary_agents: List[str] = field(default_factory=list)
    focus_areas: List[str] = field(default_factory=list)
    approach: str = StrategyApproach.DEFAULT
    confidence: float = 0.5

    def agents(self) -> List[str]:
        return [self.primary_agent, *self.secondary_agents]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class HybridStrategy:
    """Agent assignment for extending an existing project."""
    analyzer: str
    creator: str
    integrator: str
    approach: str = StrategyApproach.DEFAULT
    confidence: float = 0.5

    def agents(self) -> List[str]:
        return [self.analyzer, self.creator, self.integrator]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Learning state

@dataclass
class AgentStats:
    """Per-agent counters nested inside a learned pattern."""
    uses: int = 0
    successes: int = 0

    @property
    def success_rate(self) -> float:
        return self.successes / self.uses if self.uses > 0 else 0.0


@dataclass
class LearnedPattern:
    """
    Statistics for one (kind, project type) pair.

    ``best_agents`` maps a role name (architect, builder, styler, detector,
    fixer, analyzer, creator, integrator) to the agent currently preferred
    for it. ``agent_performance`` keeps first-recorded order, which decides
    ties during re-evaluation.
    """
    kind: str
    project_type: str
    best_agents: Dict[str, str] = field(default_factory=dict)
    success_rate: float = 0.0
    uses: int = 0
    agent_performance: Dict[str, AgentStats] = field(default_factory=dict)
    updated_at: Optional[str] = None

    def to_data(self) -> Dict[str, Any]:
        return {
            "best_agents": dict(self.best_agents),
            "success_rate": self.success_rate,
            "uses": self.uses,
            "agent_performance": {
                agent: {"uses": stats.uses, "successes": stats.successes}
                for agent, stats in self.agent_performance.items()
            },
        }

    @classmethod
    def from_data(
        cls,
        kind: str,
        project_type: str,
        data: Dict[str, Any],
        *,
        updated_at: Optional[str] = None,
    ) -> "LearnedPattern":
        performance = data.get("agent_performance") or {}
        return cls(
            kind=kind,
            project_type=project_type,
            best_agents=dict(data.get("best_agents") or {}),
            success_rate=float(data.get("success_rate") or 0.0),
            uses=int(data.get("uses") or 0),
            agent_performance={
                agent: AgentStats(uses=int(stats.get("uses", 0)), successes=int(stats.get("successes", 0)))
                for agent, stats in performance.items()
            },
            updated_at=updated_at,
        )


@dataclass
class AgentPerformanceRecord:
    """Ledger row keyed by (agent_name, task_type, project_type)."""
    agent_name: str
    task_type: str
    project_type: str
    uses: int
    successes: int
    success_rate: float
    updated_at: Optional[str] = None


# Clarification state

@dataclass
class ClarificationRequest:
    """
    Questions awaiting answers before a task can run.

    Follow-up rounds get a fresh id and point back through
    ``original_interaction_id``.
    """
    id: str
    kind: str
    questions: List[str]
    requirements: Optional[Requirements] = None
    context: Optional[Dict[str, Any]] = None
    files: Optional[List[SourceFile]] = None
    project_context: Optional[ProjectContext] = None
    ambiguities: List[str] = field(default_factory=list)
    contextual_matches: List[str] = field(default_factory=list)
    original_interaction_id: Optional[str] = None
    is_follow_up: bool = False
    timestamp: str = field(default_factory=utc_now)


@dataclass
class ClarificationResponse:
    """Answers aligned positionally with the request's questions."""
    interaction_id: str
    responses: List[Optional[str]]
    updated_requirements: Optional[Requirements] = None
    updated_project_context: Optional[ProjectContext] = None
    timestamp: str = field(default_factory=utc_now)


@dataclass
class ClarificationHistoryEntry:
    """An answered creation clarification, joined with its request."""
    interaction_id: str
    questions: List[str]
    ambiguities: List[str]
    contextual_matches: List[str]
    responses: List[Optional[str]]
    updated_requirements: Optional[Requirements]
    timestamp: str


# History

@dataclass
class Interaction:
    """One recorded agent run and its outcome."""
    id: str
    kind: str
    project_type: str
    success: bool
    strategy: Dict[str, Any] = field(default_factory=dict)
    result: Dict[str, Any] = field(default_factory=dict)
    requirements: Optional[Dict[str, Any]] = None
    project_context: Optional[Dict[str, Any]] = None
    timestamp: str = field(default_factory=utc_now)


@dataclass
class ValidationResult:
    """Outcome reported by the validation sandbox."""
    success: bool
    errors: List[str] = field(default_factory=list)
    skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProjectSnapshot:
    """A generated project as persisted after validation."""
    id: str
    name: str
    type: str
    technologies: List[str] = field(default_factory=list)
    features: List[Dict[str, Any]] = field(default_factory=list)
    files: List[Dict[str, Any]] = field(default_factory=list)
    validation: Optional[Dict[str, Any]] = None
    timestamp: str = field(default_factory=utc_now)
