"""
DaveMode Models

Domain dataclasses and request payload models.
"""

from davemode.models.domain import (
    AgentPerformanceRecord,
    AgentStats,
    Ambiguity,
    AnalysisStrategy,
    ClarificationHistoryEntry,
    ClarificationRequest,
    ClarificationResponse,
    CreationStrategy,
    HybridStrategy,
    Interaction,
    LearnedPattern,
    LearningKind,
    ProjectSnapshot,
    StrategyApproach,
    TaskKind,
    ValidationResult,
)
from davemode.models.payloads import (
    Capability,
    DataModel,
    DeploymentTarget,
    DesignPreferences,
    Feature,
    PaymentOptions,
    ProjectContext,
    Requirements,
    SourceFile,
    Timeline,
    UserProfile,
)

__all__ = [
    "AgentPerformanceRecord",
    "AgentStats",
    "Ambiguity",
    "AnalysisStrategy",
    "ClarificationHistoryEntry",
    "ClarificationRequest",
    "ClarificationResponse",
    "CreationStrategy",
    "HybridStrategy",
    "Interaction",
    "LearnedPattern",
    "LearningKind",
    "ProjectSnapshot",
    "StrategyApproach",
    "TaskKind",
    "ValidationResult",
    "Capability",
    "DataModel",
    "DeploymentTarget",
    "DesignPreferences",
    "Feature",
    "PaymentOptions",
    "ProjectContext",
    "Requirements",
    "SourceFile",
    "Timeline",
    "UserProfile",
]
