"""
DaveMode Services

Core service layer: clarification, learning and orchestration.
"""

from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from davemode.services.base import Service, ServiceContext
    from davemode.services.clarification import ClarificationEngine, ClarificationResult
    from davemode.services.learning import LearningEngine
    from davemode.services.learning_store import LearningStore
    from davemode.services.ledger import AgentPerformanceLedger
    from davemode.services.orchestrator import OrchestratorService, calculate_clarification_confidence

__all__ = [
    # Base
    "Service",
    "ServiceContext",
    # Clarification
    "ClarificationEngine",
    "ClarificationResult",
    # Learning
    "LearningEngine",
    "LearningStore",
    "AgentPerformanceLedger",
    # Orchestrator
    "OrchestratorService",
    "calculate_clarification_confidence",
]

_EXPORTS = {
    "Service": "davemode.services.base",
    "ServiceContext": "davemode.services.base",
    "ClarificationEngine": "davemode.services.clarification",
    "ClarificationResult": "davemode.services.clarification",
    "LearningEngine": "davemode.services.learning",
    "LearningStore": "davemode.services.learning_store",
    "AgentPerformanceLedger": "davemode.services.ledger",
    "OrchestratorService": "davemode.services.orchestrator",
    "calculate_clarification_confidence": "davemode.services.orchestrator",
}


def __getattr__(name: str):
    module_path = _EXPORTS.get(name)
    if not module_path:
        raise AttributeError(f"module {__name__} has no attribute {name}")
    module = import_module(module_path)
    return getattr(module, name)


def __dir__() -> list[str]:
    return sorted(__all__)
