"""
DaveMode Agent Performance Ledger

Per (agent, task type, project type) use/success counters, incremented
atomically by the database for every recorded interaction.
"""

from typing import List, Optional, Tuple, Union

from davemode.db.database import Database
from davemode.logging import get_logger, log_extra
from davemode.models.domain import (
    AgentPerformanceRecord,
    AnalysisStrategy,
    CreationStrategy,
    HybridStrategy,
)

logger = get_logger(__name__)

Strategy = Union[CreationStrategy, AnalysisStrategy, HybridStrategy]


def ledger_entries(strategy: Strategy) -> List[Tuple[str, str]]:
    """(agent, task type) pairs credited for one run of ``strategy``."""
    if isinstance(strategy, CreationStrategy):
        entries = [(strategy.architect, "architecture")]
        entries.extend((builder, "building") for builder in strategy.builders)
        entries.append((strategy.styler, "styling"))
        return entries
    if isinstance(strategy, AnalysisStrategy):
        return [(agent, "analysis") for agent in strategy.agents()]
    return [
        (strategy.analyzer, "analysis"),
        (strategy.creator, "creation"),
        (strategy.integrator, "integration"),
    ]


class AgentPerformanceLedger:
    def __init__(self, db: Database) -> None:
        self.db = db

    def record(self, strategy: Strategy, project_type: str, success: bool) -> List[AgentPerformanceRecord]:
        records = []
        for agent, task_type in ledger_entries(strategy):
            if not agent:
                continue
            records.append(self.db.record_agent_outcome(agent, task_type, project_type or "unknown", success))
        logger.debug(
            "agent_ledger_updated",
            extra=log_extra(project_type=project_type, rows=len(records), success=success),
        )
        return records

    def list(
        self,
        *,
        agent_name: Optional[str] = None,
        task_type: Optional[str] = None,
        project_type: Optional[str] = None,
    ) -> List[AgentPerformanceRecord]:
        return self.db.list_agent_performance(
            agent_name=agent_name,
            task_type=task_type,
            project_type=project_type,
        )
