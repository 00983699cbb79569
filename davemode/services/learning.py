"""
DaveMode Learning Engine

Records the outcome of every agent run and adapts which agent fills each
role for a given (task kind, project type).

Selection is a plain success-rate comparison: once a pattern has been used
``learning_min_uses`` times, every role is re-assigned to the agent with the
strictly highest successes/uses ratio in the pattern's performance map.
"""

import uuid
from typing import Any, Dict, Optional, Tuple, Union

from davemode.db.database import Database
from davemode.models.domain import (
    AgentStats,
    AnalysisStrategy,
    CreationStrategy,
    HybridStrategy,
    Interaction,
    LearnedPattern,
    LearningKind,
    StrategyApproach,
)
from davemode.services.base import Service, ServiceContext
from davemode.services.learning_store import LearningStore
from davemode.services.ledger import AgentPerformanceLedger

Strategy = Union[CreationStrategy, AnalysisStrategy, HybridStrategy]

ROLES: Dict[str, Tuple[str, ...]] = {
    LearningKind.CREATION.value: ("architect", "builder", "styler"),
    LearningKind.ANALYSIS.value: ("detector", "fixer"),
    LearningKind.HYBRID.value: ("analyzer", "creator", "integrator"),
}


def default_strategy(kind: str) -> Strategy:
    """Hard-coded assignment used before anything has been learned."""
    if kind == LearningKind.CREATION.value:
        return CreationStrategy(
            architect="qwen3-coder",
            builders=["deepseek-v3"],
            styler="deepseek-v3",
        )
    if kind == LearningKind.ANALYSIS.value:
        return AnalysisStrategy(primary_agent="deepseek-r1", secondary_agents=["deepseek-v3"])
    if kind == LearningKind.HYBRID.value:
        return HybridStrategy(analyzer="deepseek-r1", creator="qwen3-coder", integrator="deepseek-v3")
    raise ValueError(f"Unknown learning kind: {kind}")


def initial_roles(strategy: Strategy) -> Dict[str, str]:
    """Role assignment seeded from the first strategy seen for a pattern."""
    if isinstance(strategy, CreationStrategy):
        return {
            "architect": strategy.architect,
            "builder": strategy.builders[0] if strategy.builders else strategy.architect,
            "styler": strategy.styler,
        }
    if isinstance(strategy, AnalysisStrategy):
        return {
            "detector": strategy.primary_agent,
            "fixer": strategy.secondary_agents[0] if strategy.secondary_agents else strategy.primary_agent,
        }
    return {
        "analyzer": strategy.analyzer,
        "creator": strategy.creator,
        "integrator": strategy.integrator,
    }


def outcome_success(kind: str, result: Dict[str, Any]) -> bool:
    """Derive a boolean outcome from a task result."""
    if kind == LearningKind.ANALYSIS.value:
        issues = result.get("issues")
        return len(issues) < 10 if issues is not None else True
    validation = result.get("validation")
    return bool(validation.get("success")) if validation else False


def best_agent(incumbent: str, performance: Dict[str, AgentStats]) -> str:
    """
    Agent with the strictly highest success rate, scanning in first-recorded
    order. The incumbent survives only when no agent has a rate above zero.
    """
    best, best_rate = incumbent, 0.0
    for agent, stats in performance.items():
        rate = stats.success_rate
        if rate > best_rate:
            best, best_rate = agent, rate
    return best


def apply_outcome(
    pattern: LearnedPattern,
    strategy: Strategy,
    success: bool,
    *,
    min_uses: int = 3,
) -> LearnedPattern:
    """Fold one outcome into ``pattern`` in place and return it."""
    if not pattern.best_agents:
        pattern.best_agents = initial_roles(strategy)

    pattern.uses += 1
    pattern.success_rate = (pattern.success_rate * (pattern.uses - 1) + (1 if success else 0)) / pattern.uses

    for agent in strategy.agents():
        stats = pattern.agent_performance.setdefault(agent, AgentStats())
        stats.uses += 1
        if success:
            stats.successes += 1

    if pattern.uses >= min_uses:
        for role in ROLES[pattern.kind]:
            pattern.best_agents[role] = best_agent(pattern.best_agents.get(role, ""), pattern.agent_performance)
    return pattern


class LearningEngine(Service):
    """
    Service recording interaction outcomes and serving the best strategy.

    Holds an explicit LearningStore handle; patterns are loaded when the
    store is loaded and refreshed after each write.

    Example:
        engine = LearningEngine(context, db, store)
        strategy = engine.get_best_strategy("creation", "web-app")
        engine.record_interaction("creation", "web-app", strategy, result)
    """

    def __init__(
        self,
        context: ServiceContext,
        db: Database,
        store: LearningStore,
        ledger: Optional[AgentPerformanceLedger] = None,
    ) -> None:
        super().__init__(context)
        self.db = db
        self.store = store
        self.ledger = ledger or AgentPerformanceLedger(db)

    def record_interaction(
        self,
        kind: str,
        project_type: str,
        strategy: Strategy,
        result: Dict[str, Any],
        *,
        requirements: Optional[Dict[str, Any]] = None,
        project_context: Optional[Dict[str, Any]] = None,
    ) -> Interaction:
        """
        Record one outcome: append it to history, bump the ledger rows and
        update the learned pattern for (kind, project_type).
        """
        kind = LearningKind(kind).value
        success = outcome_success(kind, result)
        interaction = Interaction(
            id=str(uuid.uuid4()),
            kind=kind,
            project_type=project_type,
            success=success,
            strategy=strategy.to_dict(),
            result=result,
            requirements=requirements,
            project_context=project_context,
        )
        self.db.store_interaction(interaction)
        self.ledger.record(strategy, project_type, success)

        min_uses = self.config.learning_min_uses
        pattern = self.store.update(
            kind,
            project_type,
            lambda current: apply_outcome(current, strategy, success, min_uses=min_uses),
        )
        self.logger.info(
            "pattern_updated",
            extra=self.log_extra(
                interaction_id=interaction.id,
                task_kind=kind,
                project_type=project_type,
                success=success,
                uses=pattern.uses,
                success_rate=round(pattern.success_rate, 4),
                best_agents=pattern.best_agents,
            ),
        )
        return interaction

    def get_best_strategy(self, kind: str, project_type: str) -> Strategy:
        kind = LearningKind(kind).value
        pattern = self.store.get(kind, project_type)
        if pattern is None:
            return default_strategy(kind)

        roles = pattern.best_agents
        if kind == LearningKind.CREATION.value:
            return CreationStrategy(
                architect=roles["architect"],
                builders=[roles["builder"]],
                styler=roles["styler"],
                approach=StrategyApproach.LEARNED,
                confidence=pattern.success_rate,
            )
        if kind == LearningKind.ANALYSIS.value:
            return AnalysisStrategy(
                primary_agent=roles["detector"],
                secondary_agents=[roles["fixer"]],
                approach=StrategyApproach.LEARNED,
                confidence=pattern.success_rate,
            )
        return HybridStrategy(
            analyzer=roles["analyzer"],
            creator=roles["creator"],
            integrator=roles["integrator"],
            approach=StrategyApproach.LEARNED,
            confidence=pattern.success_rate,
        )

    def get_agent_performance(self) -> Dict[str, Dict[str, Any]]:
        """Per-agent totals across every learned pattern, with a per-kind breakdown."""
        totals: Dict[str, Dict[str, Any]] = {}
        for kind, patterns in self.store.all().items():
            for pattern in patterns.values():
                for agent, stats in pattern.agent_performance.items():
                    entry = totals.setdefault(agent, {"uses": 0, "successes": 0, "tasks": {}})
                    entry["uses"] += stats.uses
                    entry["successes"] += stats.successes
                    task = entry["tasks"].setdefault(kind, {"uses": 0, "successes": 0})
                    task["uses"] += stats.uses
                    task["successes"] += stats.successes

        for entry in totals.values():
            entry["success_rate"] = entry["successes"] / entry["uses"] if entry["uses"] else 0.0
            for task in entry["tasks"].values():
                task["success_rate"] = task["successes"] / task["uses"] if task["uses"] else 0.0
        return totals

    def get_learning_patterns(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        return {
            kind: {project_type: pattern.to_data() for project_type, pattern in patterns.items()}
            for kind, patterns in self.store.all().items()
        }
