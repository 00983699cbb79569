"""
DaveMode Orchestrator Service

Entry point for creation, analysis and extension tasks. Every task first
goes through clarification; ambiguous requests are parked as a stored
ClarificationRequest and resumed by interaction id once answered. Resolved
tasks run their agent workflow, are validated in the sandbox where they
produce a project, and feed their outcome back into the learning engine.
"""

import uuid
from typing import Any, Dict, List, Optional, Sequence

from davemode.agents.interface import AgentClient, AgentTask
from davemode.db.database import Database
from davemode.logging import log_context
from davemode.models.domain import (
    ClarificationHistoryEntry,
    ClarificationRequest,
    ClarificationResponse,
    LearningKind,
    ProjectSnapshot,
    TaskKind,
)
from davemode.models.payloads import ProjectContext, Requirements, SourceFile
from davemode.sandbox import ProjectValidator
from davemode.services import clarification_rules as rules
from davemode.services.analysis import synthesize_analysis_results
from davemode.services.base import Service, ServiceContext
from davemode.services.clarification import ClarificationEngine, ClarificationResult
from davemode.services.codebase import (
    analyze_architecture,
    analyze_codebase_patterns,
    apply_learned_analysis,
    determine_project_type,
    plan_analysis_strategy,
)
from davemode.services.learning import LearningEngine
from davemode.services.planning import (
    assemble_project,
    collect_files,
    merge_files,
    plan_creation_strategy,
    plan_feature_integration,
    plan_new_project,
    project_files,
)
from davemode.services.templates import list_templates


def calculate_clarification_confidence(result: ClarificationResult) -> float:
    """1.0 minus 0.1 per ambiguity plus 0.05 per contextual match, clamped to [0, 1]."""
    confidence = 1.0 - 0.1 * len(result.ambiguities) + 0.05 * len(result.contextual_matches)
    return max(0.0, min(1.0, confidence))


def new_interaction_id() -> str:
    return str(uuid.uuid4())


class OrchestratorService(Service):
    """
    Service composing clarification, agents, validation and learning.

    Example:
        orchestrator = OrchestratorService(context, db, learning, clarification, agents, validator)
        result = orchestrator.create_program(Requirements(name="Shop"))
        if result["needs_clarification"]:
            result = orchestrator.submit_clarification_response(result["interaction_id"], answers)
    """

    def __init__(
        self,
        context: ServiceContext,
        db: Database,
        learning: LearningEngine,
        clarification: ClarificationEngine,
        agents: AgentClient,
        validator: ProjectValidator,
    ) -> None:
        super().__init__(context)
        self.db = db
        self.learning = learning
        self.clarification = clarification
        self.agents = agents
        self.validator = validator

    # Entry points

    def create_program(
        self,
        requirements: Requirements,
        context: Optional[Dict[str, Any]] = None,
        *,
        resumed_from: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a new program, or park the request behind clarifying questions.

        ``resumed_from`` names the answered interaction this call continues;
        questions already asked along its chain are not asked again.
        """
        detection = self._detect(requirements, resumed_from)
        if detection.needs_clarification:
            request = ClarificationRequest(
                id=new_interaction_id(),
                kind=TaskKind.CREATION.value,
                questions=detection.questions,
                requirements=requirements,
                context=context,
                ambiguities=detection.ambiguities,
                contextual_matches=detection.contextual_matches,
                original_interaction_id=resumed_from,
            )
            return self._request_clarification(request, calculate_clarification_confidence(detection))
        return self._run_creation(requirements)

    def analyze_existing_code(
        self,
        files: Sequence[SourceFile],
        project_context: Optional[ProjectContext] = None,
    ) -> Dict[str, Any]:
        if project_context is None or not project_context.analysis_focus:
            request = ClarificationRequest(
                id=new_interaction_id(),
                kind=TaskKind.ANALYSIS.value,
                questions=[t.text for t in rules.ANALYSIS_QUESTIONS],
                files=list(files),
                project_context=project_context,
            )
            return self._request_clarification(request, rules.ANALYSIS_CLARIFICATION_CONFIDENCE)
        return self._run_analysis(files, project_context)

    def extend_existing_project(
        self,
        files: Sequence[SourceFile],
        requirements: Requirements,
        project_context: Optional[ProjectContext] = None,
        *,
        resumed_from: Optional[str] = None,
    ) -> Dict[str, Any]:
        detection = self._detect(requirements, resumed_from)
        if detection.needs_clarification:
            request = ClarificationRequest(
                id=new_interaction_id(),
                kind=TaskKind.EXTENSION.value,
                questions=detection.questions,
                requirements=requirements,
                files=list(files),
                project_context=project_context,
                ambiguities=detection.ambiguities,
                contextual_matches=detection.contextual_matches,
                original_interaction_id=resumed_from,
            )
            return self._request_clarification(request, calculate_clarification_confidence(detection))
        return self._run_extension(files, requirements, project_context)

    def submit_clarification_response(
        self,
        interaction_id: str,
        responses: Sequence[Optional[str]],
    ) -> Dict[str, Any]:
        """
        Resume a parked task with answers aligned to the stored questions.

        Raises ClarificationRequestNotFoundError for an unknown interaction id.
        """
        request = self.db.get_clarification_request(interaction_id)
        answers: List[Optional[str]] = [
            responses[index] if index < len(responses) else None
            for index in range(len(request.questions))
        ]

        requirements = request.requirements
        project_context = request.project_context
        follow_ups: List[str] = []
        if request.kind == TaskKind.ANALYSIS.value:
            project_context = project_context or ProjectContext()
            for question, answer in zip(request.questions, answers):
                if answer:
                    project_context = self.clarification.process_analysis_response(project_context, question, answer)
        else:
            requirements = requirements or Requirements()
            for question, answer in zip(request.questions, answers):
                if answer:
                    requirements = self.clarification.process_response(requirements, question, answer)
            follow_ups = self.clarification.generate_follow_up_questions(
                requirements, self._questions_asked(request), answers
            )

        if follow_ups:
            follow_up = ClarificationRequest(
                id=new_interaction_id(),
                kind=request.kind,
                questions=follow_ups,
                requirements=requirements,
                context=request.context,
                files=request.files,
                project_context=project_context,
                original_interaction_id=interaction_id,
                is_follow_up=True,
            )
            return self._request_clarification(follow_up, rules.FOLLOW_UP_CONFIDENCE)

        self.db.store_clarification_response(
            ClarificationResponse(
                interaction_id=interaction_id,
                responses=answers,
                updated_requirements=requirements,
                updated_project_context=project_context,
            )
        )
        self.logger.info(
            "clarification_resolved",
            extra=self.log_extra(interaction_id=interaction_id, task_kind=request.kind),
        )

        if request.kind == TaskKind.ANALYSIS.value:
            return self.analyze_existing_code(request.files or [], project_context)
        if request.kind == TaskKind.EXTENSION.value:
            return self.extend_existing_project(
                request.files or [], requirements, project_context, resumed_from=interaction_id
            )
        return self.create_program(requirements, request.context, resumed_from=interaction_id)

    # Queries

    def get_clarification_history(self, project_type: str, *, limit: int = 10) -> List[ClarificationHistoryEntry]:
        return self.db.list_clarification_history(project_type, limit=limit)

    def get_learning_patterns(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        return self.learning.get_learning_patterns()

    def get_agent_performance(self) -> Dict[str, Dict[str, Any]]:
        return self.learning.get_agent_performance()

    def get_templates(self) -> List[Dict[str, Any]]:
        return list_templates()

    # Clarification

    def _detect(self, requirements: Requirements, resumed_from: Optional[str]) -> ClarificationResult:
        detection = self.clarification.detect_ambiguities(requirements)
        if not resumed_from:
            return detection
        asked = set(self._questions_asked(self.db.get_clarification_request(resumed_from)))
        questions = [q for q in detection.questions if q not in asked]
        return ClarificationResult(
            needs_clarification=bool(questions),
            questions=questions,
            ambiguities=detection.ambiguities,
            contextual_matches=detection.contextual_matches,
        )

    def _questions_asked(self, request: ClarificationRequest) -> List[str]:
        """Questions from this request and every earlier round of its chain."""
        asked = list(request.questions)
        current = request
        while current.original_interaction_id:
            current = self.db.get_clarification_request(current.original_interaction_id)
            asked.extend(current.questions)
        return asked

    def _request_clarification(self, request: ClarificationRequest, confidence: float) -> Dict[str, Any]:
        self.db.store_clarification_request(request)
        self.logger.info(
            "clarification_requested",
            extra=self.log_extra(
                interaction_id=request.id,
                task_kind=request.kind,
                questions=len(request.questions),
                is_follow_up=request.is_follow_up,
                original_interaction_id=request.original_interaction_id,
            ),
        )
        result: Dict[str, Any] = {
            "interaction_id": request.id,
            "needs_clarification": True,
            "questions": list(request.questions),
            "confidence": confidence,
        }
        if request.kind != TaskKind.ANALYSIS.value:
            result["ambiguities"] = list(request.ambiguities)
            result["contextual_matches"] = list(request.contextual_matches)
        if request.is_follow_up:
            result["is_follow_up"] = True
            result["original_interaction_id"] = request.original_interaction_id
        return result

    # Workflows

    def _run_creation(self, requirements: Requirements) -> Dict[str, Any]:
        plan = plan_new_project(requirements)
        project_type = plan["type"]
        strategy = plan_creation_strategy(
            project_type,
            self.learning.get_best_strategy(LearningKind.CREATION.value, project_type),
        )

        with log_context(task_kind=TaskKind.CREATION.value, project_type=project_type):
            self.logger.info("creation_started", extra=self.log_extra(strategy=strategy.to_dict()))
            architecture = self.agents.create(
                strategy.architect,
                AgentTask(task="architecture", project_type=project_type, project_plan=plan),
            )
            outputs = [architecture]
            for builder in strategy.builders:
                outputs.append(self.agents.create(
                    builder,
                    AgentTask(
                        task="component",
                        project_type=project_type,
                        components=plan["components"],
                        architecture=architecture.get("architecture"),
                        project_plan=plan,
                    ),
                ))
            outputs.append(self.agents.create(
                strategy.styler,
                AgentTask(task="styling", project_type=project_type, components=plan["components"]),
            ))
            outputs.append(self.agents.create(
                strategy.tester,
                AgentTask(task="testing", project_type=project_type, project_plan=plan),
            ))

            project = assemble_project(plan, outputs)
            validation = self.validator.validate_project(project["files"])
            snapshot = ProjectSnapshot(
                id=new_interaction_id(),
                name=project["name"],
                type=project_type,
                technologies=project["technologies"],
                features=plan["features"],
                files=project["files"],
                validation=validation.to_dict(),
            )
            self.db.store_project(snapshot)

            result = {
                "project_id": snapshot.id,
                "project": project,
                "validation": validation.to_dict(),
                "status": "success" if validation.success else "failed",
                "errors": list(validation.errors),
                "strategy": strategy.to_dict(),
            }
            self.learning.record_interaction(
                LearningKind.CREATION.value,
                project_type,
                strategy,
                result,
                requirements=requirements.to_data(),
            )
            self.logger.info(
                "creation_finished",
                extra=self.log_extra(project_id=snapshot.id, files=len(project["files"]), status=result["status"]),
            )
        return result

    def _run_analysis(self, files: Sequence[SourceFile], project_context: ProjectContext) -> Dict[str, Any]:
        codebase = analyze_codebase_patterns(files)
        project_type = determine_project_type(codebase)
        strategy = apply_learned_analysis(
            plan_analysis_strategy(codebase),
            self.learning.get_best_strategy(LearningKind.ANALYSIS.value, project_type),
        )
        focus = ", ".join(strategy.focus_areas) or project_context.analysis_focus

        with log_context(task_kind=TaskKind.ANALYSIS.value, project_type=project_type):
            self.logger.info("analysis_started", extra=self.log_extra(files=len(files), strategy=strategy.to_dict()))
            results = [self.agents.analyze(
                strategy.primary_agent,
                AgentTask(task="analysis", files=list(files), focus_area=focus),
            )]
            for agent in strategy.secondary_agents:
                results.append(self.agents.analyze(
                    agent,
                    AgentTask(
                        task="analysis",
                        files=list(files),
                        focus_area=focus,
                        issues=results[0].get("issues"),
                    ),
                ))

            result = synthesize_analysis_results(results, files)
            result["project_type"] = project_type
            result["codebase"] = codebase.to_dict()
            result["strategy"] = strategy.to_dict()
            self.learning.record_interaction(
                LearningKind.ANALYSIS.value,
                project_type,
                strategy,
                result,
                project_context=project_context.to_data(),
            )
            self.logger.info(
                "analysis_finished",
                extra=self.log_extra(issues=result["summary"]["total_issues"]),
            )
        return result

    def _run_extension(
        self,
        files: Sequence[SourceFile],
        requirements: Requirements,
        project_context: Optional[ProjectContext],
    ) -> Dict[str, Any]:
        architecture = analyze_architecture(files)
        project_type = (
            (project_context.type if project_context else None)
            or requirements.type
            or determine_project_type(architecture)
        )
        plan = plan_feature_integration(requirements)
        strategy = self.learning.get_best_strategy(LearningKind.HYBRID.value, project_type)
        feature = requirements.to_data()
        architecture_data = architecture.to_dict()

        with log_context(task_kind=TaskKind.EXTENSION.value, project_type=project_type):
            self.logger.info("extension_started", extra=self.log_extra(files=len(files), strategy=strategy.to_dict()))
            analysis = self.agents.analyze(
                strategy.analyzer,
                AgentTask(task="integration-points", files=list(files), feature=feature, architecture=architecture_data),
            )
            integration_points = plan["integration_points"] + list(analysis.get("integrationPoints") or [])
            creation = self.agents.create(
                strategy.creator,
                AgentTask(
                    task="generate-files",
                    project_type=project_type,
                    feature=feature,
                    components=plan["new_components"],
                    architecture=architecture_data,
                ),
            )
            integration = self.agents.create(
                strategy.integrator,
                AgentTask(task="modify-files", files=list(files), integration_points=integration_points),
            )

            merged = merge_files(
                files,
                collect_files([creation]),
                collect_files([integration], key="modifiedFiles"),
            )
            validation = self.validator.validate_project(project_files(files, merged))
            result = {
                "modified_files": merged["modified_files"],
                "new_files": merged["new_files"],
                "integration_points": integration_points,
                "dependencies": plan["dependencies"],
                "validation": validation.to_dict(),
                "project_type": project_type,
                "strategy": strategy.to_dict(),
            }
            self.learning.record_interaction(
                LearningKind.HYBRID.value,
                project_type,
                strategy,
                result,
                requirements=feature,
                project_context=project_context.to_data() if project_context else None,
            )
            self.logger.info(
                "extension_finished",
                extra=self.log_extra(
                    new_files=len(merged["new_files"]),
                    modified_files=len(merged["modified_files"]),
                    success=validation.success,
                ),
            )
        return result
