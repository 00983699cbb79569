"""
DaveMode Clarification Engine

Detects gaps in project requirements, asks prioritized questions about
them and folds free-text answers back into structured requirements.

Answer handling is keyword extraction, not language understanding: the
first matching keyword wins and list-valued fields accumulate on every
application of an answer.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from davemode.models.domain import Ambiguity
from davemode.models.payloads import (
    Capability,
    DataModel,
    DeploymentTarget,
    DesignPreferences,
    Feature,
    PaymentOptions,
    ProjectContext,
    Requirements,
    Timeline,
    UserProfile,
)
from davemode.services import clarification_rules as rules
from davemode.services.base import Service, ServiceContext

UI_PROJECT_TYPES = ("web-app", "mobile-app")
DATA_PROJECT_TYPES = ("web-app", "api")


@dataclass
class ClarificationResult:
    """Outcome of ambiguity detection for one requirements object."""
    needs_clarification: bool
    questions: List[str] = field(default_factory=list)
    ambiguities: List[str] = field(default_factory=list)
    contextual_matches: List[str] = field(default_factory=list)


def detect_ambiguity_tags(requirements: Requirements) -> List[Ambiguity]:
    """Ambiguities in rule-declaration order."""
    found: List[Ambiguity] = []
    if not requirements.features:
        found.append(Ambiguity.MISSING_FEATURES)
    if not requirements.framework and not requirements.backend:
        found.append(Ambiguity.MISSING_TECH_STACK)
    if requirements.type in UI_PROJECT_TYPES and requirements.design is None:
        found.append(Ambiguity.MISSING_DESIGN)
    description = requirements.description or ""
    if ("integrate" in description or "connect" in description) and requirements.integrations is None:
        found.append(Ambiguity.MISSING_INTEGRATION)
    if requirements.type in DATA_PROJECT_TYPES and requirements.data_model is None:
        found.append(Ambiguity.MISSING_DATA)
    if requirements.users is None:
        found.append(Ambiguity.MISSING_USERS)
    if requirements.deployment is None:
        found.append(Ambiguity.MISSING_DEPLOYMENT)
    if requirements.timeline is None:
        found.append(Ambiguity.MISSING_TIMELINE)
    return found


def requirements_text(requirements: Requirements) -> str:
    """Lowercased text scanned for contextual domain keywords."""
    parts: List[str] = [requirements.name or "", requirements.description or ""]
    for feature in requirements.features or []:
        parts.append(f"{feature.name} {feature.description}")
    parts.append(requirements.type or "")
    return " ".join(parts).lower()


def prioritize_questions(questions: Iterable[str]) -> List[str]:
    """
    Deduplicate (first occurrence kept) and order questions by the canonical
    priority list. Questions outside the list follow in their original order.
    """
    unique = list(dict.fromkeys(questions))
    rank = {text: index for index, text in enumerate(rules.PRIORITY_ORDER)}
    unknown = len(rank)
    return sorted(unique, key=lambda question: rank.get(question, unknown))


def split_answer(answer: str) -> List[str]:
    return [item.strip() for item in re.split(r"[,;]", answer) if item.strip()]


def _first_keyword(answer: str, table: Sequence[tuple]) -> Optional[tuple]:
    for keywords, *values in table:
        if any(keyword in answer for keyword in keywords):
            return tuple(values)
    return None


_TECH_KEYWORDS = (
    (("React",), "framework", "react"),
    (("Vue",), "framework", "vue"),
    (("Angular",), "framework", "angular"),
    (("Express",), "backend", "express"),
    (("Node",), "backend", "node"),
    (("Python",), "backend", "python"),
    (("Django",), "backend", "django"),
    (("Flask",), "backend", "flask"),
)

_DESIGN_STYLES = (
    (("modern",), "modern"),
    (("minimal",), "minimal"),
    (("colorful",), "colorful"),
    (("professional",), "professional"),
)

_DATA_TYPES = (
    (("SQL", "PostgreSQL", "MySQL"), "sql"),
    (("Mongo", "NoSQL"), "nosql"),
)

_DEPLOY_PLATFORMS = (
    (("AWS", "Amazon"), "aws"),
    (("Azure", "Microsoft"), "azure"),
    (("Google", "GCP"), "gcp"),
    (("Vercel", "Netlify"), "serverless"),
)

_TIMELINE_URGENCY = (
    (("week", "soon"), "high"),
    (("month", "quarter"), "medium"),
)


def _apply_features(req: Requirements, answer: str) -> None:
    items = split_answer(answer)
    if items:
        req.features = list(req.features or []) + [Feature(name=item, description=item) for item in items]


def _apply_tech(req: Requirements, answer: str) -> None:
    match = _first_keyword(answer, _TECH_KEYWORDS)
    if match:
        attr, value = match
        setattr(req, attr, value)


def _apply_design(req: Requirements, answer: str) -> None:
    design = req.design or DesignPreferences()
    design.preferences = answer
    match = _first_keyword(answer, _DESIGN_STYLES)
    if match:
        design.style = match[0]
    req.design = design


def _apply_integrations(req: Requirements, answer: str) -> None:
    integrations = list(req.integrations or [])
    integrations.extend(split_answer(answer))
    if "payment" in answer:
        integrations.append("payment-processing")
    if "auth" in answer or "login" in answer:
        integrations.append("authentication")
    req.integrations = integrations


def _apply_data(req: Requirements, answer: str) -> None:
    data = req.data_model or DataModel()
    data.description = answer
    match = _first_keyword(answer, _DATA_TYPES)
    if match:
        data.type = match[0]
    req.data_model = data


def _apply_users(req: Requirements, answer: str) -> None:
    users = req.users or UserProfile()
    users.description = answer
    if "admin" in answer or "role" in answer:
        users.roles = ["admin", "user"]
    users.scale = "large" if ("thousand" in answer or "many" in answer) else "small"
    req.users = users


def _apply_deployment(req: Requirements, answer: str) -> None:
    deployment = req.deployment or DeploymentTarget()
    deployment.preferences = answer
    match = _first_keyword(answer, _DEPLOY_PLATFORMS)
    if match:
        deployment.platform = match[0]
    req.deployment = deployment


def _apply_timeline(req: Requirements, answer: str) -> None:
    timeline = req.timeline or Timeline()
    timeline.description = answer
    match = _first_keyword(answer, _TIMELINE_URGENCY)
    timeline.urgency = match[0] if match else "low"
    req.timeline = timeline


def _apply_payment(req: Requirements, answer: str) -> None:
    payment = req.payment or PaymentOptions()
    payment.methods = split_answer(answer)
    req.payment = payment


def _require(attr: str) -> Callable[[Requirements, str], None]:
    def apply(req: Requirements, answer: str) -> None:
        capability = getattr(req, attr) or Capability()
        capability.required = True
        setattr(req, attr, capability)

    return apply


FIELD_HANDLERS: Dict[str, Callable[[Requirements, str], None]] = {
    rules.FEATURES: _apply_features,
    rules.TECH: _apply_tech,
    rules.DESIGN: _apply_design,
    rules.INTEGRATIONS: _apply_integrations,
    rules.DATA: _apply_data,
    rules.USERS: _apply_users,
    rules.DEPLOYMENT: _apply_deployment,
    rules.TIMELINE: _apply_timeline,
    rules.PAYMENT: _apply_payment,
    rules.INVENTORY: _require("inventory"),
    rules.AUTHENTICATION: _require("authentication"),
    rules.DASHBOARD: _require("dashboard"),
    rules.CMS: _require("cms"),
}


class ClarificationEngine(Service):
    """
    Service detecting ambiguous requirements and processing answers.

    Example:
        engine = ClarificationEngine(context)
        result = engine.detect_ambiguities(requirements)
        if result.needs_clarification:
            updated = engine.process_response(requirements, result.questions[0], "Login, search")
    """

    def __init__(self, context: ServiceContext) -> None:
        super().__init__(context)

    def detect_ambiguities(self, requirements: Requirements) -> ClarificationResult:
        ambiguities = detect_ambiguity_tags(requirements)
        questions: List[str] = []
        for ambiguity in ambiguities:
            questions.extend(t.text for t in rules.AMBIGUITY_QUESTIONS[ambiguity])

        text = requirements_text(requirements)
        matched = [pattern for pattern in rules.CONTEXTUAL_PATTERNS if pattern.matches(text)]
        for pattern in matched:
            questions.extend(t.text for t in pattern.questions)

        ordered = self.prioritize_questions(questions)
        result = ClarificationResult(
            needs_clarification=bool(ordered),
            questions=ordered,
            ambiguities=[a.value for a in ambiguities],
            contextual_matches=[pattern.name for pattern in matched],
        )
        self.logger.debug(
            "ambiguities_detected",
            extra=self.log_extra(
                project_type=requirements.type,
                ambiguities=result.ambiguities,
                contextual_matches=result.contextual_matches,
                questions=len(result.questions),
            ),
        )
        return result

    def prioritize_questions(self, questions: Iterable[str]) -> List[str]:
        return prioritize_questions(questions)

    def process_response(self, requirements: Requirements, question: str, answer: str) -> Requirements:
        """Return a copy of ``requirements`` updated from one answer."""
        updated = requirements.model_copy(deep=True)
        fields = rules.fields_for_question(question)
        for key in rules.FIELD_ORDER:
            if key in fields:
                FIELD_HANDLERS[key](updated, answer)
        return updated

    def process_analysis_response(self, context: ProjectContext, question: str, answer: str) -> ProjectContext:
        updated = context.model_copy(deep=True)
        target = rules.analysis_field_for_question(question)
        if target is not None:
            setattr(updated, target, answer)
        return updated

    def generate_follow_up_questions(
        self,
        requirements: Requirements,
        prior_questions: Sequence[str] = (),
        prior_responses: Sequence[Optional[str]] = (),
    ) -> List[str]:
        """
        Follow-up questions in check-declaration order, skipping any that
        were asked earlier in the conversation.
        """
        follow_ups: List[str] = []
        features = requirements.features or []
        if any(marker in f.name for f in features for marker in rules.COMPLEX_FEATURE_MARKERS):
            follow_ups.append(rules.FOLLOW_UP_IMPORTANT_FEATURE.text)

        integrations = requirements.integrations or []
        if any(marker in i for i in integrations for marker in rules.EXTERNAL_INTEGRATION_MARKERS):
            follow_ups.append(rules.FOLLOW_UP_API_DOCS.text)

        if requirements.users is not None and requirements.users.scale == "large":
            follow_ups.append(rules.FOLLOW_UP_USER_ANALYTICS.text)

        if requirements.deployment is not None and requirements.deployment.platform == "serverless":
            follow_ups.append(rules.FOLLOW_UP_SERVERLESS.text)

        asked = set(prior_questions)
        return [question for question in follow_ups if question not in asked]
