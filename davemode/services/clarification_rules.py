"""
DaveMode Clarification Catalog

Question templates used by the clarification engine. Each question carries
the requirement fields its answer populates, so answer handling never has
to pattern-match on English wording.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from davemode.models.domain import Ambiguity


# Requirement field keys an answer can populate
FEATURES = "features"
TECH = "tech"
DESIGN = "design"
INTEGRATIONS = "integrations"
DATA = "data"
USERS = "users"
DEPLOYMENT = "deployment"
TIMELINE = "timeline"
PAYMENT = "payment"
INVENTORY = "inventory"
AUTHENTICATION = "authentication"
DASHBOARD = "dashboard"
CMS = "cms"

# Order in which field handlers run for a single answer
FIELD_ORDER: Tuple[str, ...] = (
    FEATURES,
    TECH,
    DESIGN,
    INTEGRATIONS,
    DATA,
    USERS,
    DEPLOYMENT,
    TIMELINE,
    PAYMENT,
    INVENTORY,
    AUTHENTICATION,
    DASHBOARD,
    CMS,
)

# Project context keys for analysis answers
ANALYSIS_FOCUS = "analysis_focus"
CONCERNS = "concerns"
ANALYSIS_GOAL = "analysis_goal"


@dataclass(frozen=True)
class QuestionTemplate:
    text: str
    fields: Tuple[str, ...] = ()


def _q(text: str, *fields: str) -> QuestionTemplate:
    return QuestionTemplate(text=text, fields=tuple(fields))


AMBIGUITY_QUESTIONS: Dict[Ambiguity, Tuple[QuestionTemplate, ...]] = {
    Ambiguity.MISSING_FEATURES: (
        _q("What specific features should the app have?", FEATURES),
        _q("Can you list the main functionalities you need?"),
        _q("What are the core user journeys?"),
    ),
    Ambiguity.MISSING_TECH_STACK: (
        _q("Do you have a preferred technology stack?", TECH),
        _q("Are there any specific frameworks or libraries you'd like to use?", TECH),
        _q("Any constraints on technologies we should use?"),
    ),
    Ambiguity.MISSING_DESIGN: (
        _q("Do you have any design preferences or mockups?", DESIGN),
        _q("What style or theme are you looking for?", DESIGN),
        _q("Are there any brand guidelines we should follow?"),
    ),
    Ambiguity.MISSING_INTEGRATION: (
        _q("What systems or services should this integrate with?", INTEGRATIONS),
        _q("Are there any third-party APIs we need to connect to?", INTEGRATIONS),
        _q("Do you have authentication requirements?", AUTHENTICATION),
    ),
    Ambiguity.MISSING_DATA: (
        _q("What kind of data will the application handle?", DATA),
        _q("Do you have a preferred database solution?", DATA),
        _q("Are there any data privacy requirements?", DATA),
    ),
    Ambiguity.MISSING_USERS: (
        _q("Who are the target users for this application?", USERS),
        _q("How many users do you expect?", USERS),
        _q("What are the user roles and permissions?"),
    ),
    Ambiguity.MISSING_DEPLOYMENT: (
        _q("Where do you plan to deploy this application?", DEPLOYMENT),
        _q("Do you have any hosting preferences?", DEPLOYMENT),
        _q("Are there any scalability requirements?"),
    ),
    Ambiguity.MISSING_TIMELINE: (
        _q("What is your timeline for this project?", TIMELINE),
        _q("Are there any critical deadlines?", TIMELINE),
        _q("Is this a phased rollout or all at once?"),
    ),
}


@dataclass(frozen=True)
class ContextualPattern:
    name: str
    keywords: Tuple[str, ...]
    questions: Tuple[QuestionTemplate, ...]
    threshold: int = 2

    def match_count(self, text: str) -> int:
        return sum(1 for keyword in self.keywords if keyword in text)

    def matches(self, text: str) -> bool:
        return self.match_count(text) >= self.threshold


CONTEXTUAL_PATTERNS: Tuple[ContextualPattern, ...] = (
    ContextualPattern(
        name="e-commerce",
        keywords=("shop", "store", "cart", "checkout", "payment", "product"),
        questions=(
            _q("What payment methods do you need to support?", PAYMENT),
            _q("Do you need inventory management?", INVENTORY),
            _q("Are there any tax or shipping requirements?"),
        ),
    ),
    ContextualPattern(
        name="social-media",
        keywords=("social", "profile", "post", "comment", "like", "share"),
        questions=(
            _q("Do you need user profiles and authentication?", AUTHENTICATION),
            # Answers land in features, like the generic feature question.
            _q("What social features are most important?", FEATURES),
            _q("Do you need content moderation capabilities?", CMS),
        ),
    ),
    ContextualPattern(
        name="dashboard",
        keywords=("dashboard", "analytics", "metrics", "charts", "data visualization"),
        questions=(
            _q("What data sources will the dashboard connect to?", INTEGRATIONS, DATA, DASHBOARD),
            _q("What types of visualizations do you need?", DASHBOARD),
            _q("Do you need real-time data updates?", DATA),
        ),
    ),
    ContextualPattern(
        name="blog",
        keywords=("blog", "article", "post", "content", "cms"),
        questions=(
            _q("Do you need a content management system?", CMS),
            _q("Will there be multiple authors?"),
            _q("Do you need commenting functionality?"),
        ),
    ),
)

# Canonical ordering: these come first, in this order; anything else keeps
# its relative position after them.
PRIORITY_ORDER: Tuple[str, ...] = (
    "What specific features should the app have?",
    "Do you have a preferred technology stack?",
    "What kind of data will the application handle?",
    "Who are the target users for this application?",
    "What systems or services should this integrate with?",
    "Do you have any design preferences or mockups?",
    "Where do you plan to deploy this application?",
    "What is your timeline for this project?",
)

FOLLOW_UP_IMPORTANT_FEATURE = _q("Can you provide more details about your most important feature?")
FOLLOW_UP_API_DOCS = _q("Do you have API documentation for the external services?", INTEGRATIONS)
FOLLOW_UP_USER_ANALYTICS = _q("Do you need user analytics or reporting?")
FOLLOW_UP_SERVERLESS = _q("Do you need serverless functions for specific operations?")

FOLLOW_UP_QUESTIONS: Tuple[QuestionTemplate, ...] = (
    FOLLOW_UP_IMPORTANT_FEATURE,
    FOLLOW_UP_API_DOCS,
    FOLLOW_UP_USER_ANALYTICS,
    FOLLOW_UP_SERVERLESS,
)

COMPLEX_FEATURE_MARKERS = ("user", "payment", "search", "notification")
EXTERNAL_INTEGRATION_MARKERS = ("API", "external", "third-party")

ANALYSIS_QUESTIONS: Tuple[QuestionTemplate, ...] = (
    _q(
        "What specific aspects of the code should I focus on? (performance, security, code quality, etc.)",
        ANALYSIS_FOCUS,
    ),
    _q("Are there any particular areas of concern?", CONCERNS),
    _q("What is the primary goal of this analysis?", ANALYSIS_GOAL),
)

ANALYSIS_CLARIFICATION_CONFIDENCE = 0.7
FOLLOW_UP_CONFIDENCE = 0.8


def _all_templates() -> List[QuestionTemplate]:
    templates: List[QuestionTemplate] = []
    for group in AMBIGUITY_QUESTIONS.values():
        templates.extend(group)
    for pattern in CONTEXTUAL_PATTERNS:
        templates.extend(pattern.questions)
    templates.extend(FOLLOW_UP_QUESTIONS)
    return templates


QUESTION_FIELDS: Dict[str, Tuple[str, ...]] = {t.text: t.fields for t in _all_templates()}
ANALYSIS_FIELDS: Dict[str, Tuple[str, ...]] = {t.text: t.fields for t in ANALYSIS_QUESTIONS}


# Substring heuristics for question text that is not in the catalog
_FIELD_MARKERS: Dict[str, Tuple[str, ...]] = {
    FEATURES: ("features",),
    TECH: ("technology", "framework", "stack"),
    DESIGN: ("design", "style", "theme"),
    INTEGRATIONS: ("integrate", "connect", "API"),
    DATA: ("data", "database", "storage"),
    USERS: ("users", "target"),
    DEPLOYMENT: ("deploy", "host"),
    TIMELINE: ("timeline", "deadline"),
    PAYMENT: ("payment",),
    INVENTORY: ("inventory",),
    AUTHENTICATION: ("profile", "authentication"),
    DASHBOARD: ("dashboard", "visualization"),
    CMS: ("cms", "content"),
}

_ANALYSIS_MARKERS: Tuple[Tuple[str, str], ...] = (
    ("focus", ANALYSIS_FOCUS),
    ("concern", CONCERNS),
    ("goal", ANALYSIS_GOAL),
)


def infer_fields(question: str) -> Tuple[str, ...]:
    """Fields a free-form question most likely asks about."""
    return tuple(
        field for field in FIELD_ORDER if any(marker in question for marker in _FIELD_MARKERS[field])
    )


def fields_for_question(question: str) -> Tuple[str, ...]:
    fields = QUESTION_FIELDS.get(question)
    if fields is not None:
        return fields
    return infer_fields(question)


def analysis_field_for_question(question: str) -> Optional[str]:
    fields = ANALYSIS_FIELDS.get(question)
    if fields:
        return fields[0]
    for marker, field in _ANALYSIS_MARKERS:
        if marker in question:
            return field
    return None
