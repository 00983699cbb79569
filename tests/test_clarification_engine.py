from hypothesis import given, settings, strategies as st

from davemode.config import Config
from davemode.models.payloads import (
    DeploymentTarget,
    Feature,
    ProjectContext,
    Requirements,
    UserProfile,
)
from davemode.services import clarification_rules as rules
from davemode.services.base import ServiceContext
from davemode.services.clarification import ClarificationEngine, prioritize_questions

FEATURES_Q = "What specific features should the app have?"
TECH_Q = "Do you have a preferred technology stack?"
USERS_Q = "Who are the target users for this application?"
DEPLOY_Q = "Where do you plan to deploy this application?"
TIMELINE_Q = "What is your timeline for this project?"
PAYMENT_Q = "What payment methods do you need to support?"
INVENTORY_Q = "Do you need inventory management?"

SHOP = Requirements(name="Shop", description="build a shop with cart and checkout")


def _fully_specified(**overrides) -> Requirements:
    data = dict(
        name="Tracker",
        description="internal tool",
        type="cli",
        features=[Feature(name="export", description="csv export")],
        framework="react",
        users=UserProfile(description="staff"),
        deployment=DeploymentTarget(preferences="on-prem"),
        timeline={"description": "next year"},
    )
    data.update(overrides)
    return Requirements(**data)


def test_shop_requirements_need_clarification(context) -> None:
    result = ClarificationEngine(context).detect_ambiguities(SHOP)

    assert result.needs_clarification is True
    assert result.ambiguities == [
        "missing-features",
        "missing-tech-stack",
        "missing-users",
        "missing-deployment",
        "missing-timeline",
    ]
    assert result.contextual_matches == ["e-commerce"]
    # Prioritized questions lead, in canonical order
    assert result.questions[:5] == [FEATURES_Q, TECH_Q, USERS_Q, DEPLOY_Q, TIMELINE_Q]
    assert result.questions[-3:] == [
        PAYMENT_Q,
        INVENTORY_Q,
        "Are there any tax or shipping requirements?",
    ]
    assert len(result.questions) == 18
    assert len(set(result.questions)) == len(result.questions)


def test_contextual_pattern_needs_two_keyword_hits(context) -> None:
    engine = ClarificationEngine(context)

    one_hit = engine.detect_ambiguities(_fully_specified(description="a shop"))
    two_hits = engine.detect_ambiguities(_fully_specified(description="a shop with a cart"))

    assert one_hit.contextual_matches == []
    assert one_hit.needs_clarification is False
    assert two_hits.contextual_matches == ["e-commerce"]
    assert two_hits.questions[:2] == [PAYMENT_Q, INVENTORY_Q]


def test_fully_specified_requirements_need_nothing(context) -> None:
    result = ClarificationEngine(context).detect_ambiguities(_fully_specified())

    assert result.needs_clarification is False
    assert result.questions == []
    assert result.ambiguities == []


def test_plain_text_sections_count_as_present(context) -> None:
    engine = ClarificationEngine(context)
    req = Requirements.model_validate(
        {
            "name": "Tracker",
            "description": "internal tool",
            "type": "web-app",
            "features": [{"name": "export"}],
            "framework": "react",
            "users": "small team",
            "deployment": "on-prem",
            "timeline": "2 weeks",
            "design": "minimal",
            "dataModel": "orders and customers",
        }
    )

    assert engine.detect_ambiguities(req).ambiguities == []
    assert req.users.description == "small team"
    assert req.deployment.preferences == "on-prem"
    assert req.design.preferences == "minimal"
    assert req.data_model.description == "orders and customers"

    answered = engine.process_response(req, TIMELINE_Q, "within a month")
    assert answered.timeline.description == "within a month"
    assert answered.timeline.urgency == "medium"

    blank = Requirements.model_validate({"name": "Shop", "timeline": ""})
    assert blank.timeline is None
    assert "missing-timeline" in engine.detect_ambiguities(blank).ambiguities


def test_ui_and_data_gaps_depend_on_project_type(context) -> None:
    engine = ClarificationEngine(context)

    web = engine.detect_ambiguities(_fully_specified(type="web-app"))
    api = engine.detect_ambiguities(_fully_specified(type="api"))

    assert web.ambiguities == ["missing-design", "missing-data"]
    assert api.ambiguities == ["missing-data"]


def test_integration_gap_detected_from_description(context) -> None:
    result = ClarificationEngine(context).detect_ambiguities(
        _fully_specified(description="connect to the billing system")
    )

    assert result.ambiguities == ["missing-integration"]
    assert result.questions[0] == "What systems or services should this integrate with?"


def test_catalog_fields_agree_with_keyword_inference() -> None:
    for question, fields in rules.QUESTION_FIELDS.items():
        assert fields == rules.infer_fields(question), question


def test_features_answers_accumulate(context) -> None:
    engine = ClarificationEngine(context)

    once = engine.process_response(Requirements(), FEATURES_Q, "Login, search; reviews")
    twice = engine.process_response(once, FEATURES_Q, "Login, search; reviews")

    assert [f.name for f in once.features] == ["Login", "search", "reviews"]
    assert len(twice.features) == 6


def test_process_response_returns_a_copy(context) -> None:
    original = Requirements(name="Shop")

    updated = ClarificationEngine(context).process_response(original, TECH_Q, "React please")

    assert updated.framework == "react"
    assert original.framework is None


def test_tech_answer_first_keyword_wins(context) -> None:
    updated = ClarificationEngine(context).process_response(Requirements(), TECH_Q, "React with a Node backend")

    assert updated.framework == "react"
    assert updated.backend is None


def test_users_deployment_and_timeline_answers(context) -> None:
    engine = ClarificationEngine(context)
    req = engine.process_response(Requirements(), USERS_Q, "a few thousand shoppers plus an admin")
    req = engine.process_response(req, DEPLOY_Q, "Vercel")
    req = engine.process_response(req, TIMELINE_Q, "within a month")

    assert req.users.scale == "large"
    assert req.users.roles == ["admin", "user"]
    assert req.deployment.platform == "serverless"
    assert req.deployment.preferences == "Vercel"
    assert req.timeline.urgency == "medium"

    relaxed = engine.process_response(Requirements(), TIMELINE_Q, "whenever")
    assert relaxed.timeline.urgency == "low"


def test_contextual_answers_fill_domain_sections(context) -> None:
    engine = ClarificationEngine(context)
    req = engine.process_response(Requirements(), PAYMENT_Q, "card, paypal")
    req = engine.process_response(req, INVENTORY_Q, "yes")

    assert req.payment.methods == ["card", "paypal"]
    assert req.inventory.required is True


def test_unknown_question_falls_back_to_wording(context) -> None:
    updated = ClarificationEngine(context).process_response(
        Requirements(), "Which framework would suit you?", "Vue"
    )

    assert updated.framework == "vue"


def test_follow_ups_for_complex_features(context) -> None:
    engine = ClarificationEngine(context)
    req = Requirements(
        features=[Feature(name="user login")],
        integrations=["external CRM"],
        users=UserProfile(scale="large"),
        deployment=DeploymentTarget(platform="serverless"),
    )

    assert engine.generate_follow_up_questions(req) == [q.text for q in rules.FOLLOW_UP_QUESTIONS]


def test_follow_ups_skip_questions_already_asked(context) -> None:
    engine = ClarificationEngine(context)
    req = Requirements(features=[Feature(name="payment page")])

    assert engine.generate_follow_up_questions(req, [rules.FOLLOW_UP_IMPORTANT_FEATURE.text]) == []


def test_analysis_answers_fill_project_context(context) -> None:
    engine = ClarificationEngine(context)
    ctx = ProjectContext()
    for template, answer in zip(rules.ANALYSIS_QUESTIONS, ("security", "auth module", "audit")):
        ctx = engine.process_analysis_response(ctx, template.text, answer)

    assert ctx.analysis_focus == "security"
    assert ctx.concerns == "auth module"
    assert ctx.analysis_goal == "audit"


@settings(max_examples=50, deadline=None)
@given(
    name=st.text(alphabet="abcdefghij ", max_size=12),
    framework=st.sampled_from([None, "react"]),
    backend=st.sampled_from([None, "node"]),
)
def test_missing_features_question_always_first(name, framework, backend) -> None:
    result = ClarificationEngine(ServiceContext(config=Config())).detect_ambiguities(
        Requirements(name=name, framework=framework, backend=backend)
    )

    assert result.ambiguities[0] == "missing-features"
    assert result.questions[0] == FEATURES_Q


@settings(max_examples=100, deadline=None)
@given(
    ordered=st.permutations(list(rules.PRIORITY_ORDER)),
    extras=st.lists(st.text(alphabet="xyz?", min_size=1, max_size=6), unique=True, max_size=5),
)
def test_prioritize_is_order_invariant_for_known_questions(ordered, extras) -> None:
    result = prioritize_questions(extras + ordered + extras)

    assert result[: len(rules.PRIORITY_ORDER)] == list(rules.PRIORITY_ORDER)
    assert result[len(rules.PRIORITY_ORDER):] == extras
