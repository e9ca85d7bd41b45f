"""Tests for the decision rule cascade."""

import pytest

from enablement.decision import (
    CLARIFICATION_NOTE,
    DecisionContext,
    DecisionEngine,
    KnowledgeResponse,
)


def make_context(**overrides) -> DecisionContext:
    values = {
        "query": "telecom plans",
        "industry": "retail",
        "content_type": "brochure",
        "urgency": "medium",
        "complexity": "moderate",
        "knowledge": KnowledgeResponse(confidence=0.8, relevant_products=("Business Fiber",)),
    }
    values.update(overrides)
    return DecisionContext(**values)


def test_urgent_retail_request_generates_both_immediately() -> None:
    decision = DecisionEngine().decide(
        make_context(query="need this asap", urgency="high", industry="retail")
    )

    assert decision.action == "generate_both"
    assert decision.priority == "high"
    assert decision.media_types == ("image", "brochure")
    assert decision.estimated_time == "immediate"
    assert decision.industry_focus == "retail"


@pytest.mark.parametrize("industry", ["retail", "education", "healthcare", "mining"])
def test_high_urgency_always_generates_both(industry: str) -> None:
    decision = DecisionEngine().decide(
        make_context(industry=industry, urgency="high", knowledge=KnowledgeResponse(0.2, ("x",)))
    )

    assert decision.action == "generate_both"
    assert {"image", "brochure"} <= set(decision.media_types)


def test_urgent_phrase_matches_case_insensitively() -> None:
    decision = DecisionEngine().decide(make_context(query="This is URGENT", urgency="low"))

    assert decision.action == "generate_both"
    assert decision.priority == "high"


def test_low_confidence_question_provides_insights() -> None:
    decision = DecisionEngine().decide(
        make_context(
            query="what is this",
            urgency="low",
            knowledge=KnowledgeResponse(confidence=0.3, relevant_products=("Business Fiber",)),
        )
    )

    assert decision.action == "provide_insights"
    assert decision.priority == "high"
    assert decision.content_focus == "educational"
    assert decision.estimated_time == "1-2 minutes"


def test_low_confidence_beats_image_intent() -> None:
    decision = DecisionEngine().decide(
        make_context(
            query="a brochure for the store",
            knowledge=KnowledgeResponse(confidence=0.4, relevant_products=("POS Connect",)),
        )
    )

    assert decision.action == "provide_insights"


def test_image_phrase_generates_image() -> None:
    decision = DecisionEngine().decide(make_context(query="design a flyer for the branch"))

    assert decision.action == "generate_image"
    assert decision.priority == "high"
    assert decision.media_types == ("image",)
    assert decision.estimated_time == "1-2 minutes"


def test_image_content_type_generates_image() -> None:
    decision = DecisionEngine().decide(make_context(content_type="image"))

    assert decision.action == "generate_image"


def test_content_phrase_uses_industry_focus() -> None:
    decision = DecisionEngine().decide(
        make_context(query="write copy for the clinic launch", industry="healthcare")
    )

    assert decision.action == "generate_content"
    assert decision.priority == "medium"
    assert decision.content_focus == "compliance and security"
    assert decision.estimated_time == "2-3 minutes"


def test_industry_default_for_known_industry() -> None:
    decision = DecisionEngine().decide(make_context(industry="retail"))

    assert decision.action == "generate_both"
    assert decision.priority == "high"
    assert decision.media_types == ("image", "brochure")
    assert decision.content_focus == "customer experience and sales"
    assert decision.estimated_time == "1-2 minutes"


def test_industry_default_for_unknown_industry() -> None:
    decision = DecisionEngine().decide(make_context(industry="mining"))

    assert decision.action == "generate_both"
    assert decision.priority == "medium"
    assert decision.media_types == ("brochure",)
    assert decision.content_focus == "general business solutions"
    assert decision.estimated_time == "3-5 minutes"


@pytest.mark.parametrize(
    "overrides",
    [
        {"urgency": "high"},
        {"query": "explain the offer"},
        {"query": "design a flyer"},
        {"query": "write a summary"},
        {},
    ],
)
def test_preferred_media_always_wins(overrides) -> None:
    context = make_context(preferences={"preferred_media": ["whitepaper", "email"]}, **overrides)

    decision = DecisionEngine().decide(context)

    assert decision.media_types == ("whitepaper", "email")


def test_preferred_media_accepts_camel_case_key() -> None:
    decision = DecisionEngine().decide(make_context(preferences={"preferredMedia": ["battlecard"]}))

    assert decision.media_types == ("battlecard",)


def test_preferred_media_string_is_a_single_type() -> None:
    decision = DecisionEngine().decide(make_context(preferences={"preferredMedia": "image"}))

    assert decision.media_types == ("image",)


def test_empty_preferred_media_clears_media_types() -> None:
    decision = DecisionEngine().decide(make_context(urgency="high", preferences={"preferred_media": []}))

    assert decision.action == "generate_both"
    assert decision.media_types == ()


def test_recent_image_topic_forces_image() -> None:
    decision = DecisionEngine().decide(
        make_context(query="write a summary", history=["pricing", "Hero IMAGE for the mall"])
    )

    assert decision.action == "generate_image"
    assert decision.media_types == ("image",)


def test_only_most_recent_topic_is_considered() -> None:
    decision = DecisionEngine().decide(
        make_context(query="write a summary", history=["image for the mall", "pricing"])
    )

    assert decision.action == "generate_content"


def test_complex_request_generates_both_with_long_estimate() -> None:
    decision = DecisionEngine().decide(
        make_context(query="design a flyer", complexity="complex")
    )

    assert decision.action == "generate_both"
    assert decision.priority == "high"
    assert decision.estimated_time == "5-10 minutes"


@pytest.mark.parametrize(
    "overrides",
    [
        {"urgency": "high"},
        {"complexity": "complex"},
        {"history": ["image please"]},
        {"query": "design a flyer"},
    ],
)
def test_no_relevant_products_asks_for_clarification(overrides) -> None:
    context = make_context(knowledge=KnowledgeResponse(confidence=0.9), **overrides)

    decision = DecisionEngine().decide(context)

    assert decision.action == "ask_clarification"
    assert decision.reasoning.endswith(CLARIFICATION_NOTE)


def test_rule_failure_returns_fallback_decision() -> None:
    def broken_rule(analysis, context):
        raise KeyError("profile")

    engine = DecisionEngine(base_rules=[broken_rule])

    decision = engine.decide(make_context(industry="education"))

    assert decision.action == "generate_content"
    assert decision.priority == "medium"
    assert decision.media_types == ("brochure",)
    assert "fallback" in decision.reasoning.lower()
    assert decision.industry_focus == "education"


def test_empty_rule_set_returns_fallback_decision() -> None:
    decision = DecisionEngine(base_rules=[]).decide(make_context())

    assert decision.action == "generate_content"
    assert "processing error" in decision.reasoning


@pytest.mark.parametrize(
    "overrides",
    [
        {"urgency": "critical"},
        {"complexity": "huge"},
        {"knowledge": KnowledgeResponse(confidence=1.5, relevant_products=("x",))},
    ],
)
def test_invalid_context_is_rejected(overrides) -> None:
    with pytest.raises(ValueError):
        make_context(**overrides)


def test_stats_track_actions_and_confidence() -> None:
    engine = DecisionEngine()
    engine.decide(make_context(urgency="high", knowledge=KnowledgeResponse(0.6, ("x",))))
    engine.decide(make_context(urgency="high", knowledge=KnowledgeResponse(1.0, ("x",))))
    engine.decide(make_context(query="design a flyer", knowledge=KnowledgeResponse(0.8, ("x",))))

    stats = engine.stats()

    assert stats.total_decisions == 3
    assert stats.action_distribution == {"generate_both": 2, "generate_image": 1}
    assert stats.average_confidence == pytest.approx(0.8)
    assert stats.common_actions[0] == "generate_both"
