import logging
import threading
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Literal, Mapping, Optional, Sequence, Tuple

from .brand import industry_profile

logger = logging.getLogger(__name__)

Action = Literal[
    "generate_image",
    "generate_content",
    "generate_both",
    "ask_clarification",
    "provide_insights",
]
Priority = Literal["high", "medium", "low"]

URGENCY_LEVELS = ("low", "medium", "high")
COMPLEXITY_LEVELS = ("simple", "moderate", "complex")

IMAGE_PHRASES = ("image", "picture", "visual", "graphic", "design", "brochure", "flyer")
CONTENT_PHRASES = ("create", "generate", "write", "make", "build", "develop")
URGENT_PHRASES = ("urgent", "asap", "immediately", "quick", "emergency", "now")
LEARNING_PHRASES = ("learn", "understand", "explain", "tell me", "what is", "how does")

PREFERRED_MEDIA_KEYS = ("preferred_media", "preferredMedia")

CLARIFICATION_NOTE = " - No relevant products found, need clarification"


@dataclass(frozen=True)
class KnowledgeResponse:
    """
    Result of the knowledge lookup performed by the caller before deciding.
    """

    confidence: float
    relevant_products: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DecisionContext:
    query: str
    industry: str
    content_type: str
    knowledge: KnowledgeResponse
    urgency: str = "medium"
    complexity: str = "moderate"
    preferences: Mapping[str, Any] = field(default_factory=dict)
    history: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.urgency not in URGENCY_LEVELS:
            raise ValueError(f"urgency must be one of {URGENCY_LEVELS}, got {self.urgency!r}")
        if self.complexity not in COMPLEXITY_LEVELS:
            raise ValueError(
                f"complexity must be one of {COMPLEXITY_LEVELS}, got {self.complexity!r}"
            )
        if not 0.0 <= self.knowledge.confidence <= 1.0:
            raise ValueError("knowledge confidence must be within [0, 1]")
        # Accept lists from callers but keep the context hashable/immutable.
        object.__setattr__(self, "history", tuple(self.history))


@dataclass(frozen=True)
class Decision:
    action: Action
    priority: Priority
    reasoning: str
    media_types: Tuple[str, ...]
    content_focus: str
    industry_focus: str
    estimated_time: str


@dataclass(frozen=True)
class QueryAnalysis:
    has_image_intent: bool
    has_content_intent: bool
    has_urgent_intent: bool
    has_learning_intent: bool
    profile: Dict[str, Any]
    confidence: float


@dataclass
class DecisionStats:
    total_decisions: int
    action_distribution: Dict[str, int]
    average_confidence: float
    common_actions: Tuple[str, ...]


def analyze_context(context: DecisionContext) -> QueryAnalysis:
    query = context.query.lower()
    return QueryAnalysis(
        has_image_intent=_contains_any(query, IMAGE_PHRASES),
        has_content_intent=_contains_any(query, CONTENT_PHRASES),
        has_urgent_intent=_contains_any(query, URGENT_PHRASES),
        has_learning_intent=_contains_any(query, LEARNING_PHRASES),
        profile=industry_profile(context.industry),
        confidence=context.knowledge.confidence,
    )


# --- Base rules -------------------------------------------------------------
#
# Each rule returns a Decision when it applies and None otherwise. They are
# evaluated in BASE_RULES order and the first match wins; the last rule always
# matches.

BaseRule = Callable[[QueryAnalysis, DecisionContext], Optional[Decision]]


def urgent_rule(analysis: QueryAnalysis, context: DecisionContext) -> Optional[Decision]:
    if not (analysis.has_urgent_intent or context.urgency == "high"):
        return None
    return Decision(
        action="generate_both",
        priority="high",
        reasoning="Urgent request detected, generating both content and media",
        media_types=("image", "brochure"),
        content_focus="general",
        industry_focus=context.industry,
        estimated_time="immediate",
    )


def learning_rule(analysis: QueryAnalysis, context: DecisionContext) -> Optional[Decision]:
    if not (analysis.has_learning_intent or analysis.confidence < 0.5):
        return None
    return Decision(
        action="provide_insights",
        priority="high",
        reasoning="Learning request or low confidence, providing detailed insights",
        media_types=(),
        content_focus="educational",
        industry_focus=context.industry,
        estimated_time="1-2 minutes",
    )


def image_rule(analysis: QueryAnalysis, context: DecisionContext) -> Optional[Decision]:
    if not (analysis.has_image_intent or context.content_type == "image"):
        return None
    return Decision(
        action="generate_image",
        priority="high",
        reasoning="Image generation requested",
        media_types=("image",),
        content_focus="general",
        industry_focus=context.industry,
        estimated_time="1-2 minutes",
    )


def content_rule(analysis: QueryAnalysis, context: DecisionContext) -> Optional[Decision]:
    if not analysis.has_content_intent:
        return None
    return Decision(
        action="generate_content",
        priority="medium",
        reasoning="Content generation requested",
        media_types=(),
        content_focus=analysis.profile["focus"],
        industry_focus=context.industry,
        estimated_time="2-3 minutes",
    )


def industry_default_rule(analysis: QueryAnalysis, context: DecisionContext) -> Decision:
    profile = analysis.profile
    priority = profile["urgency"]
    return Decision(
        action="generate_both",
        priority=priority,
        reasoning=f"Industry-specific approach for {context.industry}",
        media_types=tuple(profile["media"]),
        content_focus=profile["focus"],
        industry_focus=context.industry,
        estimated_time="1-2 minutes" if priority == "high" else "3-5 minutes",
    )


BASE_RULES: Tuple[BaseRule, ...] = (
    urgent_rule,
    learning_rule,
    image_rule,
    content_rule,
    industry_default_rule,
)


# --- Optimizers ---------------------------------------------------------------
#
# Applied in OPTIMIZERS order after the base rule; each may override the
# fields set by the ones before it.

Optimizer = Callable[[Decision, DecisionContext], Decision]


def apply_preferred_media(decision: Decision, context: DecisionContext) -> Decision:
    for key in PREFERRED_MEDIA_KEYS:
        preferred = context.preferences.get(key)
        if preferred is None:
            continue
        if isinstance(preferred, str):
            preferred = (preferred,)
        return replace(decision, media_types=tuple(preferred))
    return decision


def apply_recent_topic(decision: Decision, context: DecisionContext) -> Decision:
    if context.history and "image" in context.history[-1].lower():
        return replace(decision, action="generate_image", media_types=("image",))
    return decision


def apply_complexity(decision: Decision, context: DecisionContext) -> Decision:
    if context.complexity == "complex":
        return replace(
            decision,
            action="generate_both",
            priority="high",
            estimated_time="5-10 minutes",
        )
    return decision


def apply_knowledge_gap(decision: Decision, context: DecisionContext) -> Decision:
    # Media types stay on the decision as advisory hints for the follow-up.
    if len(context.knowledge.relevant_products) == 0:
        return replace(
            decision,
            action="ask_clarification",
            reasoning=decision.reasoning + CLARIFICATION_NOTE,
        )
    return decision


OPTIMIZERS: Tuple[Optimizer, ...] = (
    apply_preferred_media,
    apply_recent_topic,
    apply_complexity,
    apply_knowledge_gap,
)


def fallback_decision(context: DecisionContext) -> Decision:
    return Decision(
        action="generate_content",
        priority="medium",
        reasoning="Fallback decision due to processing error",
        media_types=("brochure",),
        content_focus="general",
        industry_focus=context.industry,
        estimated_time="3-5 minutes",
    )


class DecisionEngine:
    """
    Rule cascade that turns a request context into exactly one Decision.

    The base rules and optimizers are injectable so callers (and tests) can
    swap the cascade, but the defaults are the fixed module-level sequences.
    """

    def __init__(
        self,
        base_rules: Sequence[BaseRule] = BASE_RULES,
        optimizers: Sequence[Optimizer] = OPTIMIZERS,
    ) -> None:
        self.base_rules = tuple(base_rules)
        self.optimizers = tuple(optimizers)
        self._lock = threading.Lock()
        self._actions: Counter = Counter()
        self._confidence_total = 0.0

    def decide(self, context: DecisionContext) -> Decision:
        logger.info(
            "Deciding for industry=%s content_type=%s", context.industry, context.content_type
        )
        try:
            analysis = analyze_context(context)
            decision = self._select_base(analysis, context)
            for optimizer in self.optimizers:
                decision = optimizer(decision, context)
        except Exception:
            logger.exception("Decision cascade failed; using fallback decision")
            decision = fallback_decision(context)

        self._record(decision, context)
        logger.info("Decision made: %s (priority %s)", decision.action, decision.priority)
        return decision

    def stats(self) -> DecisionStats:
        with self._lock:
            total = sum(self._actions.values())
            return DecisionStats(
                total_decisions=total,
                action_distribution=dict(self._actions),
                average_confidence=self._confidence_total / total if total else 0.0,
                common_actions=tuple(action for action, _ in self._actions.most_common(3)),
            )

    def _select_base(self, analysis: QueryAnalysis, context: DecisionContext) -> Decision:
        for rule in self.base_rules:
            decision = rule(analysis, context)
            if decision is not None:
                return decision
        raise RuntimeError("No base rule matched the decision context")

    def _record(self, decision: Decision, context: DecisionContext) -> None:
        with self._lock:
            self._actions[decision.action] += 1
            self._confidence_total += context.knowledge.confidence


def _contains_any(text: str, phrases: Sequence[str]) -> bool:
    return any(phrase in text for phrase in phrases)
