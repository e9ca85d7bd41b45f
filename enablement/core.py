import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .brand import elements_for_industry
from .config import Settings
from .decision import Decision, DecisionContext, DecisionEngine
from .generator import GenerativeRenderer
from .render import AssetRenderer, GeneratedAsset, PlaceholderRenderer, RenderRequest, VectorCompositor
from .storage import InMemoryStore, JsonFileStore, KeyValueStore
from .styles import StylePattern, StylePatternStore

logger = logging.getLogger(__name__)

IMAGE_ACTIONS = ("generate_image", "generate_both")
STYLED_ACTIONS = ("generate_image", "generate_both", "generate_content")


@dataclass
class AssistantResponse:
    decision: Decision
    style: Optional[StylePattern] = None
    asset: Optional[GeneratedAsset] = None
    insights: List[str] = field(default_factory=list)
    message: str = ""


class EnablementAssistant:
    """
    Orchestrates one request end to end:
    - decide what to produce
    - pick the best style for the content type and industry
    - render an image when the decision calls for one
    - otherwise return insights or a clarifying question
    """

    def __init__(
        self,
        engine: DecisionEngine,
        store: StylePatternStore,
        renderer: AssetRenderer,
    ) -> None:
        self.engine = engine
        self.store = store
        self.renderer = renderer

    def respond(
        self,
        context: DecisionContext,
        title: Optional[str] = None,
        elements: Optional[Sequence[str]] = None,
    ) -> AssistantResponse:
        decision = self.engine.decide(context)
        response = AssistantResponse(decision=decision)

        if decision.action in STYLED_ACTIONS:
            response.style = self._pick_style(context)

        if decision.action in IMAGE_ACTIONS:
            request = RenderRequest(
                title=title or f"{context.industry} {context.content_type}",
                industry=context.industry,
                elements=tuple(elements) if elements else tuple(elements_for_industry(context.industry)),
                content_type=context.content_type,
            )
            response.asset = self.renderer.render(request, response.style)

        if decision.action == "provide_insights":
            response.insights = self.store.insights()
            response.message = f"Here is what I know about {context.industry} ({decision.content_focus})."
        elif decision.action == "ask_clarification":
            response.message = (
                f"I couldn't match any products for your {context.industry} request. "
                "Which products or services should this focus on?"
            )
        elif decision.action == "generate_content":
            response.message = (
                f"Preparing {context.content_type} content focused on {decision.content_focus}."
            )
        else:
            response.message = decision.reasoning

        return response

    def _pick_style(self, context: DecisionContext) -> StylePattern:
        style = self.store.recommendations_for(context.content_type, context.industry)[0]
        if self.store.has(style.id):
            self.store.mark_used(style.id)
        return style


def build_store(settings: Settings) -> StylePatternStore:
    kv_store: KeyValueStore
    if settings.store_dir is not None:
        kv_store = JsonFileStore(settings.store_dir)
    else:
        kv_store = InMemoryStore()
    store = StylePatternStore(kv_store)
    store.initialize()
    return store


def build_renderer(settings: Settings) -> AssetRenderer:
    if settings.renderer == "placeholder":
        return PlaceholderRenderer(base_url=settings.placeholder_url)
    if settings.renderer == "generative":
        return GenerativeRenderer()
    return VectorCompositor(size=settings.canvas_size, font_path=settings.font_path)


def build_assistant(settings: Settings) -> EnablementAssistant:
    return EnablementAssistant(
        engine=DecisionEngine(),
        store=build_store(settings),
        renderer=build_renderer(settings),
    )
