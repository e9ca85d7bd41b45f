import base64
import io
import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image

from .brand import BRAND_NAME
from .render import BaseRenderer, GeneratedAsset, RenderRequest
from .styles import StylePattern

logger = logging.getLogger(__name__)

DEFAULT_SIZE = (1024, 1024)
REPLICATE_MODEL = "google/imagen-4-fast"
PROMPT_MODEL = "gpt-4o-mini"

CONTENT_TYPE_CUES = {
    "brochure": "marketing brochure, product showcase, colorful, engaging",
    "whitepaper": "technical whitepaper, professional report, data visualization, charts",
    "battlecard": "competitive analysis card, comparison table, strategic overview",
    "presentation": "presentation slide, executive summary, key points",
    "email": "email template, newsletter design, professional communication",
}


@dataclass
class GenerativeRenderer(BaseRenderer):
    """
    Remote generative strategy: builds a style-aware prompt, optionally refines
    it with OpenAI, and generates the image through Replicate.

    Requires REPLICATE_API_TOKEN; OPENAI_API_KEY is optional and only used for
    prompt refinement. Missing credentials produce a failed asset.
    """

    size: Tuple[int, int] = DEFAULT_SIZE
    refine_prompt: bool = True

    def _render(self, request: RenderRequest, style: Optional[StylePattern]) -> GeneratedAsset:
        if not os.environ.get("REPLICATE_API_TOKEN"):
            return self.failed_asset(request, style, "REPLICATE_API_TOKEN is not set")

        prompt = build_image_prompt(request, style)
        if self.refine_prompt:
            prompt = self._refine_with_openai(prompt, request)

        img = self._real_generate(prompt)
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")

        return GeneratedAsset(
            id=self.id_factory(),
            title=request.title,
            kind=request.content_type,
            industry=request.industry,
            artifact_ref=f"data:image/png;base64,{encoded}",
            description=f"Generated PNG via {REPLICATE_MODEL} for {request.industry}",
            generated_at=self.clock(),
            style_used=request.style or (style.name if style else "generative"),
        )

    def _refine_with_openai(self, base_prompt: str, request: RenderRequest) -> str:
        """
        Ask OpenAI for a tighter image prompt. Any failure keeps the base prompt.
        """
        api_key = os.environ.get("OPENAI_API_KEY")
        if not api_key:
            logger.info("OPENAI_API_KEY not set; using base prompt without refinement")
            return base_prompt

        from openai import OpenAI

        client = OpenAI(api_key=api_key)
        system_message = (
            "You write prompts for an AI image generator producing B2B telecom "
            "marketing visuals. Focus on composition, lighting and brand colours. "
            "Do not include any text or typography in the image. "
            "Keep prompts to 2-4 sentences."
        )
        user_message = (
            f"Title: {request.title}\n"
            f"Industry: {request.industry}\n"
            f"Content type: {request.content_type}\n"
            f"Base prompt for reference: {base_prompt}"
        )

        try:
            response = client.chat.completions.create(
                model=PROMPT_MODEL,
                messages=[
                    {"role": "system", "content": system_message},
                    {"role": "user", "content": user_message},
                ],
                temperature=0.7,
                max_tokens=300,
            )
            refined = (response.choices[0].message.content or "").strip()
        except Exception:
            logger.exception("OpenAI prompt refinement failed; using base prompt")
            return base_prompt

        logger.info("Refined image prompt: %s", refined)
        return refined or base_prompt

    def _real_generate(self, prompt: str) -> Image.Image:
        import replicate

        final_prompt = (
            f"{prompt}. IMPORTANT: Do not include any text, letters, words, or "
            "typography in the image."
        )
        output = replicate.run(
            REPLICATE_MODEL,
            input={"prompt": final_prompt, "aspect_ratio": "1:1", "megapixels": "1"},
        )

        img = Image.open(io.BytesIO(output.read())).convert("RGB")
        if img.size != self.size:
            img = img.resize(self.size, Image.LANCZOS)
        return img


def build_image_prompt(request: RenderRequest, style: Optional[StylePattern] = None) -> str:
    parts = ["Professional business visual, clean design, corporate style, high quality"]

    cue = CONTENT_TYPE_CUES.get(request.content_type)
    if cue:
        parts.append(cue)

    parts.append(f"{request.industry} industry, business solutions")
    parts.append(f"{BRAND_NAME} telecom branding")

    if style is not None:
        parts.append(f"primary color {style.colors.primary}")
        parts.append(f"secondary color {style.colors.secondary}")
        parts.append(f"background {style.colors.background}")
        if style.brand_elements.patterns:
            parts.append(f"{', '.join(style.brand_elements.patterns)} motifs")

    if request.elements:
        parts.append(f"featuring {', '.join(e.replace('_', ' ') for e in request.elements)}")

    parts.append(f'theme: "{request.title}"')
    parts.append("modern layout, clean lines, generous whitespace")
    return ", ".join(parts)
