import argparse
import base64
import json
import logging
from dataclasses import asdict
from pathlib import Path

from dotenv import load_dotenv

from enablement.config import load_settings
from enablement.core import build_assistant, build_renderer, build_store
from enablement.decision import DecisionContext, DecisionEngine, KnowledgeResponse
from enablement.render import RenderRequest
from enablement.styles import UploadedFile

CONTENT_TYPES_BY_SUFFIX = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Decide, learn styles and render branded sales-enablement assets."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_context_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("query", help="Free-text request.")
        p.add_argument("--industry", default="general")
        p.add_argument("--content-type", default="brochure")
        p.add_argument("--urgency", choices=["low", "medium", "high"], default="medium")
        p.add_argument("--complexity", choices=["simple", "moderate", "complex"], default="moderate")
        p.add_argument(
            "--confidence",
            type=float,
            default=0.8,
            help="Knowledge lookup confidence in [0, 1].",
        )
        p.add_argument(
            "--product",
            action="append",
            default=[],
            help="Relevant product found by the knowledge lookup (repeatable).",
        )
        p.add_argument("--preferred-media", nargs="*", help="Override media types.")
        p.add_argument("--history", action="append", default=[], help="Prior topic (repeatable).")

    decide = sub.add_parser("decide", help="Show the decision for a request.")
    add_context_args(decide)

    ask = sub.add_parser("ask", help="Decide and produce the asset for a request.")
    add_context_args(ask)
    ask.add_argument("--title")
    ask.add_argument("--element", action="append", default=[])
    ask.add_argument("--output", type=Path, help="Write a rendered PNG here.")

    upload = sub.add_parser("upload", help="Learn a style from a reference file.")
    upload.add_argument("file", type=Path)
    upload.add_argument("--industry")

    render = sub.add_parser("render", help="Render an image directly.")
    render.add_argument("title")
    render.add_argument("--industry", required=True)
    render.add_argument("--content-type", default="image")
    render.add_argument("--element", action="append", default=[])
    render.add_argument("--output", type=Path, help="Write a rendered PNG here.")

    return parser.parse_args()


def build_context(args: argparse.Namespace) -> DecisionContext:
    preferences = {}
    if args.preferred_media:
        preferences["preferred_media"] = args.preferred_media
    return DecisionContext(
        query=args.query,
        industry=args.industry,
        content_type=args.content_type,
        urgency=args.urgency,
        complexity=args.complexity,
        knowledge=KnowledgeResponse(
            confidence=args.confidence,
            relevant_products=tuple(args.product),
        ),
        preferences=preferences,
        history=tuple(args.history),
    )


def save_asset(artifact_ref: str, output: Path) -> None:
    prefix = "data:image/png;base64,"
    if not artifact_ref.startswith(prefix):
        print(f"🔗 Asset is remote, not saving: {artifact_ref}")
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(base64.b64decode(artifact_ref[len(prefix):]))
    print(f"💾 Saved image to {output}")


def main() -> None:
    # Load environment variables from a local .env file if present
    # (e.g. ENABLEMENT_STORE_DIR=.enablement).
    load_dotenv()
    settings = load_settings(use_dotenv=False)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    args = parse_args()

    if args.command == "decide":
        decision = DecisionEngine().decide(build_context(args))
        print(json.dumps(asdict(decision), indent=2))

    elif args.command == "ask":
        assistant = build_assistant(settings)
        response = assistant.respond(build_context(args), title=args.title, elements=args.element)
        print(f"🎯 {response.decision.action} ({response.decision.priority}): {response.message}")
        if response.style:
            print(f"🎨 Style: {response.style.name}")
        for insight in response.insights:
            print(f"📈 {insight}")
        if response.asset:
            if response.asset.ok and args.output:
                save_asset(response.asset.artifact_ref, args.output)
            elif not response.asset.ok:
                print(f"⚠️  {response.asset.description}")

    elif args.command == "upload":
        store = build_store(settings)
        content_type = CONTENT_TYPES_BY_SUFFIX.get(args.file.suffix.lower(), "application/octet-stream")
        uploaded = UploadedFile(name=args.file.name, content_type=content_type, data=args.file.read_bytes())
        patterns, insights = store.process_upload(uploaded, industry=args.industry)
        for pattern in patterns:
            print(f"🎨 Learned '{pattern.name}' (confidence {pattern.confidence:.2f})")
        for insight in insights:
            print(f"📚 {insight}")

    elif args.command == "render":
        store = build_store(settings)
        style = store.recommendations_for(args.content_type, args.industry)[0]
        request = RenderRequest(
            title=args.title,
            industry=args.industry,
            elements=tuple(args.element),
            content_type=args.content_type,
        )
        asset = build_renderer(settings).render(request, style)
        if not asset.ok:
            print(f"⚠️  {asset.description}")
        elif args.output:
            save_asset(asset.artifact_ref, args.output)
        else:
            print(f"✅ Rendered {asset.title} ({len(asset.artifact_ref)} chars)")


if __name__ == "__main__":
    main()
