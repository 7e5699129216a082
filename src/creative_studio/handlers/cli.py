"""
Command line entry point.

Every command works on a session snapshot file: it loads (or creates) the
session, runs one operation, prints accumulated errors and saves it back.

    creative-studio generate session.json --audience-action "..." --key-message "..." --ratio 3:4 --ratio 9:16
    creative-studio approve session.json <creative-id>
    creative-studio export-images session.json out/
"""

import argparse
import asyncio
import mimetypes
import re
import sys
from pathlib import Path

from ..clients import GeminiClient, LLMClient
from ..clients.assets import load_assets
from ..config import (
    DEFAULT_CREATIVE_COUNT,
    DEFAULT_OBJECTIVE,
    DEFAULT_QUALITY,
    GEMINI_API_KEY,
    IMAGE_SIZES,
    OBJECTIVES,
    OPENAI_API_KEY,
    TEXT_PROVIDER,
)
from ..engine import Orchestrator
from ..errors import SnapshotError, UnknownCreativeError
from ..models import CampaignBrief, Creative, Session, Settings
from ..services import AssistantSession, ConceptPlanner, load, save


def build_text_service(gemini: GeminiClient):
    """Planner/summary backend selected by TEXT_PROVIDER."""
    if TEXT_PROVIDER == "openai":
        if not OPENAI_API_KEY:
            raise RuntimeError("OPENAI_API_KEY must be set in .env when TEXT_PROVIDER=openai")
        return LLMClient(OPENAI_API_KEY)
    return gemini


def build_orchestrator() -> tuple[Orchestrator, GeminiClient]:
    if not GEMINI_API_KEY:
        raise RuntimeError("GEMINI_API_KEY must be set in .env")
    gemini = GeminiClient(GEMINI_API_KEY)
    planner = ConceptPlanner(build_text_service(gemini))
    return Orchestrator(gemini, planner), gemini


def resolve_id(session: Session, prefix: str) -> str:
    """Accept a full creative id or an unambiguous prefix."""
    matches = [c.id for c in session.creatives if c.id.startswith(prefix)]
    if len(matches) != 1:
        raise UnknownCreativeError(f"No unique creative matches '{prefix}' ({len(matches)} found)")
    return matches[0]


def print_session(session: Session):
    print("\n=== CREATIVES ===")
    for creative in session.creatives:
        print(f"[{creative.id[:8]}] {creative.title} ({creative.status.value})")
        for ratio, variant in creative.variants.items():
            history = variant.history
            position = f"{history.cursor + 1}/{len(history)}" if history.cursor is not None else "no image"
            marker = "*" if ratio == creative.active_ratio else " "
            print(f"   {marker} {ratio}: {position}")
    print(f"\nTotal cost: ${session.total_cost:.2f}")
    print_errors(session)


def print_errors(session: Session):
    if session.errors:
        print("\n=== ERRORS ===")
        for error in session.errors:
            print(f"  {error}")


# ===== Commands =====

async def cmd_generate(args) -> bool:
    orchestrator, _ = build_orchestrator()
    style_guide = Path(args.style_guide).read_text(encoding="utf-8") if args.style_guide else None
    session = Session(
        brief=CampaignBrief(
            objective=args.objective,
            audience_action=args.audience_action,
            key_message=args.key_message,
            context=args.context,
        ),
        settings=Settings(
            ratios=tuple(args.ratio or ["3:4"]),
            quality=args.quality,
            count=args.count,
            style_guide=style_guide,
            assets=tuple(load_assets(args.asset or [])),
        ),
    )

    creatives = await orchestrator.generate(session)
    if args.approve:
        await asyncio.gather(*(orchestrator.approve(session, c.id) for c in creatives))

    save(session, args.snapshot)
    print_session(session)
    return bool(creatives)


async def cmd_more(args) -> bool:
    orchestrator, _ = build_orchestrator()
    session = load(args.snapshot)
    session.clear_errors()
    creatives = await orchestrator.generate_more(session, args.count)
    save(session, args.snapshot)
    print_session(session)
    return bool(creatives)


async def cmd_approve(args) -> bool:
    orchestrator, _ = build_orchestrator()
    session = load(args.snapshot)
    session.clear_errors()
    results = await orchestrator.approve(session, resolve_id(session, args.creative))
    save(session, args.snapshot)
    print_session(session)
    return bool(results) and all(r.ok for r in results.values())


async def cmd_regenerate(args) -> bool:
    orchestrator, _ = build_orchestrator()
    session = load(args.snapshot)
    session.clear_errors()
    creative_id = resolve_id(session, args.creative)
    prompt = args.prompt or session.get(creative_id).variant(args.ratio).prompt
    result = await orchestrator.regenerate(session, creative_id, args.ratio, prompt, args.quality)
    save(session, args.snapshot)
    print_session(session)
    return result.ok


async def cmd_edit(args) -> bool:
    orchestrator, _ = build_orchestrator()
    session = load(args.snapshot)
    session.clear_errors()
    creative_id = resolve_id(session, args.creative)
    result = await orchestrator.edit(session, creative_id, args.ratio, args.instruction, args.quality)
    save(session, args.snapshot)
    print_session(session)
    return result.ok


async def cmd_select(args) -> bool:
    session = load(args.snapshot)
    session.clear_errors()
    creative_id = resolve_id(session, args.creative)
    # 1-based on the command line
    variant = session.update_variant(creative_id, args.ratio, lambda v: v.select(args.version - 1))
    save(session, args.snapshot)
    print_session(session)
    return variant.history.cursor is not None


async def cmd_export_images(args) -> bool:
    session = load(args.snapshot)
    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    written = 0
    for creative in session.creatives:
        for ratio, variant in creative.variants.items():
            image = variant.history.current
            if image is None:
                continue
            extension = mimetypes.guess_extension(image.mime_type) or ".png"
            path = out_dir / f"{_slug(creative)}_{ratio.replace(':', 'x')}{extension}"
            path.write_bytes(image.data)
            print(f"  Saved {path}")
            written += 1

    print(f"\nExported {written} images to {out_dir}")
    return written > 0


async def cmd_assistant(args) -> bool:
    _, gemini = build_orchestrator()
    path = Path(args.snapshot)
    session = load(path) if path.exists() else Session()

    chat = AssistantSession(gemini.create_chat(session.brief), session)
    reply = await chat.start()
    if reply:
        print(f"\nassistant> {reply.text}")

    print("(empty line to finish)")
    while True:
        text = await asyncio.to_thread(input, "\nyou> ")
        if not text.strip():
            break
        reply = await chat.send(text)
        if reply:
            print(f"\nassistant> {reply.text}")

    save(session, path)
    print(f"\n{session.brief.to_state_text()}")
    return True


def _slug(creative: Creative) -> str:
    name = re.sub(r"[^a-z0-9]+", "-", creative.title.lower()).strip("-")
    return f"{name or 'creative'}_{creative.id[:8]}"


COMMANDS = {
    "generate": cmd_generate,
    "more": cmd_more,
    "approve": cmd_approve,
    "regenerate": cmd_regenerate,
    "edit": cmd_edit,
    "select": cmd_select,
    "export-images": cmd_export_images,
    "assistant": cmd_assistant,
}


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="creative-studio", description="Multi-ratio ad creative generation")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("generate", help="Plan and draft a new batch of creatives")
    p.add_argument("snapshot", help="Session file to write")
    p.add_argument("--objective", choices=OBJECTIVES, default=DEFAULT_OBJECTIVE)
    p.add_argument("--audience-action", required=True)
    p.add_argument("--key-message", required=True)
    p.add_argument("--context", default="")
    p.add_argument("--ratio", action="append", help="Aspect ratio, repeatable (default 3:4)")
    p.add_argument("--quality", choices=list(IMAGE_SIZES), default=DEFAULT_QUALITY)
    p.add_argument("--count", type=int, default=DEFAULT_CREATIVE_COUNT)
    p.add_argument("--style-guide", help="Text file with brand guidelines")
    p.add_argument("--asset", action="append", help="Reference file path or URL, repeatable")
    p.add_argument("--approve", action="store_true", help="Approve every creative after drafting")

    p = sub.add_parser("more", help="Append more creatives to a session")
    p.add_argument("snapshot")
    p.add_argument("--count", type=int, default=None)

    p = sub.add_parser("approve", help="Generate every ratio of a drafted creative")
    p.add_argument("snapshot")
    p.add_argument("creative", help="Creative id or prefix")

    p = sub.add_parser("regenerate", help="New full-quality image for one ratio")
    p.add_argument("snapshot")
    p.add_argument("creative")
    p.add_argument("ratio")
    p.add_argument("--prompt", help="Replacement prompt (default: current)")
    p.add_argument("--quality", choices=list(IMAGE_SIZES))

    p = sub.add_parser("edit", help="Edit the selected image of one ratio")
    p.add_argument("snapshot")
    p.add_argument("creative")
    p.add_argument("ratio")
    p.add_argument("instruction")
    p.add_argument("--quality", choices=list(IMAGE_SIZES))

    p = sub.add_parser("select", help="Select a version (1-based) of one ratio")
    p.add_argument("snapshot")
    p.add_argument("creative")
    p.add_argument("ratio")
    p.add_argument("version", type=int)

    p = sub.add_parser("export-images", help="Write every selected image to a directory")
    p.add_argument("snapshot")
    p.add_argument("out_dir")

    p = sub.add_parser("assistant", help="Edit the brief by chatting with the assistant")
    p.add_argument("snapshot", help="Session file (created if missing)")

    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        ok = asyncio.run(COMMANDS[args.command](args))
    except (SnapshotError, UnknownCreativeError, RuntimeError, FileNotFoundError) as e:
        print(f"ERROR: {e}", flush=True)
        return 1

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
