"""Shared fixtures: in-memory image/text services with controllable timing."""

import asyncio

import pytest

from creative_studio.errors import GenerationError, PlanningError
from creative_studio.models import (
    CampaignBrief,
    Concept,
    Creative,
    CreativeStatus,
    GeneratedImage,
    Session,
    Settings,
    Variant,
    VersionHistory,
)
from creative_studio.services.planner import ConceptPlanner
from creative_studio.engine import Orchestrator


def make_image(ratio: str, tag: str = "img", is_draft: bool = False) -> GeneratedImage:
    return GeneratedImage(data=f"{tag}:{ratio}".encode(), mime_type="image/png", ratio=ratio, is_draft=is_draft)


async def settle_loop(rounds: int = 5):
    """Let every runnable task advance to its next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeImageService:
    """
    Records every call. Calls whose prompt or ratio is in `holds` wait on its
    event; calls for a ratio in `fail_ratios` raise GenerationError.
    """

    def __init__(self):
        self.calls: list[tuple] = []
        self.holds: dict[str, asyncio.Event] = {}
        self.fail_ratios: set[str] = set()
        self.completed: list[str] = []
        self.edit_sources: list[GeneratedImage] = []

    def hold(self, key: str) -> asyncio.Event:
        event = asyncio.Event()
        self.holds[key] = event
        return event

    async def _finish(self, kind: str, prompt: str, ratio: str, tag: str) -> GeneratedImage:
        event = self.holds.get(prompt) or self.holds.get(ratio)
        if event is not None:
            await event.wait()
        self.completed.append(ratio)
        if ratio in self.fail_ratios:
            raise GenerationError(f"{kind} failed for {ratio}")
        return make_image(ratio, tag=tag, is_draft=kind == "draft")

    async def draft_image(self, prompt, ratio):
        self.calls.append(("draft", prompt, ratio))
        return await self._finish("draft", prompt, ratio, f"draft-{len(self.calls)}")

    async def final_image(self, prompt, ratio, quality, assets):
        self.calls.append(("final", prompt, ratio, quality))
        return await self._finish("final", prompt, ratio, f"final-{len(self.calls)}")

    async def edit_image(self, source, instruction, quality):
        self.calls.append(("edit", instruction, source.ratio, quality))
        self.edit_sources.append(source)
        return await self._finish("edit", instruction, source.ratio, f"edit-{len(self.calls)}")

    def calls_of(self, kind: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == kind]


class FakeTextService:
    """Plans numbered concepts; optionally fails, omits a ratio or waits on a gate."""

    def __init__(self):
        self.plan_calls: list[dict] = []
        self.summary_calls: list[str] = []
        self.fail = False
        self.gate: asyncio.Event | None = None
        self.omit_ratio: str | None = None
        self.summary = "Summary of the linked pages"
        self._planned = 0

    async def plan_concepts(self, brief, count, ratios, style_guide, assets):
        self.plan_calls.append({"brief": brief, "count": count, "ratios": list(ratios)})
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise PlanningError("planner unavailable")
        concepts = []
        for _ in range(count):
            self._planned += 1
            n = self._planned
            payload = {
                "title": f"Concept {n}",
                "subtitle": f"Idea {n}",
                "rationale": f"Why {n}",
                "variant_prompts": {r: f"prompt {n} {r}" for r in ratios if r != self.omit_ratio},
            }
            concepts.append(Concept.from_payload(payload, list(ratios)))
        return concepts

    async def summarize_references(self, text):
        self.summary_calls.append(text)
        return self.summary


@pytest.fixture
def images():
    return FakeImageService()


@pytest.fixture
def text():
    return FakeTextService()


@pytest.fixture
def orchestrator(images, text):
    return Orchestrator(images, ConceptPlanner(text))


@pytest.fixture
def session():
    """Session with a complete brief and three ratios."""
    return Session(
        brief=CampaignBrief(
            audience_action="Buy the new treat",
            key_message="Dogs love it",
            context="Grain-free dog treat",
        ),
        settings=Settings(ratios=("1:1", "9:16", "16:9"), quality="low", count=2),
    )


def drafted_creative(creative_id: str = "c1", ratios=("1:1", "9:16", "16:9")) -> Creative:
    """Creative in draft_ready with a draft on its primary ratio."""
    primary = ratios[0]
    variants = {
        ratio: Variant(
            ratio=ratio,
            prompt=f"prompt {ratio}",
            history=VersionHistory((make_image(ratio, "draft", True),), 0) if ratio == primary else VersionHistory(),
        )
        for ratio in ratios
    }
    return Creative(
        id=creative_id,
        title=f"Creative {creative_id}",
        subtitle="",
        rationale="",
        variants=variants,
        active_ratio=primary,
        quality="low",
        status=CreativeStatus.DRAFT_READY,
    )


def approved_creative(creative_id: str = "c1", ratios=("1:1", "9:16", "16:9")) -> Creative:
    """Creative in approved with one final image per ratio."""
    creative = drafted_creative(creative_id, ratios)
    for ratio in ratios:
        creative = creative.update_variant(ratio, lambda v: v.settle(make_image(v.ratio, "final")))
    return creative.with_status(CreativeStatus.APPROVED)
