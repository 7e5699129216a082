"""Interfaces of the remote services the orchestrator depends on."""

from typing import Protocol

from ..models import (
    Asset,
    AssistantReply,
    CampaignBrief,
    Concept,
    GeneratedImage,
    ToolResult,
)


class ImageService(Protocol):
    """Draft, final and edit image endpoints. Every call may fail or be slow."""

    async def draft_image(self, prompt: str, ratio: str) -> GeneratedImage: ...

    async def final_image(
        self,
        prompt: str,
        ratio: str,
        quality: str,
        assets: list[Asset],
    ) -> GeneratedImage: ...

    async def edit_image(
        self,
        source: GeneratedImage,
        instruction: str,
        quality: str,
    ) -> GeneratedImage: ...


class TextService(Protocol):
    """Concept planning and reference summarization."""

    async def plan_concepts(
        self,
        brief: str,
        count: int,
        ratios: list[str],
        style_guide: str | None,
        assets: list[Asset],
    ) -> list[Concept]: ...

    async def summarize_references(self, text: str) -> str: ...


class AssistantBackend(Protocol):
    """One conversation with a tool-calling chat model."""

    async def send(
        self,
        message: str | list[ToolResult],
        brief: CampaignBrief,
    ) -> AssistantReply: ...
