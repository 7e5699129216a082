"""Concept model - planning output for one creative."""

from dataclasses import dataclass
from typing import Any


def missing_prompt(ratio: str) -> str:
    """Placeholder prompt used when planning omitted a ratio."""
    return f"ERROR: the planner returned no prompt for ratio {ratio}. Edit this prompt before generating."


@dataclass(frozen=True)
class Concept:
    """A creative idea with one image prompt per requested ratio."""

    title: str
    subtitle: str
    rationale: str
    prompts: dict[str, str]

    @staticmethod
    def from_payload(data: dict[str, Any], ratios: list[str]) -> "Concept":
        """
        Build a concept from a structured planner response item.

        Every requested ratio gets a prompt; a ratio absent from the payload
        maps to a placeholder error prompt instead of raising, as does every
        ratio when `variant_prompts` is not an object.
        """
        raw_prompts = data.get("variant_prompts") or data.get("variantPrompts") or {}
        if not isinstance(raw_prompts, dict):
            raw_prompts = {}
        prompts = {}
        for ratio in ratios:
            prompt = raw_prompts.get(ratio)
            prompts[ratio] = prompt.strip() if isinstance(prompt, str) and prompt.strip() else missing_prompt(ratio)
        return Concept(
            title=str(data.get("title", "")).strip() or "Untitled concept",
            subtitle=str(data.get("subtitle", "")).strip(),
            rationale=str(data.get("rationale", "")).strip(),
            prompts=prompts,
        )
