"""Campaign brief, settings and the assistant's brief update."""

from dataclasses import dataclass, fields, replace
from typing import Any

from ..config import (
    DEFAULT_CREATIVE_COUNT,
    DEFAULT_OBJECTIVE,
    DEFAULT_QUALITY,
    DEFAULT_RATIOS,
    IMAGE_SIZES,
    OBJECTIVES,
    SUPPORTED_RATIOS,
)
from ..errors import BriefValidationError, ToolCallError
from .asset import Asset


@dataclass(frozen=True)
class CampaignBrief:
    """Form fields describing the campaign."""

    objective: str = DEFAULT_OBJECTIVE
    audience_action: str = ""
    key_message: str = ""
    context: str = ""

    def validate(self):
        """Raise BriefValidationError if required fields are missing."""
        if not self.audience_action.strip() or not self.key_message.strip():
            raise BriefValidationError("Audience action and key message are required")

    def to_planning_text(self, reference_summary: str | None = None) -> str:
        """Format the brief as planner input."""
        lines = [
            f"- Main campaign objective: {self.objective}.",
            f"- What we want the audience to think or do: {self.audience_action}.",
            f"- Our key message: {self.key_message}.",
        ]
        if self.context.strip():
            lines.append(f"- Additional context from the user (descriptions, promotions, URLs): {self.context}.")
        if reference_summary and reference_summary.strip():
            lines.append(f"- Key points extracted from the referenced URLs: {reference_summary}.")
        return "\n".join(lines)

    def to_state_text(self) -> str:
        """Format the current field values for the assistant."""
        return "\n".join([
            "CURRENT FORM STATE:",
            f"- Objective: {self.objective or DEFAULT_OBJECTIVE}",
            f"- Audience action: {self.audience_action or 'Not defined'}",
            f"- Key message: {self.key_message or 'Not defined'}",
            f"- Context: {self.context or 'Not defined'}",
        ])


@dataclass(frozen=True)
class Settings:
    """Generation settings shared by every creative in a session."""

    ratios: tuple[str, ...] = DEFAULT_RATIOS
    quality: str = DEFAULT_QUALITY
    count: int = DEFAULT_CREATIVE_COUNT
    style_guide: str | None = None
    assets: tuple[Asset, ...] = ()

    def validate(self):
        if not self.ratios:
            raise BriefValidationError("At least one aspect ratio is required")
        if len(set(self.ratios)) != len(self.ratios):
            raise BriefValidationError(f"Duplicate aspect ratios: {list(self.ratios)}")
        unsupported = [r for r in self.ratios if r not in SUPPORTED_RATIOS]
        if unsupported:
            raise BriefValidationError(f"Unsupported aspect ratios: {unsupported}")
        if self.quality not in IMAGE_SIZES:
            raise BriefValidationError(f"Unknown quality: {self.quality}")
        if self.count < 1:
            raise BriefValidationError("Creative count must be at least 1")


UPDATE_BRIEF_TOOL = "update_brief_fields"

# Tool parameter descriptions, keyed by CampaignBrief field
BRIEF_FIELD_DESCRIPTIONS = {
    "objective": f"Campaign objective. ALLOWED VALUES: {', '.join(repr(o) for o in OBJECTIVES)}.",
    "audience_action": "What the audience should think or do (REPLACES the current value).",
    "key_message": "Key message or slogan (REPLACES the current value).",
    "context": (
        "Product context. Do not append: send one unified, cleaned-up description "
        "that REPLACES the previous one."
    ),
}


@dataclass(frozen=True)
class BriefFieldsUpdate:
    """Arguments of one update_brief_fields tool call. None means untouched."""

    objective: str | None = None
    audience_action: str | None = None
    key_message: str | None = None
    context: str | None = None

    @staticmethod
    def from_args(args: dict[str, Any] | None) -> "BriefFieldsUpdate":
        """Validate raw tool arguments."""
        args = dict(args or {})
        known = {f.name for f in fields(BriefFieldsUpdate)}
        unknown = sorted(set(args) - known)
        if unknown:
            raise ToolCallError(f"Unknown brief fields: {unknown}")
        for name, value in args.items():
            if value is not None and not isinstance(value, str):
                raise ToolCallError(f"Field {name} must be a string")
        objective = args.get("objective")
        if objective is not None and objective not in OBJECTIVES:
            raise ToolCallError(f"Objective must be one of {list(OBJECTIVES)}")
        return BriefFieldsUpdate(**args)

    def changed_fields(self) -> dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    def apply_to(self, brief: CampaignBrief) -> CampaignBrief:
        """Replace every named field; fields not named keep their value."""
        return replace(brief, **self.changed_fields())
