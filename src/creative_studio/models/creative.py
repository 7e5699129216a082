"""Creative and variant models."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable

from ..errors import UnknownCreativeError
from .concept import Concept
from .history import VersionHistory
from .image import GeneratedImage


class CreativeStatus(Enum):
    PLANNING = "planning"
    DRAFT_PENDING = "draft_pending"
    DRAFT_READY = "draft_ready"
    APPROVING = "approving"
    APPROVED = "approved"


@dataclass(frozen=True)
class Variant:
    """One aspect-ratio lane of a creative."""

    ratio: str
    prompt: str
    history: VersionHistory = field(default_factory=VersionHistory)
    busy: bool = False

    def with_prompt(self, prompt: str) -> "Variant":
        return replace(self, prompt=prompt)

    def mark_busy(self) -> "Variant":
        return replace(self, busy=True)

    def settle(self, image: GeneratedImage | None = None) -> "Variant":
        """Clear busy, appending image when the call produced one."""
        history = self.history.append(image) if image is not None else self.history
        return replace(self, history=history, busy=False)

    def select(self, index: int) -> "Variant":
        return replace(self, history=self.history.select(index))


@dataclass(frozen=True)
class Creative:
    """
    A planned concept rendered in several aspect ratios.

    The variant key set is fixed at creation; the first key is the primary
    ratio (the one drafted before approval).
    """

    id: str
    title: str
    subtitle: str
    rationale: str
    variants: dict[str, Variant]
    active_ratio: str
    quality: str
    status: CreativeStatus = CreativeStatus.PLANNING

    @property
    def ratios(self) -> list[str]:
        return list(self.variants)

    @property
    def primary_ratio(self) -> str:
        return next(iter(self.variants))

    @property
    def busy(self) -> bool:
        return any(v.busy for v in self.variants.values())

    def variant(self, ratio: str) -> Variant:
        if ratio not in self.variants:
            raise UnknownCreativeError(f"Creative {self.id} has no {ratio} variant")
        return self.variants[ratio]

    def update_variant(self, ratio: str, fn: Callable[[Variant], Variant]) -> "Creative":
        """Return a creative with only the given variant replaced by fn(variant)."""
        updated = fn(self.variant(ratio))
        if updated.ratio != ratio:
            raise ValueError(f"Variant ratio cannot change ({ratio} -> {updated.ratio})")
        variants = {key: (updated if key == ratio else value) for key, value in self.variants.items()}
        return replace(self, variants=variants)

    def with_status(self, status: CreativeStatus) -> "Creative":
        return replace(self, status=status)

    def with_quality(self, quality: str) -> "Creative":
        return replace(self, quality=quality)

    def with_active_ratio(self, ratio: str) -> "Creative":
        self.variant(ratio)
        return replace(self, active_ratio=ratio)

    def mark_all_busy(self) -> "Creative":
        return replace(self, variants={key: v.mark_busy() for key, v in self.variants.items()})

    @staticmethod
    def from_concept(creative_id: str, concept: Concept, ratios: list[str], quality: str) -> "Creative":
        """New creative in PLANNING with one empty variant per ratio."""
        variants = {ratio: Variant(ratio=ratio, prompt=concept.prompts[ratio]) for ratio in ratios}
        return Creative(
            id=creative_id,
            title=concept.title,
            subtitle=concept.subtitle or concept.rationale,
            rationale=concept.rationale,
            variants=variants,
            active_ratio=ratios[0],
            quality=quality,
        )
