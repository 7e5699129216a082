"""Session - the working set of creatives plus shared brief and settings."""

from dataclasses import dataclass, field
from typing import Callable

from ..errors import UnknownCreativeError
from .brief import CampaignBrief, Settings
from .creative import Creative, Variant


def replace_creative(
    creatives: list[Creative],
    creative_id: str,
    fn: Callable[[Creative], Creative],
) -> list[Creative]:
    """
    Keyed merge: return a new list where only the creative with creative_id
    is replaced by fn(creative).

    Raises:
        UnknownCreativeError: If no creative has that id.
    """
    found = False
    result = []
    for creative in creatives:
        if creative.id == creative_id:
            updated = fn(creative)
            if updated.id != creative_id:
                raise ValueError(f"Creative id cannot change ({creative_id} -> {updated.id})")
            result.append(updated)
            found = True
        else:
            result.append(creative)
    if not found:
        raise UnknownCreativeError(f"Unknown creative: {creative_id}")
    return result


def remove_creative(creatives: list[Creative], creative_id: str) -> list[Creative]:
    """Return a new list without the given creative."""
    if not any(c.id == creative_id for c in creatives):
        raise UnknownCreativeError(f"Unknown creative: {creative_id}")
    return [c for c in creatives if c.id != creative_id]


@dataclass
class Session:
    """
    The single active working set.

    `creatives` is only ever reassigned through the keyed replace functions,
    so results landing back to back touch disjoint nodes.
    """

    brief: CampaignBrief = field(default_factory=CampaignBrief)
    settings: Settings = field(default_factory=Settings)
    creatives: list[Creative] = field(default_factory=list)
    total_cost: float = 0.0
    reference_summary: str | None = None
    errors: list[str] = field(default_factory=list)

    def get(self, creative_id: str) -> Creative:
        for creative in self.creatives:
            if creative.id == creative_id:
                return creative
        raise UnknownCreativeError(f"Unknown creative: {creative_id}")

    def update_creative(self, creative_id: str, fn: Callable[[Creative], Creative]) -> Creative:
        self.creatives = replace_creative(self.creatives, creative_id, fn)
        return self.get(creative_id)

    def update_variant(self, creative_id: str, ratio: str, fn: Callable[[Variant], Variant]) -> Variant:
        creative = self.update_creative(creative_id, lambda c: c.update_variant(ratio, fn))
        return creative.variant(ratio)

    def append_creatives(self, creatives: list[Creative]):
        existing = {c.id for c in self.creatives}
        clashes = [c.id for c in creatives if c.id in existing]
        if clashes:
            raise ValueError(f"Duplicate creative ids: {clashes}")
        self.creatives = self.creatives + list(creatives)

    def discard(self, creative_id: str):
        self.creatives = remove_creative(self.creatives, creative_id)

    def record_error(self, message: str):
        self.errors.append(message)

    def clear_errors(self):
        self.errors = []

    @property
    def error_text(self) -> str:
        return "\n".join(self.errors)

    def add_cost(self, amount: float):
        self.total_cost = round(self.total_cost + amount, 4)

    def reset(self):
        """Clear the working set and brief, keeping nothing from the previous run."""
        self.brief = CampaignBrief()
        self.settings = Settings()
        self.creatives = []
        self.total_cost = 0.0
        self.reference_summary = None
        self.errors = []
