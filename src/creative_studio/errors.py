"""Exception types raised by clients and services."""


class StudioError(Exception):
    """Base class for creative studio errors."""
    pass


class PlanningError(StudioError):
    """Concept planning failed; no creatives were created."""
    pass


class GenerationError(StudioError):
    """A single draft/final/edit call failed."""
    pass


class BriefValidationError(StudioError):
    """The campaign brief or settings are not usable for planning."""
    pass


class InvalidStateError(StudioError):
    """Operation rejected before any remote call because of the current state."""
    pass


class UnknownCreativeError(InvalidStateError):
    """No creative (or no variant) with the given key."""
    pass


class VariantBusyError(InvalidStateError):
    """A call is already in flight for this variant."""

    def __init__(self, creative_id: str, ratio: str):
        self.creative_id = creative_id
        self.ratio = ratio
        super().__init__(f"Variant {ratio} of creative {creative_id} is busy")


class NoImageSelectedError(InvalidStateError):
    """Edit requested on a variant without a selected image."""

    def __init__(self, creative_id: str, ratio: str):
        self.creative_id = creative_id
        self.ratio = ratio
        super().__init__(f"Variant {ratio} of creative {creative_id} has no image to edit")


class SnapshotError(StudioError):
    """Snapshot file is not a recognized session export."""
    pass


class ToolCallError(StudioError):
    """Assistant tool call carried invalid arguments."""
    pass
