"""Generated image model and call results."""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class GeneratedImage:
    """Result of one successful draft/final/edit call."""

    data: bytes
    mime_type: str
    ratio: str
    is_draft: bool = False


@dataclass(frozen=True)
class Success:
    """Call completed with an image."""
    image: GeneratedImage

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Call completed without an image (failed or rejected)."""
    reason: str

    @property
    def ok(self) -> bool:
        return False


GenerationResult = Union[Success, Failure]
