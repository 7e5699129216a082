"""Asset model - user-supplied reference files."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Asset:
    """A reference file (logo, product shot) attached to every generation call."""

    id: str
    mime_type: str
    data: bytes
    name: str

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")
