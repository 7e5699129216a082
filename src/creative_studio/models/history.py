"""Version history - append-only images for one (creative, ratio) pair."""

from dataclasses import dataclass

from .image import GeneratedImage


@dataclass(frozen=True)
class VersionHistory:
    """
    Ordered generated images with a movable cursor.

    The cursor is None exactly when there are no entries, otherwise a valid
    index. Appending moves the cursor to the new entry; entries are never
    reordered or removed.
    """

    entries: tuple[GeneratedImage, ...] = ()
    cursor: int | None = None

    def __post_init__(self):
        if not self.entries:
            if self.cursor is not None:
                raise ValueError("Empty history cannot have a cursor")
        elif self.cursor is None or not 0 <= self.cursor < len(self.entries):
            raise ValueError(f"Cursor {self.cursor} out of range for {len(self.entries)} entries")

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def current(self) -> GeneratedImage | None:
        """Image under the cursor (what is displayed), or None."""
        if self.cursor is None:
            return None
        return self.entries[self.cursor]

    def append(self, image: GeneratedImage) -> "VersionHistory":
        """Return a history with image appended and selected."""
        entries = self.entries + (image,)
        return VersionHistory(entries=entries, cursor=len(entries) - 1)

    def select(self, index: int) -> "VersionHistory":
        """Return a history with the cursor moved to index (clamped)."""
        if not self.entries:
            return self
        index = max(0, min(index, len(self.entries) - 1))
        return VersionHistory(entries=self.entries, cursor=index)
