from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from .context import BuildContext
from .errors import ConflictError
from .models import ImageReference


class ImageRegistry:
    """Pass-wide source path -> :class:`ImageReference` mapping.

    The first directive seen for a path wins; any later mismatch is
    reported as a conflict and the original entry is kept.
    """

    def __init__(self, context: BuildContext) -> None:
        self.context = context
        self._images: Dict[str, ImageReference] = {}

    def register(self, candidate: ImageReference) -> ImageReference:
        existing = self._images.get(candidate.path)
        if existing is None:
            self._images[candidate.path] = candidate
            return candidate
        if not existing.same_directive(candidate):
            self.context.report_error(
                ConflictError(
                    f"The image {candidate.path} in file {candidate.referenced_from} "
                    f"has different sprite information in file "
                    f"{existing.referenced_from}.",
                    path=candidate.referenced_from,
                )
            )
        return existing

    def get(self, path: str) -> Optional[ImageReference]:
        return self._images.get(path)

    def __iter__(self) -> Iterator[ImageReference]:
        return iter(self._images.values())

    def __len__(self) -> int:
        return len(self._images)

    def sprite_candidates(self) -> List[ImageReference]:
        return [img for img in self._images.values() if img.pack_requested]
