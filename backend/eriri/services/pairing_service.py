"""
Eriri Page Pairing Service - two-page spreads for comic reading

Pairs are anchored on their left page: whether index i is shown together with
i + 1 depends only on those two images, never on the parity of i.
"""
import logging
from typing import List, Optional, Sequence
from eriri.core.config import settings
from eriri.models.comic import ImageInfo
from eriri.models.reader import ViewMode

logger = logging.getLogger(__name__)

def can_pair(
    img_a: ImageInfo,
    img_b: Optional[ImageInfo],
    container_width: float,
    container_height: float,
    tolerance: float = settings.PAIRING_TOLERANCE,
) -> bool:
    """
    Check whether two images fit side by side when both fill the container height
    Args:
        img_a: Left image
        img_b: Right image, None past the last page
        container_width: Width of the reading area
        container_height: Height of the reading area
        tolerance: Rounding slack added to the container width
    Returns:
        True if the scaled widths fit the container width
    """
    if img_b is None: return False
    if container_width <= 0 or container_height <= 0: return False
    if img_a.height <= 0 or img_b.height <= 0: return False

    scaled_a = img_a.width / img_a.height * container_height
    scaled_b = img_b.width / img_b.height * container_height

    return scaled_a + scaled_b <= container_width + tolerance

class PagePairingEngine:
    """Navigation over an image list in single or double page mode"""

    def __init__(
        self,
        images: Sequence[ImageInfo],
        view_mode: ViewMode = ViewMode.SINGLE,
        container_width: float = 0,
        container_height: float = 0,
        tolerance: float = settings.PAIRING_TOLERANCE,
    ):
        self.images = list(images)
        self.view_mode = view_mode
        self.container_width = container_width
        self.container_height = container_height
        self.tolerance = tolerance

    def set_layout(self, view_mode: ViewMode, container_width: float, container_height: float) -> None:
        self.view_mode = view_mode
        self.container_width = container_width
        self.container_height = container_height

    @property
    def last_index(self) -> int:
        return max(0, len(self.images) - 1)

    def pairs_at(self, index: int) -> bool:
        """Whether index is the left page of a spread"""
        if self.view_mode == ViewMode.SINGLE: return False
        if index < 0 or index + 1 >= len(self.images): return False
        return can_pair(
            self.images[index], self.images[index + 1],
            self.container_width, self.container_height, self.tolerance,
        )

    def visible_indices(self, index: int) -> List[int]:
        if index < 0 or index >= len(self.images): return []
        if self.pairs_at(index): return [index, index + 1]
        return [index]

    def jump_to(self, index: int) -> int:
        return max(0, min(index, self.last_index))

    def next(self, current_index: int) -> int:
        current = self.jump_to(current_index)
        step = 2 if self.pairs_at(current) else 1
        return min(current + step, self.last_index)

    def prev(self, current_index: int) -> int:
        current = self.jump_to(current_index)
        if current <= 0: return 0

        # step back 2 only when current - 2 would have advanced straight to current
        if self.pairs_at(current - 2): return current - 2
        return current - 1
