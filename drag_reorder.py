from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from draft import WorkoutDraft


@dataclass(frozen=True)
class Rect:
    """Vertical extent of a list row, relative to its container."""

    top: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def midpoint(self) -> float:
        return self.top + self.height / 2


@dataclass
class DragState:
    pointer_id: int
    key: str
    original_index: int
    height: float
    offset_y: float
    placeholder_index: int
    top: float


class DragReorderController:
    """Pointer driven reordering of draft entries.

    Rows are described by ``(key, Rect)`` pairs in display order. While a row
    is dragged the remaining rows are laid out again around a placeholder of
    the dragged row's height, and the placeholder moves in front of the first
    row whose midpoint lies below the pointer.
    """

    def __init__(self, draft: WorkoutDraft) -> None:
        self.draft = draft
        self.state: Optional[DragState] = None
        self._keys: List[str] = []
        self._heights: dict[str, float] = {}
        self._origin = 0.0
        self._gap = 0.0

    @property
    def active(self) -> bool:
        return self.state is not None

    def start(
        self,
        pointer_id: int,
        pointer_y: float,
        items: Sequence[Tuple[str, Rect]],
        dragged_key: str,
    ) -> bool:
        if self.state is not None or len(items) <= 1:
            return False
        keys = [str(k) for k, _ in items]
        if str(dragged_key) not in keys:
            return False
        rects = [r for _, r in items]
        index = keys.index(str(dragged_key))
        self._keys = keys
        self._heights = {k: r.height for k, r in items}
        self._origin = min(r.top for r in rects)
        gaps = [
            max(0.0, rects[i + 1].top - rects[i].bottom) for i in range(len(rects) - 1)
        ]
        self._gap = sum(gaps) / len(gaps) if gaps else 0.0
        rect = rects[index]
        self.state = DragState(
            pointer_id=pointer_id,
            key=str(dragged_key),
            original_index=index,
            height=rect.height,
            offset_y=pointer_y - rect.top,
            placeholder_index=index,
            top=rect.top,
        )
        logger.debug("drag start key={} index={}", dragged_key, index)
        return True

    def _others(self) -> List[str]:
        return [k for k in self._keys if k != self.state.key]

    def _content_height(self) -> float:
        heights = list(self._heights.values())
        return sum(heights) + self._gap * max(0, len(heights) - 1)

    def layout(self) -> List[Tuple[str, Rect]]:
        """Rects of the non-dragged rows with the placeholder in place."""
        if self.state is None:
            return []
        result: List[Tuple[str, Rect]] = []
        y = self._origin
        for pos, key in enumerate(self._others()):
            if pos == self.state.placeholder_index:
                y += self.state.height + self._gap
            height = self._heights[key]
            result.append((key, Rect(y, height)))
            y += height + self._gap
        return result

    def insertion_index(self, pointer_y: float) -> int:
        rows = self.layout()
        for pos, (_key, rect) in enumerate(rows):
            if pointer_y < rect.midpoint:
                return pos
        return len(rows)

    def move(self, pointer_id: int, pointer_y: float) -> Optional[int]:
        if self.state is None or pointer_id != self.state.pointer_id:
            return None
        raw_top = pointer_y - self.state.offset_y - self._origin
        max_top = max(0.0, self._content_height() - self.state.height)
        self.state.top = self._origin + max(0.0, min(raw_top, max_top))
        self.state.placeholder_index = self.insertion_index(pointer_y)
        return self.state.placeholder_index

    def preview_order(self) -> List[str]:
        if self.state is None:
            return self.draft.keys()
        order = self._others()
        order.insert(self.state.placeholder_index, self.state.key)
        return order

    def release(self, pointer_id: int) -> Optional[List[str]]:
        if self.state is None or pointer_id != self.state.pointer_id:
            return None
        order = self.preview_order()
        self.draft.reorder(order)
        logger.debug(
            "drag release key={} from={} to={}",
            self.state.key,
            self.state.original_index,
            self.state.placeholder_index,
        )
        self.state = None
        return self.draft.keys()

    def cancel(self, pointer_id: int) -> bool:
        if self.state is None or pointer_id != self.state.pointer_id:
            return False
        logger.debug("drag cancelled key={}", self.state.key)
        self.state = None
        return True
