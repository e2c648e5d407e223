"""Place an inserted element directly behind an anchor in a slide's stacking order.

The shape tree only offers front/back/one-step moves, so the list direction
is probed first and the element is then walked backwards one step at a time.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, List, Protocol

from pptx.oxml.ns import qn

from .errors import PlacementWarning

logger = logging.getLogger(__name__)

# Extra iterations allowed on top of the stack length before giving up.
MAX_EXTRA_STEPS = 5

_SHAPE_TAGS = {
    qn("p:sp"),
    qn("p:grpSp"),
    qn("p:graphicFrame"),
    qn("p:cxnSp"),
    qn("p:pic"),
    qn("p:contentPart"),
}


class StackOrder(Enum):
    BACK_TO_FRONT = "back_to_front"
    FRONT_TO_BACK = "front_to_back"


class ElementStack(Protocol):
    def __len__(self) -> int: ...

    def index_of(self, element: Any) -> int: ...

    def bring_to_front(self, element: Any) -> None: ...

    def send_to_back(self, element: Any) -> None: ...

    def send_backward(self, element: Any) -> None: ...


class ShapeTreeStack:
    """``ElementStack`` over the top-level children of a slide's ``p:spTree``."""

    def __init__(self, slide):
        self._tree = slide.shapes._spTree

    def _elements(self) -> List[Any]:
        return [child for child in self._tree if child.tag in _SHAPE_TAGS]

    def __len__(self) -> int:
        return len(self._elements())

    def index_of(self, element: Any) -> int:
        elements = self._elements()
        for idx, candidate in enumerate(elements):
            if candidate is element:
                return idx
        raise PlacementWarning("element is not a top-level member of the shape tree")

    def bring_to_front(self, element: Any) -> None:
        self.index_of(element)
        self._tree.remove(element)
        self._tree.insert_element_before(element, "p:extLst")

    def send_to_back(self, element: Any) -> None:
        self.index_of(element)
        first = self._elements()[0]
        if first is element:
            return
        first.addprevious(element)

    def send_backward(self, element: Any) -> None:
        idx = self.index_of(element)
        if idx == 0:
            return
        self._elements()[idx - 1].addprevious(element)


def infer_order(stack: ElementStack, reference: Any) -> StackOrder:
    """Probe which end of ``stack`` is the front, leaving ``reference`` in front."""
    stack.bring_to_front(reference)
    front_index = stack.index_of(reference)
    stack.send_to_back(reference)
    back_index = stack.index_of(reference)
    stack.bring_to_front(reference)
    if front_index > back_index:
        return StackOrder.BACK_TO_FRONT
    return StackOrder.FRONT_TO_BACK


def _desired_index(order: StackOrder, anchor_index: int, size: int) -> int:
    if order is StackOrder.BACK_TO_FRONT:
        wanted = anchor_index - 1
    else:
        wanted = anchor_index + 1
    return max(0, min(size - 1, wanted))


def move_behind(stack: ElementStack, element: Any, anchor: Any, *, extra_steps: int = MAX_EXTRA_STEPS) -> bool:
    """Walk ``element`` backwards until it sits right behind ``anchor``.

    Returns False when the step bound runs out first. The bound only stops a
    runaway loop; it does not prove the final position.
    """
    order = infer_order(stack, element)
    stack.bring_to_front(element)
    limit = len(stack) + extra_steps
    for _ in range(limit):
        current = stack.index_of(element)
        desired = _desired_index(order, stack.index_of(anchor), len(stack))
        if current == desired:
            return True
        stack.send_backward(element)
    logger.warning("Gave up placing element behind its anchor after %d steps", limit)
    return False


def place_behind(slide, new_shape, anchor_shape, *, extra_steps: int = MAX_EXTRA_STEPS) -> bool:
    """Layer ``new_shape`` immediately behind ``anchor_shape`` on ``slide``.

    Lookup failures are logged and leave the shape where it was inserted.
    """
    if anchor_shape is None:
        return False
    stack = ShapeTreeStack(slide)
    try:
        placed = move_behind(stack, new_shape._element, anchor_shape._element, extra_steps=extra_steps)
    except PlacementWarning as exc:
        logger.warning("Could not layer picture %s behind shape %s: %s", new_shape.shape_id, anchor_shape.shape_id, exc)
        return False
    logger.debug("Picture %s layered behind shape %s", new_shape.shape_id, anchor_shape.shape_id)
    return placed
