from __future__ import annotations

from io import BytesIO

import pytest
from pptx import Presentation
from pptx.util import Inches

from conftest import BLANK_LAYOUT, png_bytes
from slidemerge.errors import PlacementWarning
from slidemerge.zorder import ShapeTreeStack, StackOrder, infer_order, move_behind, place_behind


class ListStack:
    """In-memory stack whose storage order is either back-to-front or front-to-back."""

    def __init__(self, items, order: StackOrder):
        self.items = list(items)
        self.order = order
        self.moves = 0

    def __len__(self) -> int:
        return len(self.items)

    def index_of(self, element) -> int:
        if element not in self.items:
            raise PlacementWarning(f"{element} not found")
        return self.items.index(element)

    def _move(self, element, index: int) -> None:
        self.items.remove(element)
        self.items.insert(index, element)
        self.moves += 1

    def bring_to_front(self, element) -> None:
        self.index_of(element)
        self._move(element, len(self.items) - 1 if self.order is StackOrder.BACK_TO_FRONT else 0)

    def send_to_back(self, element) -> None:
        self.index_of(element)
        self._move(element, 0 if self.order is StackOrder.BACK_TO_FRONT else len(self.items) - 1)

    def send_backward(self, element) -> None:
        idx = self.index_of(element)
        step = -1 if self.order is StackOrder.BACK_TO_FRONT else 1
        target = idx + step
        if 0 <= target < len(self.items):
            self._move(element, target)

    def back_to_front(self):
        return self.items if self.order is StackOrder.BACK_TO_FRONT else list(reversed(self.items))


@pytest.mark.parametrize("order", list(StackOrder))
def test_infer_order_detects_direction(order) -> None:
    stack = ListStack(["a", "b", "c"], order)
    assert infer_order(stack, "b") is order
    assert stack.back_to_front()[-1] == "b"


@pytest.mark.parametrize("order", list(StackOrder))
@pytest.mark.parametrize("anchor", ["bg", "title", "card", "footer"])
def test_move_behind_places_element_directly_behind_anchor(order, anchor) -> None:
    layers = ["bg", "title", "card", "footer"]
    items = layers + ["new"] if order is StackOrder.BACK_TO_FRONT else ["new"] + list(reversed(layers))
    stack = ListStack(items, order)

    assert move_behind(stack, "new", anchor) is True

    final = stack.back_to_front()
    assert final.index("new") == final.index(anchor) - 1
    assert [x for x in final if x != "new"] == layers


def test_move_behind_gives_up_after_step_bound() -> None:
    class StuckStack(ListStack):
        def send_backward(self, element) -> None:
            self.moves += 1

    stack = StuckStack(["a", "anchor", "b", "new"], StackOrder.BACK_TO_FRONT)
    assert move_behind(stack, "new", "anchor", extra_steps=2) is False


def _slide_with_boxes(count: int):
    prs = Presentation()
    slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
    boxes = [slide.shapes.add_textbox(Inches(i), Inches(1), Inches(1), Inches(1)) for i in range(count)]
    return prs, slide, boxes


def _ids(slide):
    return [shape.shape_id for shape in slide.shapes]


def test_place_behind_on_real_shape_tree() -> None:
    _prs, slide, (first, anchor, last) = _slide_with_boxes(3)
    picture = slide.shapes.add_picture(BytesIO(png_bytes()), Inches(1), Inches(1))

    assert place_behind(slide, picture, anchor) is True
    assert _ids(slide) == [first.shape_id, picture.shape_id, anchor.shape_id, last.shape_id]
    assert ShapeTreeStack(slide).index_of(picture._element) == 1


def test_place_behind_backmost_anchor() -> None:
    _prs, slide, (anchor, other) = _slide_with_boxes(2)
    picture = slide.shapes.add_picture(BytesIO(png_bytes()), Inches(1), Inches(1))

    place_behind(slide, picture, anchor)

    assert _ids(slide) == [picture.shape_id, anchor.shape_id, other.shape_id]


def test_place_behind_missing_anchor_keeps_insertion_order() -> None:
    prs, slide, boxes = _slide_with_boxes(2)
    picture = slide.shapes.add_picture(BytesIO(png_bytes()), Inches(1), Inches(1))
    other_slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
    stranger = other_slide.shapes.add_textbox(Inches(1), Inches(1), Inches(1), Inches(1))

    assert place_behind(slide, picture, stranger) is False
    assert _ids(slide)[-1] == picture.shape_id
    assert _ids(slide)[:2] == [b.shape_id for b in boxes]
