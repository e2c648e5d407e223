from __future__ import annotations

import pytest
from pptx.oxml.ns import qn
from pptx.util import Emu

from slidemerge.geometry import Box, fit, slide_box, slide_rotation
from slidemerge.models import FitMode

BOX = Box(left=100.0, top=200.0, width=400.0, height=300.0)


@pytest.mark.parametrize("native", [(10, 10), (1600, 900), (300, 2000)])
def test_stretch_always_returns_the_box(native) -> None:
    placement = fit(native, BOX, FitMode.STRETCH)
    assert (placement.left, placement.top, placement.width, placement.height) == (100.0, 200.0, 400.0, 300.0)
    assert placement.crop is None


@pytest.mark.parametrize("native", [(1600, 900), (300, 2000), (400, 300)])
def test_contain_keeps_aspect_ratio_and_centers(native) -> None:
    placement = fit(native, BOX, FitMode.CONTAIN)

    assert placement.width / placement.height == pytest.approx(native[0] / native[1])
    assert placement.width <= BOX.width + 1e-9
    assert placement.height <= BOX.height + 1e-9
    # centered: equal margins on both sides
    assert placement.left - BOX.left == pytest.approx(BOX.left + BOX.width - (placement.left + placement.width))
    assert placement.top - BOX.top == pytest.approx(BOX.top + BOX.height - (placement.top + placement.height))


def test_contain_wide_image_fills_width() -> None:
    placement = fit((800, 200), BOX, FitMode.CONTAIN)
    assert placement.width == pytest.approx(400.0)
    assert placement.height == pytest.approx(100.0)
    assert placement.top == pytest.approx(300.0)


@pytest.mark.parametrize("native", [None, (0, 100), (100, 0)])
def test_unknown_native_size_falls_back_to_stretch(native) -> None:
    for policy in (FitMode.CONTAIN, FitMode.COVER):
        placement = fit(native, BOX, policy)
        assert (placement.width, placement.height) == (400.0, 300.0)
        assert placement.crop is None


def test_cover_fills_box_and_crops_the_overflow() -> None:
    # 2:1 image in a 4:3 box: trim the sides
    placement = fit((200, 100), BOX, FitMode.COVER)
    assert (placement.left, placement.top, placement.width, placement.height) == (100.0, 200.0, 400.0, 300.0)
    assert placement.crop is not None
    assert placement.crop.left == pytest.approx(placement.crop.right)
    assert placement.crop.top == 0.0
    visible = 1.0 - placement.crop.left - placement.crop.right
    # visible part of the image has the box's aspect ratio
    assert (200 * visible) / 100 == pytest.approx(BOX.width / BOX.height)


def test_cover_tall_image_trims_top_and_bottom() -> None:
    placement = fit((100, 400), BOX, FitMode.COVER)
    assert placement.crop.top == pytest.approx(placement.crop.bottom)
    assert placement.crop.left == 0.0


def test_cover_same_ratio_needs_no_crop() -> None:
    assert fit((800, 600), BOX, FitMode.COVER).crop is None


def test_slide_box_maps_group_child_coordinates(blank_slide) -> None:
    group = blank_slide.shapes.add_group_shape()
    child = group.shapes.add_textbox(Emu(1000), Emu(2000), Emu(4000), Emu(3000))

    assert slide_box(child) == Box(1000.0, 2000.0, 4000.0, 3000.0)

    # scale the group 2x and move it
    xfrm = group._element.find(f"{qn('p:grpSpPr')}/{qn('a:xfrm')}")
    xfrm.find(qn("a:off")).set("x", "10000")
    xfrm.find(qn("a:off")).set("y", "20000")
    xfrm.find(qn("a:ext")).set("cx", "8000")
    xfrm.find(qn("a:ext")).set("cy", "6000")

    assert slide_box(child) == Box(10000.0, 20000.0, 8000.0, 6000.0)


def test_rotated_group_moves_child_center_and_adds_angle(blank_slide) -> None:
    group = blank_slide.shapes.add_group_shape()
    child = group.shapes.add_textbox(Emu(0), Emu(0), Emu(2000), Emu(1000))
    group.shapes.add_textbox(Emu(4000), Emu(0), Emu(2000), Emu(1000))
    child.rotation = 10.0
    xfrm = group._element.find(f"{qn('p:grpSpPr')}/{qn('a:xfrm')}")
    xfrm.set("rot", str(180 * 60000))

    # group center (3000, 500): the child's center (1000, 500) flips to (5000, 500)
    box = slide_box(child)
    assert box.left == pytest.approx(4000.0)
    assert box.top == pytest.approx(0.0, abs=1e-6)
    assert (box.width, box.height) == (2000.0, 1000.0)
    assert slide_rotation(child) == pytest.approx(190.0)
    assert slide_rotation(group.shapes[1]) == pytest.approx(180.0)
