from __future__ import annotations

from io import BytesIO

from pptx.util import Inches

from conftest import png_bytes
from slidemerge.placeholders import ElementKind, element_kind, find_placeholders, list_tokens


def _textbox(shapes, text):
    box = shapes.add_textbox(Inches(1), Inches(1), Inches(2), Inches(1))
    box.text_frame.text = text
    return box


def test_finds_ungrouped_shape_with_itself_as_anchor(blank_slide) -> None:
    box = _textbox(blank_slide.shapes, "Name: {{name}}")
    _textbox(blank_slide.shapes, "no token")

    matches = find_placeholders(blank_slide, "{{name}}")

    assert len(matches) == 1
    assert matches[0].shape.shape_id == box.shape_id
    assert matches[0].anchor_id == box.shape_id


def test_nested_group_match_is_anchored_on_outermost_group(blank_slide) -> None:
    outer = blank_slide.shapes.add_group_shape()
    inner = outer.shapes.add_group_shape()
    child = _textbox(inner.shapes, "{{photo}}")

    matches = find_placeholders(blank_slide, "{{photo}}")

    assert len(matches) == 1
    assert matches[0].shape.shape_id == child.shape_id
    assert matches[0].anchor_id == outer.shape_id


def test_non_text_shapes_are_skipped(blank_slide) -> None:
    picture = blank_slide.shapes.add_picture(BytesIO(png_bytes()), Inches(1), Inches(1))
    assert element_kind(picture) is ElementKind.OTHER
    assert find_placeholders(blank_slide, "{{photo}}") == []


def test_no_match_returns_empty_list(blank_slide) -> None:
    _textbox(blank_slide.shapes, "{{other}}")
    assert find_placeholders(blank_slide, "{{photo}}") == []


def test_list_tokens_reports_fields_in_order(blank_slide) -> None:
    _textbox(blank_slide.shapes, "{{firstName}} from {{city}}")
    group = blank_slide.shapes.add_group_shape()
    _textbox(group.shapes, "{{ photo }} {{city}}")
    assert list_tokens(blank_slide) == ["firstName", "city", "photo"]
