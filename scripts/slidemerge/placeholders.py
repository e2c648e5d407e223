"""Group-aware search for text shapes carrying ``{{field}}`` tokens."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Iterator, List, Tuple

from pptx.enum.shapes import MSO_SHAPE_TYPE

from .models import PlaceholderMatch

TOKEN_RE = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")


class ElementKind(Enum):
    SHAPE = "shape"
    GROUP = "group"
    TABLE = "table"
    OTHER = "other"


def token_for(field: str) -> str:
    return "{{" + field + "}}"


def element_kind(shape: Any) -> ElementKind:
    """Classify a slide element by capability, not by catching text access errors."""
    if getattr(shape, "shape_type", None) == MSO_SHAPE_TYPE.GROUP and hasattr(shape, "shapes"):
        return ElementKind.GROUP
    if getattr(shape, "has_text_frame", False):
        return ElementKind.SHAPE
    if getattr(shape, "has_table", False):
        return ElementKind.TABLE
    return ElementKind.OTHER


def walk_shapes(shapes, anchor: Any = None) -> Iterator[Tuple[Any, Any, ElementKind]]:
    """Yield ``(leaf, top_level_anchor, kind)`` for every non-group element, depth first."""
    for shape in shapes:
        top = anchor if anchor is not None else shape
        kind = element_kind(shape)
        if kind is ElementKind.GROUP:
            yield from walk_shapes(shape.shapes, top)
            continue
        yield shape, top, kind


def find_placeholders(slide, token: str) -> List[PlaceholderMatch]:
    """Return every text shape on ``slide`` whose text contains ``token``.

    Groups are searched recursively; each match carries its outermost group (or
    the shape itself when ungrouped) as the layering anchor.
    """
    matches: List[PlaceholderMatch] = []
    for shape, anchor, kind in walk_shapes(slide.shapes):
        if kind is not ElementKind.SHAPE:
            continue
        if token in shape.text_frame.text:
            matches.append(PlaceholderMatch(shape=shape, anchor=anchor))
    return matches


def list_tokens(slide) -> List[str]:
    """Field names referenced on ``slide`` (text shapes and table cells), in first-seen order."""
    seen: List[str] = []
    for shape, _anchor, kind in walk_shapes(slide.shapes):
        texts: List[str] = []
        if kind is ElementKind.SHAPE:
            texts.append(shape.text_frame.text)
        elif kind is ElementKind.TABLE:
            for row in shape.table.rows:
                texts.extend(cell.text_frame.text for cell in row.cells)
        for text in texts:
            for name in TOKEN_RE.findall(text):
                if name not in seen:
                    seen.append(name)
    return seen
