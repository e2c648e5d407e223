"""Image geometry fitting against a placeholder's bounding box."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from pptx.oxml.ns import qn

from .models import FitMode


@dataclass(frozen=True)
class Box:
    left: float
    top: float
    width: float
    height: float

    @classmethod
    def of_shape(cls, shape) -> "Box":
        return cls(float(shape.left or 0), float(shape.top or 0), float(shape.width or 0), float(shape.height or 0))


@dataclass(frozen=True)
class Crop:
    """Fractions (0..1) trimmed from each edge of the source image."""

    left: float = 0.0
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0

    def is_empty(self) -> bool:
        return not any((self.left, self.top, self.right, self.bottom))


@dataclass(frozen=True)
class Placement:
    left: float
    top: float
    width: float
    height: float
    crop: Optional[Crop] = None

    def as_emu(self) -> Tuple[int, int, int, int]:
        return int(round(self.left)), int(round(self.top)), int(round(self.width)), int(round(self.height))


def _stretch(box: Box) -> Placement:
    return Placement(box.left, box.top, box.width, box.height)


def _known(native_size: Optional[Tuple[float, float]]) -> bool:
    if not native_size:
        return False
    width, height = native_size
    return bool(width) and bool(height) and width > 0 and height > 0


def cover_crop(native_size: Tuple[float, float], box: Box) -> Crop:
    """Crop needed so the image, scaled to cover the box, loses no aspect ratio."""
    native_w, native_h = (float(v) for v in native_size)
    if box.width <= 0 or box.height <= 0:
        return Crop()
    image_ratio = native_w / native_h
    box_ratio = box.width / box.height
    if image_ratio > box_ratio:
        # wider than the box: trim left and right
        frac = 1.0 - box_ratio / image_ratio
        return Crop(left=frac / 2.0, right=frac / 2.0)
    if image_ratio < box_ratio:
        frac = 1.0 - image_ratio / box_ratio
        return Crop(top=frac / 2.0, bottom=frac / 2.0)
    return Crop()


def fit(native_size: Optional[Tuple[float, float]], box: Box, policy: FitMode) -> Placement:
    """Compute the final position/size of an image for ``box`` under ``policy``.

    STRETCH fills the box exactly. CONTAIN scales uniformly so the whole image
    is visible and centers it. COVER fills the box and returns the crop that
    keeps the native aspect ratio. Unknown native size degrades to STRETCH.
    """
    policy = FitMode(policy)
    if policy is FitMode.STRETCH or not _known(native_size):
        return _stretch(box)

    native_w, native_h = (float(v) for v in native_size)  # type: ignore[union-attr]

    if policy is FitMode.CONTAIN:
        if box.width <= 0 or box.height <= 0:
            return _stretch(box)
        scale = min(box.width / native_w, box.height / native_h)
        width = native_w * scale
        height = native_h * scale
        return Placement(
            left=box.left + (box.width - width) / 2.0,
            top=box.top + (box.height - height) / 2.0,
            width=width,
            height=height,
        )

    crop = cover_crop((native_w, native_h), box)
    return Placement(box.left, box.top, box.width, box.height, crop=None if crop.is_empty() else crop)


def _xfrm_values(xfrm, tag: str, keys: Tuple[str, str]) -> Optional[Tuple[float, float]]:
    node = xfrm.find(qn(tag))
    if node is None:
        return None
    return float(node.get(keys[0], 0)), float(node.get(keys[1], 0))


def _group_rotation(xfrm) -> float:
    return float(xfrm.get("rot", 0)) / 60000.0


def _rotate_about(box: Box, cx: float, cy: float, degrees: float) -> Box:
    # slide y grows downward, so a positive angle turns clockwise on screen
    rad = math.radians(degrees)
    dx = box.left + box.width / 2.0 - cx
    dy = box.top + box.height / 2.0 - cy
    new_cx = cx + dx * math.cos(rad) - dy * math.sin(rad)
    new_cy = cy + dx * math.sin(rad) + dy * math.cos(rad)
    return Box(new_cx - box.width / 2.0, new_cy - box.height / 2.0, box.width, box.height)


def _enclosing_group_xfrms(shape):
    parent = shape._element.getparent()
    while parent is not None and parent.tag == qn("p:grpSp"):
        xfrm = parent.find(f"{qn('p:grpSpPr')}/{qn('a:xfrm')}")
        if xfrm is not None:
            yield xfrm
        parent = parent.getparent()


def slide_box(shape) -> Box:
    """Bounding box of ``shape`` in slide coordinates, mapping through enclosing groups.

    The box is unrotated; rotated groups move its center, and the angle is
    reported separately by ``slide_rotation``.
    """
    box = Box.of_shape(shape)
    for xfrm in _enclosing_group_xfrms(shape):
        off = _xfrm_values(xfrm, "a:off", ("x", "y"))
        ext = _xfrm_values(xfrm, "a:ext", ("cx", "cy"))
        ch_off = _xfrm_values(xfrm, "a:chOff", ("x", "y"))
        ch_ext = _xfrm_values(xfrm, "a:chExt", ("cx", "cy"))
        if not (off and ext and ch_off and ch_ext):
            continue
        sx = ext[0] / ch_ext[0] if ch_ext[0] else 1.0
        sy = ext[1] / ch_ext[1] if ch_ext[1] else 1.0
        box = Box(
            left=off[0] + (box.left - ch_off[0]) * sx,
            top=off[1] + (box.top - ch_off[1]) * sy,
            width=box.width * sx,
            height=box.height * sy,
        )
        rotation = _group_rotation(xfrm)
        if rotation:
            box = _rotate_about(box, off[0] + ext[0] / 2.0, off[1] + ext[1] / 2.0, rotation)
    return box


def slide_rotation(shape) -> float:
    """Clockwise rotation of ``shape`` on the slide, including its enclosing groups."""
    rotation = float(getattr(shape, "rotation", 0.0) or 0.0)
    for xfrm in _enclosing_group_xfrms(shape):
        rotation += _group_rotation(xfrm)
    return rotation % 360.0
