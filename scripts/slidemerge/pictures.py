"""Swap image-field placeholders on a generated slide for fetched pictures."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from pptx.exc import PythonPptxError

from .errors import FetchError
from .geometry import fit, slide_box, slide_rotation
from .images import ImagePayload, ImageResolver
from .models import FitMode, ImageFieldConfig, PlaceholderMatch
from .placeholders import find_placeholders, token_for
from .text import strip_token
from .zorder import place_behind

logger = logging.getLogger(__name__)


def _apply_crop(picture, placement) -> None:
    crop = placement.crop
    if crop is None:
        return
    try:
        picture.crop_left = crop.left
        picture.crop_right = crop.right
        picture.crop_top = crop.top
        picture.crop_bottom = crop.bottom
    except (AttributeError, ValueError) as exc:
        logger.warning("Crop not supported for picture %s (%s); keeping stretched image", picture.shape_id, exc)
        for side in ("crop_left", "crop_right", "crop_top", "crop_bottom"):
            setattr(picture, side, 0.0)


def insert_picture(slide, match: PlaceholderMatch, payload: ImagePayload, policy: FitMode, *, field: str = ""):
    """Insert ``payload`` over ``match.shape``, fitted, rotated and layered behind its anchor."""
    shape = match.shape
    box = slide_box(shape)
    rotation = slide_rotation(shape)

    placement = fit(payload.size, box, policy)
    left, top, width, height = placement.as_emu()
    try:
        picture = slide.shapes.add_picture(payload.stream(), left, top, width=width, height=height)
    except (PythonPptxError, ValueError, OSError) as exc:
        raise FetchError(f"Field '{field}': image format is not supported ({exc})", field=field) from exc
    _apply_crop(picture, placement)
    # rotation last so the fit is computed on the unrotated box
    if rotation:
        picture.rotation = rotation

    place_behind(slide, picture, match.anchor)
    return picture


def apply_image_fields(
    slide,
    values: Dict[str, str],
    image_fields: Iterable[ImageFieldConfig],
    resolver: Optional[ImageResolver],
) -> int:
    """Apply every configured image field to ``slide``; returns the number of pictures inserted."""
    inserted = 0
    for image_field in image_fields:
        token = token_for(image_field.field)
        matches = find_placeholders(slide, token)
        if not matches:
            logger.debug("No %s placeholder on slide %s", token, slide.slide_id)
            continue

        raw_value = str(values.get(image_field.field, "") or "").strip()
        if not raw_value:
            for match in matches:
                strip_token(match.shape, token)
            continue

        if resolver is None:
            raise FetchError(f"Field '{image_field.field}': no image resolver configured", field=image_field.field)
        payload = resolver.resolve(image_field.source, raw_value, field=image_field.field)
        for match in matches:
            insert_picture(slide, match, payload, image_field.fit, field=image_field.field)
            strip_token(match.shape, token)
            inserted += 1
    return inserted
