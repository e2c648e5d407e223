"""Run-preserving token replacement inside python-pptx text frames."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List

from .placeholders import ElementKind, token_for, walk_shapes

logger = logging.getLogger(__name__)

ZERO_WIDTH_SPACE = "\u200b"


def _occurrences(text: str, token: str) -> List[int]:
    positions = []
    start = text.find(token)
    while start != -1:
        positions.append(start)
        start = text.find(token, start + len(token))
    return positions


def _drop_run(run) -> None:
    r = run._r
    r.getparent().remove(r)


def replace_in_paragraph(paragraph, token: str, value: str) -> int:
    """Replace ``token`` by ``value`` in one paragraph, keeping each run's formatting.

    A token split across runs is rewritten into the run where it starts; the
    runs it spilled into lose only the token's characters.
    """
    if not token:
        return 0
    runs = list(paragraph.runs)
    if not runs:
        return 0
    positions = _occurrences("".join(r.text for r in runs), token)
    if not positions:
        return 0

    emptied = []
    # right to left so earlier offsets stay valid
    for start in reversed(positions):
        end = start + len(token)
        offset = 0
        first = True
        for run in runs:
            text = run.text
            run_start, run_end = offset, offset + len(text)
            offset = run_end
            if run_end <= start or run_start >= end:
                continue
            head = text[: max(0, start - run_start)]
            tail = text[max(0, end - run_start):] if end < run_end else ""
            if first:
                run.text = head + value + tail
                first = False
            else:
                run.text = tail
                if not tail:
                    emptied.append(run)
    for run in emptied:
        if run.text == "":
            _drop_run(run)
    return len(positions)


def replace_in_text_frame(text_frame, token: str, value: str) -> int:
    return sum(replace_in_paragraph(p, token, value) for p in text_frame.paragraphs)


def iter_text_frames(shapes) -> Iterator[Any]:
    for shape, _anchor, kind in walk_shapes(shapes):
        if kind is ElementKind.SHAPE:
            yield shape.text_frame
        elif kind is ElementKind.TABLE:
            for row in shape.table.rows:
                for cell in row.cells:
                    yield cell.text_frame


def replace_tokens(slide, values: Dict[str, str], *, skip: Iterable[str] = ()) -> int:
    """Substitute ``{{field}}`` for every field in ``values`` except those in ``skip``."""
    skipped = set(skip)
    frames = list(iter_text_frames(slide.shapes))
    count = 0
    for field, value in values.items():
        if field in skipped:
            continue
        token = token_for(field)
        for text_frame in frames:
            count += replace_in_text_frame(text_frame, token, value)
    return count


def strip_token(shape, token: str) -> None:
    """Remove ``token`` from the shape's text without touching surrounding formatting.

    A shape left blank gets a single zero-width space so autofit does not
    collapse it; repeated calls never add a second one.
    """
    text_frame = shape.text_frame
    replace_in_text_frame(text_frame, token, "")
    if text_frame.text.strip():
        return

    target = None
    for paragraph in text_frame.paragraphs:
        if paragraph.runs:
            target = paragraph.runs[-1]
    if target is None:
        target = text_frame.paragraphs[0].add_run()
    target.text = target.text + ZERO_WIDTH_SPACE
    logger.debug("Shape %s left empty after removing %s; kept a zero-width marker", shape.shape_id, token)
