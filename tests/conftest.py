from __future__ import annotations

import sys
from io import BytesIO
from pathlib import Path

import pytest

SCRIPT_DIR = Path(__file__).resolve().parents[1] / "scripts"
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from PIL import Image  # noqa: E402
from pptx import Presentation  # noqa: E402
from pptx.util import Inches  # noqa: E402

BLANK_LAYOUT = 6


def png_bytes(width: int = 40, height: int = 20, color=(200, 30, 30)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


def slide_texts(slide) -> list[str]:
    return [shape.text_frame.text for shape in slide.shapes if getattr(shape, "has_text_frame", False)]


def add_text_slide(prs, texts):
    slide = prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
    for i, text in enumerate(texts):
        box = slide.shapes.add_textbox(Inches(1), Inches(1 + i), Inches(4), Inches(0.8))
        box.text_frame.text = text
    return slide


@pytest.fixture
def build_template(tmp_path: Path):
    """Write a template deck with one slide per list of text-box strings."""

    def _build(slides, name: str = "template.pptx") -> Path:
        prs = Presentation()
        for texts in slides:
            add_text_slide(prs, texts)
        path = tmp_path / name
        prs.save(str(path))
        return path

    return _build


@pytest.fixture
def blank_slide():
    prs = Presentation()
    return prs.slides.add_slide(prs.slide_layouts[BLANK_LAYOUT])
