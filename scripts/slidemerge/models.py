"""Value types shared by the dataset/config providers and the generator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Sequence, Tuple

from .errors import DataError


class ImageSource(str, Enum):
    REFERENCE_ID = "REFERENCE_ID"
    URL = "URL"


class FitMode(str, Enum):
    CONTAIN = "CONTAIN"
    COVER = "COVER"
    STRETCH = "STRETCH"


@dataclass(frozen=True)
class ImageFieldConfig:
    index: int
    field: str
    source: ImageSource = ImageSource.REFERENCE_ID
    fit: FitMode = FitMode.CONTAIN


@dataclass(frozen=True)
class GenerationConfig:
    template: Path
    output_folder: Path
    file_name_pattern: str = "Generated deck {{date}}"
    start_row: int = 2
    template_slide: int = 1
    image_fields: Tuple[ImageFieldConfig, ...] = ()
    select_all: bool = False
    timeout: float = 30.0

    def image_field_names(self) -> set[str]:
        return {f.field for f in self.image_fields}


@dataclass
class Dataset:
    """Headers and selected rows; the selection column is already stripped."""

    headers: List[str]
    rows: List[List[Any]]
    total_rows: int = 0
    selected_rows: int = 0

    def __post_init__(self) -> None:
        width = len(self.headers)
        for idx, row in enumerate(self.rows):
            if len(row) != width:
                raise DataError(f"Row {idx} has {len(row)} cells, expected {width}")


@dataclass(frozen=True)
class PlaceholderMatch:
    shape: Any
    anchor: Any

    @property
    def anchor_id(self) -> int:
        return self.anchor.shape_id


@dataclass(frozen=True)
class GenerationResult:
    file_id: str
    file_name: str
    slides_generated: int
    skipped_rows: Sequence[int] = ()

    def as_dict(self) -> dict:
        return {
            "fileId": self.file_id,
            "fileName": self.file_name,
            "slidesGenerated": self.slides_generated,
        }
