"""Generate a slide per spreadsheet row from a PPTX template."""

from .cli import run_cli
from .config import load_config, parse_config
from .dataset import build_dataset, load_dataset
from .errors import ConfigError, DataError, FetchError, PlacementWarning, SlideMergeError
from .generator import SlideGenerator, generate_deck
from .geometry import Box, Placement, fit
from .images import ImageResolver, LocalReferenceStore, extract_reference_id
from .models import (
    Dataset,
    FitMode,
    GenerationConfig,
    GenerationResult,
    ImageFieldConfig,
    ImageSource,
    PlaceholderMatch,
)
from .placeholders import find_placeholders
from .text import strip_token
from .zorder import place_behind

__all__ = [
    "Box",
    "ConfigError",
    "DataError",
    "Dataset",
    "FetchError",
    "FitMode",
    "GenerationConfig",
    "GenerationResult",
    "ImageFieldConfig",
    "ImageResolver",
    "ImageSource",
    "LocalReferenceStore",
    "Placement",
    "PlaceholderMatch",
    "PlacementWarning",
    "SlideGenerator",
    "SlideMergeError",
    "build_dataset",
    "extract_reference_id",
    "find_placeholders",
    "fit",
    "generate_deck",
    "load_config",
    "load_dataset",
    "parse_config",
    "place_behind",
    "run_cli",
    "strip_token",
]
