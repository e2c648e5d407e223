"""SlideGenerator - builds one slide per data row from a template deck.

The generator copies the template, keeps only the blueprint slide, appends a
clone of it for every non-empty row, fills ``{{field}}`` tokens and image
fields, then drops the blueprint and saves the copy once.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional

from .dataset import cell_text, is_empty_row
from .deck import WorkingDeck, copy_template, template_slide_count
from .errors import ConfigError, DataError
from .images import ImageResolver, LocalReferenceStore
from .models import Dataset, GenerationConfig, GenerationResult
from .pictures import apply_image_fields
from .text import replace_tokens

logger = logging.getLogger(__name__)

DATE_TOKEN = "{{date}}"
DATE_FORMAT = "%Y-%m-%d %H:%M"


def format_file_name(pattern: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return pattern.replace(DATE_TOKEN, now.strftime(DATE_FORMAT)).strip()


def row_values(headers: List[str], row: List) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for idx, header in enumerate(headers):
        values[header] = cell_text(row[idx]) if idx < len(row) else ""
    return values


class SlideGenerator:
    """Generate decks against a single working copy per run."""

    def __init__(self, resolver: Optional[ImageResolver] = None):
        self.resolver = resolver

    def _resolver_for(self, config: GenerationConfig) -> Optional[ImageResolver]:
        if not config.image_fields:
            return self.resolver
        if self.resolver is None:
            self.resolver = ImageResolver(timeout=config.timeout)
        return self.resolver

    def _check_inputs(self, dataset: Dataset, config: GenerationConfig) -> None:
        if not dataset.headers:
            raise DataError("No usable headers in the data table")
        slide_count = template_slide_count(config.template)
        if not 1 <= config.template_slide <= slide_count:
            raise ConfigError(
                [f"template_slide {config.template_slide} is outside the template's slides (1..{slide_count})"]
            )
        missing = [f.field for f in config.image_fields if f.field not in dataset.headers]
        if missing:
            logger.warning("Image field(s) not present in the data headers: %s", ", ".join(missing))

    def generate(self, dataset: Dataset, config: GenerationConfig, *, now: Optional[datetime] = None) -> GenerationResult:
        self._check_inputs(dataset, config)
        resolver = self._resolver_for(config)
        if resolver is not None:
            resolver.reset()

        file_name = format_file_name(config.file_name_pattern, now)
        logger.info("Generating '%s' from %s (%d row(s))", file_name, config.template.name, len(dataset.rows))

        output_path = copy_template(config.template, config.output_folder, file_name)
        deck = WorkingDeck(output_path)
        blueprint = deck.slides[config.template_slide - 1]
        deck.keep_only(blueprint)

        image_names = config.image_field_names()
        generated = 0
        skipped: List[int] = []
        for position, row in enumerate(dataset.rows, start=1):
            if is_empty_row(row):
                skipped.append(position)
                logger.debug("Row %d is empty; skipped", position)
                continue
            slide = deck.clone_slide(blueprint)
            values = row_values(dataset.headers, row)
            replace_tokens(slide, values, skip=image_names)
            if config.image_fields:
                apply_image_fields(slide, values, config.image_fields, resolver)
            generated += 1
            logger.debug("Row %d -> slide %d", position, generated)

        deck.remove_slide(blueprint)
        saved = deck.save()

        logger.info("Generated %d slide(s); skipped %d empty row(s)", generated, len(skipped))
        return GenerationResult(
            file_id=str(saved.resolve()),
            file_name=file_name,
            slides_generated=generated,
            skipped_rows=tuple(skipped),
        )


def generate_deck(
    dataset: Dataset,
    config: GenerationConfig,
    *,
    resolver: Optional[ImageResolver] = None,
    assets_dir: Optional[str] = None,
) -> GenerationResult:
    """Programmatic entry point; ``assets_dir`` serves reference ids from local files."""
    if resolver is None and assets_dir:
        resolver = ImageResolver(LocalReferenceStore(assets_dir), timeout=config.timeout)
    return SlideGenerator(resolver).generate(dataset, config)
