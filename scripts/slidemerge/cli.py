"""CLI orchestration for the deck generator."""

from __future__ import annotations

import argparse
import json
import logging
import traceback
from dataclasses import replace
from pathlib import Path

from pptx import Presentation

from .config import load_config
from .dataset import load_dataset
from .errors import ConfigError, DataError, FetchError
from .generator import SlideGenerator
from .images import ImageResolver, LocalReferenceStore
from .placeholders import list_tokens


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate one slide per data row from a PPTX template")
    parser.add_argument("--config", required=True, help="Path to JSON configuration file")
    parser.add_argument("--data", default=None, help="Path to the data table (.csv, .tsv, .xlsx, .xlsm)")
    parser.add_argument("--template", default=None, help="Override the template .pptx from the config")
    parser.add_argument("--output-dir", default=None, help="Override the output folder from the config")
    parser.add_argument(
        "--assets-dir",
        default=None,
        help="Folder holding REFERENCE_ID images as <id> or <id>.<ext> (default: fetch from Google Drive)",
    )
    parser.add_argument(
        "--select-all",
        action="store_true",
        help="Generate a slide for every data row, ignoring the selection column",
    )
    parser.add_argument(
        "--list-placeholders",
        action="store_true",
        help="Print the {{field}} tokens found on the template slide and exit",
    )
    parser.add_argument("--json", action="store_true", help="Print the run summary as JSON instead of a status line")
    parser.add_argument("--verbose", action="store_true", help="Log per-row and per-field decisions")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show full traceback for unexpected errors",
    )
    return parser


def _configure_logging(verbose: bool) -> logging.Handler:
    """Attach a stderr handler to the package logger for the duration of one run."""
    logger = logging.getLogger("slidemerge")
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return handler


def _print_placeholders(template: Path, slide_number: int) -> None:
    prs = Presentation(str(template))
    if not 1 <= slide_number <= len(prs.slides):
        raise ConfigError([f"template_slide {slide_number} is outside the template's slides (1..{len(prs.slides)})"])
    for name in list_tokens(prs.slides[slide_number - 1]):
        print(name)


def run_cli(argv=None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    handler = _configure_logging(args.verbose)
    try:
        _run(parser, args)
    finally:
        logging.getLogger("slidemerge").removeHandler(handler)


def _run(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    try:
        config = load_config(Path(args.config))
        overrides = {}
        if args.template:
            overrides["template"] = Path(args.template).resolve()
        if args.output_dir:
            overrides["output_folder"] = Path(args.output_dir).resolve()
        if args.select_all:
            overrides["select_all"] = True
        if overrides:
            config = replace(config, **overrides)

        if args.list_placeholders:
            _print_placeholders(config.template, config.template_slide)
            return

        if not args.data:
            parser.error("--data is required unless --list-placeholders is given")

        dataset = load_dataset(Path(args.data), start_row=config.start_row, select_all=config.select_all)

        resolver = None
        if config.image_fields:
            store = LocalReferenceStore(Path(args.assets_dir).resolve()) if args.assets_dir else None
            resolver = ImageResolver(store, timeout=config.timeout)

        result = SlideGenerator(resolver).generate(dataset, config)
        if args.json:
            print(json.dumps(result.as_dict(), ensure_ascii=False))
        else:
            print(f"✅ Deck saved to {result.file_id} ({result.slides_generated} slides)")
    except (ConfigError, DataError, FetchError) as e:
        raise SystemExit(str(e)) from e
    except Exception as e:
        if args.debug:
            traceback.print_exc()
        raise SystemExit(f"Deck generation failed: {e}") from e
