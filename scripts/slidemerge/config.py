"""Config validation for the deck generator JSON input."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import ConfigError
from .models import FitMode, GenerationConfig, ImageFieldConfig, ImageSource

DEFAULT_FILE_NAME = "Generated deck {{date}}"

_SOURCE_ALIASES = {
    "reference_id": ImageSource.REFERENCE_ID,
    "reference": ImageSource.REFERENCE_ID,
    "drive": ImageSource.REFERENCE_ID,
    "id": ImageSource.REFERENCE_ID,
    "url": ImageSource.URL,
}


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _resolve_path(value: str, base_dir: Optional[Path]) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute() and base_dir is not None:
        path = base_dir / path
    return path


def _parse_source(value: Any) -> Optional[ImageSource]:
    if value is None:
        return ImageSource.REFERENCE_ID
    return _SOURCE_ALIASES.get(str(value).strip().lower())


def _parse_fit(value: Any) -> Optional[FitMode]:
    if value is None:
        return FitMode.CONTAIN
    try:
        return FitMode(str(value).strip().upper())
    except ValueError:
        return None


def _check_images(images: Any, issues: List[str]) -> List[ImageFieldConfig]:
    if images is None:
        return []
    if not isinstance(images, list):
        issues.append("images must be a list when provided")
        return []

    out: List[ImageFieldConfig] = []
    seen = set()
    for idx, item in enumerate(images):
        prefix = f"images[{idx}]"
        if not isinstance(item, dict):
            issues.append(f"{prefix} must be an object with field, source and fit")
            continue
        field = item.get("field")
        if not _is_non_empty_str(field):
            issues.append(f"{prefix}.field is required and must be a non-empty string")
            continue
        field = field.strip()
        if field in seen:
            issues.append(f"{prefix}.field '{field}' is declared more than once")
            continue
        seen.add(field)

        source = _parse_source(item.get("source"))
        if source is None:
            issues.append(f"{prefix}.source '{item.get('source')}' is unsupported (supported: REFERENCE_ID, URL)")
        fit = _parse_fit(item.get("fit"))
        if fit is None:
            issues.append(f"{prefix}.fit '{item.get('fit')}' is unsupported (supported: CONTAIN, COVER, STRETCH)")
        if source is not None and fit is not None:
            out.append(ImageFieldConfig(index=len(out) + 1, field=field, source=source, fit=fit))
    return out


def parse_config(config: Dict[str, Any], *, base_dir: Optional[Path] = None) -> GenerationConfig:
    """Validate a config dict and return a ``GenerationConfig``."""
    if not isinstance(config, dict):
        raise ConfigError(["Root JSON value must be an object"])

    issues: List[str] = []

    for key in ("template", "output_folder"):
        if not _is_non_empty_str(config.get(key)):
            issues.append(f"{key} is required and must be a non-empty string")

    file_name = config.get("file_name", DEFAULT_FILE_NAME)
    if not _is_non_empty_str(file_name):
        issues.append("file_name must be a non-empty string when provided")

    start_row = config.get("start_row", 2)
    if not _is_int(start_row) or start_row < 2:
        issues.append("start_row must be an integer >= 2")

    template_slide = config.get("template_slide", 1)
    if not _is_int(template_slide) or template_slide < 1:
        issues.append("template_slide must be an integer >= 1")

    select_all = config.get("select_all", False)
    if not isinstance(select_all, bool):
        issues.append("select_all must be a boolean when provided")

    timeout = config.get("timeout", 30)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        issues.append("timeout must be a positive number of seconds")

    image_fields = _check_images(config.get("images"), issues)

    if issues:
        raise ConfigError(issues)

    return GenerationConfig(
        template=_resolve_path(config["template"].strip(), base_dir),
        output_folder=_resolve_path(config["output_folder"].strip(), base_dir),
        file_name_pattern=file_name,
        start_row=start_row,
        template_slide=template_slide,
        image_fields=tuple(image_fields),
        select_all=select_all,
        timeout=float(timeout),
    )


def load_config(config_path: Path | str) -> GenerationConfig:
    """Load and validate a JSON config file; relative paths resolve against its folder."""
    config_path = Path(config_path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError([f"Config file not found: {config_path}"]) from exc

    try:
        data: Dict[str, Any] = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError([f"Invalid JSON at line {exc.lineno}, column {exc.colno}: {exc.msg}"]) from exc

    return parse_config(data, base_dir=config_path.resolve().parent)
