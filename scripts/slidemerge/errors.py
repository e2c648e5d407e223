"""Custom exceptions for deck generation config/data/runtime errors."""

from __future__ import annotations

from typing import Iterable, Optional


class SlideMergeError(Exception):
    """Base class for every error raised by the generator."""


class ConfigError(SlideMergeError, ValueError):
    """Raised when the generation config is invalid or does not match the template."""

    def __init__(self, issues: Iterable[str] | str):
        if isinstance(issues, str):
            issues = [issues]
        self.issues = [str(i).strip() for i in issues if str(i).strip()]
        if not self.issues:
            self.issues = ["Invalid configuration"]
        super().__init__(self._format())

    def _format(self) -> str:
        if len(self.issues) == 1:
            return f"Configuration error: {self.issues[0]}"
        lines = ["Configuration validation failed:"]
        for issue in self.issues:
            lines.append(f"- {issue}")
        return "\n".join(lines)


class DataError(SlideMergeError, ValueError):
    """Raised when the data table has no usable headers or no selected rows."""


class FetchError(SlideMergeError):
    """Raised when an image payload cannot be obtained."""

    def __init__(self, message: str, *, field: Optional[str] = None, status: Optional[int] = None):
        self.field = field
        self.status = status
        super().__init__(message)


class PlacementWarning(SlideMergeError):
    """Non-fatal layering/formatting problem; caught, logged and never propagated."""
