"""Obtain image bytes for image fields from a URL or a storage reference."""

from __future__ import annotations

import glob
import logging
import re
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Dict, Optional, Protocol, Tuple

import requests
from PIL import Image, UnidentifiedImageError

from .errors import FetchError
from .models import ImageSource

logger = logging.getLogger(__name__)

DRIVE_DOWNLOAD_URL = "https://drive.google.com/uc"
USER_AGENT = "slidemerge/1.0"

_REFERENCE_PATTERNS = (
    re.compile(r"/d/([A-Za-z0-9_-]+)"),
    re.compile(r"[?&]id=([A-Za-z0-9_-]+)"),
    re.compile(r"^([A-Za-z0-9_-]{20,})$"),
)


def extract_reference_id(raw_value: str) -> str:
    """Pull a storage id out of a share link, or return the value unchanged."""
    value = str(raw_value or "").strip()
    for pattern in _REFERENCE_PATTERNS:
        match = pattern.search(value)
        if match:
            return match.group(1)
    return value


def native_size(payload: bytes) -> Optional[Tuple[int, int]]:
    """Pixel size of an image payload, or None when Pillow cannot read it."""
    try:
        with Image.open(BytesIO(payload)) as im:
            width, height = im.size
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        logger.warning("Could not read native image size (%s); falling back to stretch", exc)
        return None
    if width <= 0 or height <= 0:
        return None
    return width, height


@dataclass(frozen=True)
class ImagePayload:
    content: bytes
    size: Optional[Tuple[int, int]]

    @classmethod
    def from_bytes(cls, content: bytes) -> "ImagePayload":
        return cls(content=content, size=native_size(content))

    def stream(self) -> BytesIO:
        return BytesIO(self.content)


class ReferenceStore(Protocol):
    def fetch(self, identifier: str) -> bytes: ...


class LocalReferenceStore:
    """Reference ids mapped to files ``<root>/<id>`` or ``<root>/<id>.<ext>``."""

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def fetch(self, identifier: str) -> bytes:
        if not self.root.is_dir():
            raise FetchError(f"Image folder not found: {self.root}")
        candidate = self.root / identifier
        if identifier and candidate.is_file():
            return candidate.read_bytes()
        for path in sorted(self.root.glob(f"{glob.escape(identifier)}.*")):
            if path.is_file():
                return path.read_bytes()
        raise FetchError(f"No stored file for reference '{identifier}' in {self.root}")


class DriveReferenceStore:
    """Fetch publicly shared Google Drive files through the download endpoint."""

    def __init__(self, session: Optional[requests.Session] = None, *, timeout: float = 30.0):
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self, identifier: str) -> bytes:
        params = {"export": "download", "id": identifier}
        try:
            resp = self.session.get(DRIVE_DOWNLOAD_URL, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FetchError(f"Could not reach storage for reference '{identifier}': {exc}") from exc
        if not 200 <= resp.status_code < 300:
            raise FetchError(
                f"Reference '{identifier}' does not exist or is not accessible (HTTP {resp.status_code})",
                status=resp.status_code,
            )
        content_type = resp.headers.get("Content-Type", "")
        if content_type.startswith("text/html"):
            # Drive serves a sign-in or virus-scan page instead of the file.
            raise FetchError(f"Reference '{identifier}' is not publicly downloadable")
        return resp.content


class ImageResolver:
    """Resolve ``(source, raw value)`` pairs to image payloads, caching per run."""

    def __init__(
        self,
        reference_store: Optional[ReferenceStore] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ):
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        self.timeout = timeout
        self.reference_store = reference_store or DriveReferenceStore(self.session, timeout=timeout)
        self._cache: Dict[Tuple[ImageSource, str], ImagePayload] = {}

    def reset(self) -> None:
        """Forget payloads fetched by an earlier run."""
        self._cache.clear()

    def resolve(self, source: ImageSource, raw_value: str, *, field: Optional[str] = None) -> ImagePayload:
        source = ImageSource(source)
        value = str(raw_value or "").strip()
        key = (source, value)
        if key in self._cache:
            return self._cache[key]

        if source is ImageSource.URL:
            content = self._fetch_url(value, field=field)
        else:
            identifier = extract_reference_id(value)
            try:
                content = self.reference_store.fetch(identifier)
            except FetchError as exc:
                if exc.field is None and field is not None:
                    raise FetchError(f"Field '{field}': {exc}", field=field, status=exc.status) from exc
                raise

        payload = ImagePayload.from_bytes(content)
        self._cache[key] = payload
        return payload

    def _fetch_url(self, url: str, *, field: Optional[str]) -> bytes:
        label = field or "image"
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FetchError(f"Field '{label}': could not fetch {url}: {exc}", field=field) from exc
        if not 200 <= resp.status_code < 300:
            raise FetchError(
                f"Field '{label}': fetching {url} failed with HTTP {resp.status_code}",
                field=field,
                status=resp.status_code,
            )
        logger.debug("Fetched %d bytes for field %s from %s", len(resp.content), label, url)
        return resp.content
