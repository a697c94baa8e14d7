from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterator

from config import settings
from models import TrackedSource

logger = logging.getLogger(__name__)


def load_tracking(path: Path) -> dict[str, TrackedSource]:
    """Read the persisted tracking map, raising ``ValueError`` if it is malformed."""
    if not path.exists():
        return {}

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError(f"Cannot read tracking file {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ValueError(f"Tracking file {path} must contain a JSON object")

    return {url: TrackedSource.from_dict(url, value) for url, value in raw.items()}


def save_tracking(path: Path, sources: dict[str, TrackedSource]) -> None:
    """Write the whole tracking map, replacing the file atomically."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {url: source.to_dict() for url, source in sources.items()}

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class TrackingStore:
    """Durable mapping of tracked category URLs to their configuration."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or settings.TRACKING_FILE
        self._sources: dict[str, TrackedSource] = {}
        self.load()

    def load(self) -> None:
        try:
            self._sources = load_tracking(self.path)
        except ValueError as exc:
            logger.warning("Ignoring unreadable tracking file, starting empty: %s", exc)
            self._sources = {}
            return
        logger.info("Loaded %s tracked sources from %s", len(self._sources), self.path)

    def save(self) -> None:
        save_tracking(self.path, self._sources)

    def _commit(self, sources: dict[str, TrackedSource]) -> None:
        # memory only changes once the file has been written
        save_tracking(self.path, sources)
        self._sources = sources

    def upsert(self, source: TrackedSource) -> TrackedSource:
        sources = dict(self._sources)
        sources[source.url] = source
        self._commit(sources)
        return source

    def remove_by_label(self, label: str) -> TrackedSource | None:
        for url, source in self._sources.items():
            if source.category == label:
                sources = dict(self._sources)
                del sources[url]
                self._commit(sources)
                return source
        return None

    def get(self, url: str) -> TrackedSource | None:
        return self._sources.get(url)

    def list(self) -> list[TrackedSource]:
        return list(self._sources.values())

    def __len__(self) -> int:
        return len(self._sources)

    def __contains__(self, url: object) -> bool:
        return url in self._sources

    def __iter__(self) -> Iterator[TrackedSource]:
        return iter(self.list())
