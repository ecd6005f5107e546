"""JSON library store -- one library.json holding books and highlights.

Records use the browser app's camelCase keys. Both entity arrays live in one
document so a save is a single os.replace: a reader sees the previous library
or the new one, never highlights whose book was not written.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from loguru import logger

from .errors import StoreError
from .models import Book, Highlight, LibrarySnapshot

log = logger.bind(stage="store")

LIBRARY_FILE = "library.json"


class JsonLibraryStore:
    """Read and write a full library snapshot."""

    def __init__(self, library_dir: Path) -> None:
        self.library_dir = library_dir

    @property
    def path(self) -> Path:
        return self.library_dir / LIBRARY_FILE

    def ensure_dir(self) -> None:
        self.library_dir.mkdir(parents=True, exist_ok=True)

    # -- Read operations --

    def _read_document(self) -> dict[str, Any]:
        if not self.path.exists():
            return {"books": [], "highlights": []}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            log.error(f"Failed to read {self.path.name}: {exc}")
            raise StoreError(f"Failed to read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"Expected a JSON object in {self.path}")
        for key in ("books", "highlights"):
            if not isinstance(data.get(key, []), list):
                raise StoreError(f"Expected a JSON array for '{key}' in {self.path}")
        return data

    def load(self) -> LibrarySnapshot:
        data = self._read_document()
        try:
            books = [Book.from_dict(d) for d in data.get("books", [])]
            highlights = [Highlight.from_dict(d) for d in data.get("highlights", [])]
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"Malformed library record: {exc}") from exc
        log.debug(f"Loaded {len(books)} books, {len(highlights)} highlights")
        return LibrarySnapshot(books=books, highlights=highlights)

    # -- Write operations --

    def _atomic_write(self, data: dict[str, Any]) -> None:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.library_dir), suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(tmp_path, self.path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError as cleanup_err:
                log.warning(f"Failed to cleanup temp file {tmp_path}: {cleanup_err}")
            raise

    def save(self, snapshot: LibrarySnapshot) -> None:
        document = {
            "books": [b.to_dict() for b in snapshot.books],
            "highlights": [h.to_dict() for h in snapshot.highlights],
        }
        try:
            self.ensure_dir()
            self._atomic_write(document)
        except OSError as exc:
            raise StoreError(f"Failed to write library: {exc}") from exc
        log.debug(
            f"Saved {len(snapshot.books)} books, "
            f"{len(snapshot.highlights)} highlights to {self.path}"
        )
