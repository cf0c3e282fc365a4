"""
Content store: the directory holding downloaded documents and extracted
specification files.

Layout:
    <sanitized_id>_<index>.<ext>    downloaded documents
    <sanitized_id>_specs.json       list of SpecificationRecords (by source_url)

Batch workers share one store. Ids that sanitize to the same name share a
specs file, so its read-modify-write runs under a lock and every write
goes through a unique temp file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Iterable

from .content import sanitize_component_id
from .schema import SpecificationRecord


logger = logging.getLogger(__name__)


class ContentStore:
    """Filesystem-backed store for one content directory."""

    def __init__(self, root: Path | str):
        self.root = Path(root)
        self._specs_lock = threading.Lock()

    def ensure(self) -> Path:
        """Create the store directory. Errors propagate to the caller."""
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def document_path(self, component_id: str, index: int, ext: str) -> Path:
        return self.root / f"{sanitize_component_id(component_id)}_{index}.{ext}"

    def existing_document(self, component_id: str, index: int) -> Path | None:
        """Return an already-downloaded document for this slot, if any."""
        if not self.root.exists():
            return None
        stem = f"{sanitize_component_id(component_id)}_{index}."
        for path in sorted(self.root.glob(f"{stem}*")):
            if path.is_file() and not path.name.endswith('.part'):
                return path
        return None

    def write_document(self, path: Path, chunks: Iterable[bytes], max_bytes: int | None = None) -> int:
        """
        Stream chunks to `path` via a temp file in the same directory.

        The temp file is removed on any error, so a partial download never
        occupies the final filename.

        Returns:
            Number of bytes written

        Raises:
            OverflowError: body exceeded max_bytes
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=path.name, suffix='.part')
        written = 0
        try:
            with os.fdopen(fd, 'wb') as fh:
                for chunk in chunks:
                    if not chunk:
                        continue
                    written += len(chunk)
                    if max_bytes is not None and written > max_bytes:
                        raise OverflowError(written)
                    fh.write(chunk)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        return written

    # ------------------------------------------------------------------
    # Specification records
    # ------------------------------------------------------------------

    def specs_path(self, component_id: str) -> Path:
        return self.root / f"{sanitize_component_id(component_id)}_specs.json"

    def load_specs(self, component_id: str) -> list[SpecificationRecord]:
        """
        Load every record saved for a component (empty if none).

        Records missing `component` take the requested id. Entries that
        cannot be read as a record are skipped with a warning.
        """
        path = self.specs_path(component_id)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding='utf-8'))
        except ValueError:
            logger.warning("Unreadable specs file %s, treating as empty", path)
            return []
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            logger.warning("Specs file %s holds %s, treating as empty", path, type(data).__name__)
            return []

        records = []
        for i, entry in enumerate(data):
            if not isinstance(entry, dict):
                logger.warning("Skipping entry %d in %s: not an object", i, path)
                continue
            try:
                records.append(SpecificationRecord.from_dict(entry, component=component_id))
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("Skipping entry %d in %s: %s", i, path, exc)
        return records

    def has_record(self, component_id: str, source_url: str) -> bool:
        return any(r.source_url == source_url for r in self.load_specs(component_id))

    def save_record(self, record: SpecificationRecord) -> Path:
        """Insert or replace the record for its source_url."""
        path = self.specs_path(record.component)
        with self._specs_lock:
            records = [r for r in self.load_specs(record.component) if r.source_url != record.source_url]
            records.append(record)
            payload = json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=path.name, suffix='.part')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                    fh.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass
                raise
        return path

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def cleanup_old_files(self, days: float = 7) -> int:
        """Remove top-level files older than `days`. Returns the count removed."""
        if not self.root.exists():
            return 0
        cutoff = time.time() - days * 24 * 60 * 60
        removed = 0
        for path in self.root.iterdir():
            if not path.is_file():
                continue
            if path.stat().st_mtime < cutoff:
                path.unlink()
                removed += 1
        logger.info("Removed %d files older than %s days from %s", removed, days, self.root)
        return removed
