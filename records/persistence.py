from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)

ADVICE_FILE = "advice.json"
SCORES_FILE = "advice-scores.json"


class StoreWriteError(RuntimeError):
    """Raised when a document cannot be written; the run cannot complete."""


def apply_retention(entries: Dict[str, Any], cutoff: str) -> Dict[str, Any]:
    """Drop every date key older than ``cutoff`` (ISO dates compare lexically)."""
    return {k: v for k, v in entries.items() if not k < cutoff}


class PersistenceManager:
    """Whole-document JSON reads and writes inside one data directory."""

    def __init__(self, data_dir: str | os.PathLike):
        self.data_dir = Path(data_dir)

    def path(self, name: str) -> Path:
        return self.data_dir / name

    def read_document(self, name: str) -> Optional[Any]:
        """Return the parsed document, or None when it is missing or unparseable."""
        path = self.path(name)
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            logger.debug("read_document: %s not found", path)
            return None
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Ignoring unparseable document %s: %s", path, exc)
            return None
        except OSError as exc:
            logger.warning("Could not read %s: %s", path, exc)
            return None

    def write_document(self, name: str, data: Any) -> None:
        """Replace ``name`` atomically; a failed write leaves the previous file intact."""
        path = self.path(name)
        tmp_name = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{name}.", suffix=".tmp", dir=self.data_dir)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
            tmp_name = None
        except (OSError, UnicodeEncodeError) as exc:
            raise StoreWriteError(f"Could not write {path}: {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug("write_document: could not remove temp file %s", tmp_name)
        logger.debug("write_document: wrote %s", path)

    def load_dated(self, name: str) -> Dict[str, Any]:
        doc = self.read_document(name)
        if not isinstance(doc, dict):
            if doc is not None:
                logger.warning("%s is not a date-keyed object; starting fresh", name)
            return {}
        return doc

    def save_dated_entry(self, name: str, day: str, entry: Any, cutoff: str) -> Dict[str, Any]:
        """Insert ``entry`` under ``day``, evict keys older than ``cutoff`` and persist."""
        entries = self.load_dated(name)
        entries[day] = entry
        kept = apply_retention(entries, cutoff)
        evicted = len(entries) - len(kept)
        if evicted:
            logger.debug("save_dated_entry: %s evicted %d entries older than %s", name, evicted, cutoff)
        self.write_document(name, kept)
        return kept

    def save_advice(self, day: str, entry: Dict[str, Any], cutoff: str) -> Dict[str, Any]:
        return self.save_dated_entry(ADVICE_FILE, day, entry, cutoff)

    def save_scores(self, day: str, entry: Dict[str, Any], cutoff: str) -> Dict[str, Any]:
        return self.save_dated_entry(SCORES_FILE, day, entry, cutoff)
