"""School reference dataset (data.json) with TTL caching"""

import json
import os
import tempfile
import time
from dataclasses import asdict, dataclass
from typing import Callable, Dict, List, Optional, Tuple

from exam_portal.core.exceptions import ReferenceNotFound
from exam_portal.core.logging import get_logger
from exam_portal.services.numbering import SchoolPrefix

logger = get_logger(__name__)


def canonical_code(value) -> str:
    """Strip whitespace; numeric codes compare by value so "045" == "45"."""
    text = str(value).strip()
    if text.isdigit():
        return str(int(text))
    return text


@dataclass(frozen=True)
class SchoolReferenceEntry:
    """One row of the reference dataset, using the dataset's own field names"""
    lgaCode: str
    lCode: str
    schCode: str
    progID: str
    schName: str
    id: str

    @classmethod
    def from_dict(cls, raw: dict) -> "SchoolReferenceEntry":
        return cls(
            lgaCode=str(raw.get("lgaCode", "")).strip(),
            lCode=str(raw.get("lCode", "")).strip(),
            schCode=str(raw.get("schCode", "")).strip(),
            progID=str(raw.get("progID", "")).strip(),
            schName=str(raw.get("schName", "")).strip(),
            id=str(raw.get("id", "")).strip(),
        )

    @property
    def key(self) -> Tuple[str, str]:
        return canonical_code(self.lCode), canonical_code(self.schCode)

    @property
    def prefix(self) -> SchoolPrefix:
        return SchoolPrefix.from_codes(canonical_code(self.lCode), canonical_code(self.schCode))


class SchoolReferenceCache:
    """
    Read-through cache over the reference dataset file.

    Reloads when ``ttl_seconds`` elapsed or the file's mtime changed, and is
    invalidated by every write made through :meth:`upsert`.
    """

    def __init__(
        self,
        path: str,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.path = path
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Optional[List[SchoolReferenceEntry]] = None
        self._index: Dict[Tuple[str, str], SchoolReferenceEntry] = {}
        self._loaded_at: Optional[float] = None
        self._mtime: Optional[float] = None

    def invalidate(self) -> None:
        self._entries = None
        self._index = {}
        self._loaded_at = None
        self._mtime = None

    def _is_stale(self) -> bool:
        if self._entries is None or self._loaded_at is None:
            return True
        if self._clock() - self._loaded_at >= self.ttl_seconds:
            return True
        try:
            return os.stat(self.path).st_mtime != self._mtime
        except FileNotFoundError:
            return True

    def _load(self) -> None:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
            mtime = os.stat(self.path).st_mtime
        except FileNotFoundError:
            logger.warning("School reference dataset missing", extra={"path": self.path})
            raw, mtime = [], None

        entries = [SchoolReferenceEntry.from_dict(item) for item in raw]
        index: Dict[Tuple[str, str], SchoolReferenceEntry] = {}
        for entry in entries:
            # First record wins when the export carries duplicate code pairs
            index.setdefault(entry.key, entry)

        self._entries = entries
        self._index = index
        self._loaded_at = self._clock()
        self._mtime = mtime
        logger.info("School reference dataset loaded", extra={"path": self.path, "count": len(entries)})

    def entries(self) -> List[SchoolReferenceEntry]:
        if self._is_stale():
            self._load()
        return list(self._entries)

    def find(self, lga_code: str, school_code: str) -> Optional[SchoolReferenceEntry]:
        if self._is_stale():
            self._load()
        return self._index.get((canonical_code(lga_code), canonical_code(school_code)))

    def require(self, lga_code: str, school_code: str) -> SchoolReferenceEntry:
        entry = self.find(lga_code, school_code)
        if entry is None:
            raise ReferenceNotFound(lga_code, school_code)
        return entry

    def resolve(self, lga_code: str, school_code: str) -> Optional[SchoolPrefix]:
        """Numbering prefix for a school, or None when the dataset has no such school."""
        entry = self.find(lga_code, school_code)
        return entry.prefix if entry else None

    def search(self, query: str = "") -> List[SchoolReferenceEntry]:
        entries = self.entries()
        query = query.strip().lower()
        if not query:
            return entries
        return [
            e for e in entries
            if query in e.schName.lower()
            or query in (e.lgaCode, e.lCode, e.schCode, e.id)
        ]

    def upsert(self, entry: SchoolReferenceEntry) -> SchoolReferenceEntry:
        """Add or replace (matched by ``id``) a dataset row and write the file back."""
        rows = [asdict(e) for e in self.entries() if e.id != entry.id]
        rows.append(asdict(entry))

        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(rows, fh)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise
        finally:
            self.invalidate()

        logger.info("School reference upserted", extra={"id": entry.id, "school_name": entry.schName})
        return entry
