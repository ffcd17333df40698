"""
Record store for the entity collections.

Each entity kind is persisted as one JSON array in one file under the data
directory. Every operation reads or rewrites the whole collection; there is no
per-record storage and no locking, so two concurrent read-modify-write cycles
on the same collection can lose an update (last writer wins).
"""

import asyncio
import copy
import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog

from storage.models import EntityKind

logger = structlog.get_logger(__name__)

Record = Dict[str, Any]


class LoadOutcome(str, Enum):
    """How a collection load was satisfied."""
    OK = "ok"
    CREATED = "created"
    RECOVERED = "recovered"


@dataclass
class LoadResult:
    """Records returned by a load together with its outcome."""
    records: List[Record]
    outcome: LoadOutcome = LoadOutcome.OK
    cause: Optional[str] = None


class CorruptCollectionError(ValueError):
    """Raised internally when a collection file cannot be parsed."""


def parse_collection(text: str) -> List[Record]:
    """
    Parse the raw text of a collection file.

    Raises:
        CorruptCollectionError: If the content is empty, malformed JSON or not an array
    """
    stripped = text.strip()
    if not stripped:
        raise CorruptCollectionError("collection file is empty")
    try:
        data = json.loads(stripped)
    except json.JSONDecodeError as e:
        raise CorruptCollectionError(str(e)) from e
    if not isinstance(data, list):
        raise CorruptCollectionError(f"expected a JSON array, got {type(data).__name__}")
    return data


def serialize_collection(records: List[Record]) -> str:
    """Pretty-print a collection, keeping each record's key order."""
    return json.dumps(records, indent=2, ensure_ascii=False)


class RecordStore:
    """Interface for loading and saving whole entity collections."""

    async def load(self, kind: EntityKind) -> List[Record]:
        """Load the full collection for an entity kind."""
        result = await self.load_with_outcome(kind)
        return result.records

    async def load_with_outcome(self, kind: EntityKind) -> LoadResult:
        raise NotImplementedError

    async def save(self, kind: EntityKind, records: List[Record]) -> None:
        raise NotImplementedError


class JSONFileRecordStore(RecordStore):
    """
    Record store backed by one JSON file per entity kind.

    Missing files are created as empty collections on first load. Content that
    cannot be parsed is logged, replaced by a fresh empty collection and read
    back as empty. Write failures propagate to the caller.
    """

    def __init__(self, data_dir: Union[str, Path]):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding the collection files; created on demand
        """
        self.data_dir = Path(data_dir)

    def path_for(self, kind: EntityKind) -> Path:
        """Get the file path backing an entity kind."""
        return self.data_dir / f"{EntityKind(kind).value}.json"

    async def _ensure_data_dir(self) -> None:
        await asyncio.to_thread(self.data_dir.mkdir, parents=True, exist_ok=True)

    async def load_with_outcome(self, kind: EntityKind) -> LoadResult:
        """
        Load a collection and report how the load was satisfied.

        Args:
            kind: Entity kind to load

        Returns:
            LoadResult with the records and OK, CREATED or RECOVERED
        """
        kind = EntityKind(kind)
        path = self.path_for(kind)
        await self._ensure_data_dir()

        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            logger.info("Collection file missing, creating it", kind=kind.value, path=str(path))
            await self.save(kind, [])
            return LoadResult(records=[], outcome=LoadOutcome.CREATED)
        except UnicodeDecodeError as e:
            return await self._recover(kind, path, f"undecodable content: {e}")
        except OSError as e:
            logger.warning(
                "Failed to read collection file, returning empty collection",
                kind=kind.value,
                path=str(path),
                error=str(e),
            )
            return LoadResult(records=[], outcome=LoadOutcome.RECOVERED, cause=str(e))

        try:
            records = parse_collection(text)
        except CorruptCollectionError as e:
            return await self._recover(kind, path, str(e))

        return LoadResult(records=records, outcome=LoadOutcome.OK)

    async def _recover(self, kind: EntityKind, path: Path, cause: str) -> LoadResult:
        logger.warning(
            "Collection file is corrupt, returning empty collection",
            kind=kind.value,
            path=str(path),
            error=cause,
        )
        await self.save(kind, [])
        return LoadResult(records=[], outcome=LoadOutcome.RECOVERED, cause=cause)

    async def save(self, kind: EntityKind, records: List[Record]) -> None:
        """
        Overwrite the collection file with the full collection.

        Args:
            kind: Entity kind to save
            records: Complete collection

        Raises:
            OSError: If the directory or file cannot be written
        """
        kind = EntityKind(kind)
        path = self.path_for(kind)
        payload = serialize_collection(records)
        try:
            await self._ensure_data_dir()
            await asyncio.to_thread(path.write_text, payload, encoding="utf-8")
        except OSError as e:
            logger.error("Failed to write collection file", kind=kind.value, path=str(path), error=str(e))
            raise

        logger.debug("Collection saved", kind=kind.value, count=len(records))


class InMemoryRecordStore(RecordStore):
    """Record store kept in process memory, for tests."""

    def __init__(self, initial: Optional[Dict[EntityKind, List[Record]]] = None):
        self._collections: Dict[EntityKind, List[Record]] = {}
        for kind, records in (initial or {}).items():
            self._collections[EntityKind(kind)] = copy.deepcopy(records)

    async def load_with_outcome(self, kind: EntityKind) -> LoadResult:
        kind = EntityKind(kind)
        if kind not in self._collections:
            self._collections[kind] = []
            return LoadResult(records=[], outcome=LoadOutcome.CREATED)
        # Loaded records are independent of the stored ones
        return LoadResult(records=copy.deepcopy(self._collections[kind]))

    async def save(self, kind: EntityKind, records: List[Record]) -> None:
        # Stored as parsed JSON, like the file store
        self._collections[EntityKind(kind)] = json.loads(serialize_collection(records))
