"""
Tests for the JSON file and in-memory record stores.
"""

import json

import pytest

from storage.models import EntityKind
from storage.record_store import (
    CorruptCollectionError, InMemoryRecordStore, JSONFileRecordStore, LoadOutcome,
    parse_collection, serialize_collection,
)


class TestParseCollection:
    """Test cases for parsing raw collection text."""

    def test_parses_array(self):
        assert parse_collection('[{"id": "1"}]') == [{"id": "1"}]

    @pytest.mark.parametrize("text", ["", "   \n", "{not json", '{"id": "1"}', "42"])
    def test_rejects_unusable_content(self, text):
        with pytest.raises(CorruptCollectionError):
            parse_collection(text)

    def test_serialize_keeps_key_order(self):
        text = serialize_collection([{"z": 1, "a": 2}])
        assert text.index('"z"') < text.index('"a"')
        assert text.startswith("[\n  {")


class TestJSONFileRecordStore:
    """Test cases for the file-backed store."""

    @pytest.mark.asyncio
    async def test_missing_file_is_created_empty(self, file_store):
        result = await file_store.load_with_outcome(EntityKind.USERS)

        assert result.records == []
        assert result.outcome == LoadOutcome.CREATED
        assert file_store.path_for(EntityKind.USERS).read_text(encoding="utf-8") == "[]"

    @pytest.mark.asyncio
    async def test_save_then_load(self, file_store):
        records = [{"id": "b1", "title": "Dune", "publishedYear": 1965}]
        await file_store.save(EntityKind.BOOKS, records)

        result = await file_store.load_with_outcome(EntityKind.BOOKS)

        assert result.records == records
        assert result.outcome == LoadOutcome.OK

    @pytest.mark.asyncio
    async def test_kinds_use_separate_files(self, file_store):
        await file_store.save(EntityKind.BOOKS, [{"id": "b1"}])

        assert await file_store.load(EntityKind.USERS) == []
        assert file_store.path_for(EntityKind.BOOKS).name == "books.json"
        assert file_store.path_for(EntityKind.USERS).name == "users.json"

    @pytest.mark.asyncio
    async def test_accepts_kind_value_strings(self, file_store):
        await file_store.save("books", [{"id": "b1"}])
        assert await file_store.load(EntityKind.BOOKS) == [{"id": "b1"}]

    @pytest.mark.asyncio
    async def test_written_file_is_pretty_printed(self, file_store):
        await file_store.save(EntityKind.BOOKS, [{"id": "b1", "title": "Café"}])

        text = file_store.path_for(EntityKind.BOOKS).read_text(encoding="utf-8")
        assert "Café" in text
        assert json.loads(text) == [{"id": "b1", "title": "Café"}]
        assert "\n  " in text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["{broken", "", '{"id": "1"}'])
    async def test_corrupt_file_is_reset(self, file_store, content):
        path = file_store.path_for(EntityKind.BOOKS)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

        first = await file_store.load_with_outcome(EntityKind.BOOKS)
        second = await file_store.load_with_outcome(EntityKind.BOOKS)

        assert first.records == []
        assert first.outcome == LoadOutcome.RECOVERED
        assert first.cause
        assert second.outcome == LoadOutcome.OK
        assert path.read_text(encoding="utf-8") == "[]"

    @pytest.mark.asyncio
    async def test_undecodable_file_is_reset(self, file_store):
        path = file_store.path_for(EntityKind.USERS)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"\xff\xfe\xfa")

        result = await file_store.load_with_outcome(EntityKind.USERS)

        assert result.outcome == LoadOutcome.RECOVERED
        assert path.read_text(encoding="utf-8") == "[]"

    @pytest.mark.asyncio
    async def test_unreadable_path_returns_empty_without_rewrite(self, file_store):
        path = file_store.path_for(EntityKind.BOOKS)
        path.mkdir(parents=True)

        result = await file_store.load_with_outcome(EntityKind.BOOKS)

        assert result.records == []
        assert result.outcome == LoadOutcome.RECOVERED
        assert path.is_dir()

    @pytest.mark.asyncio
    async def test_write_failure_propagates(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = JSONFileRecordStore(blocker / "data")

        with pytest.raises(OSError):
            await store.save(EntityKind.BOOKS, [])

    @pytest.mark.asyncio
    async def test_interleaved_updates_keep_last_write(self, file_store):
        await file_store.save(EntityKind.BOOKS, [])

        first = await file_store.load(EntityKind.BOOKS)
        second = await file_store.load(EntityKind.BOOKS)
        first.append({"id": "from-first"})
        second.append({"id": "from-second"})
        await file_store.save(EntityKind.BOOKS, first)
        await file_store.save(EntityKind.BOOKS, second)

        assert await file_store.load(EntityKind.BOOKS) == [{"id": "from-second"}]


class TestInMemoryRecordStore:
    """Test cases for the in-memory store."""

    @pytest.mark.asyncio
    async def test_first_load_reports_created(self):
        store = InMemoryRecordStore()

        result = await store.load_with_outcome(EntityKind.USERS)

        assert result.records == []
        assert result.outcome == LoadOutcome.CREATED

    @pytest.mark.asyncio
    async def test_loaded_records_are_copies(self):
        store = InMemoryRecordStore({EntityKind.BOOKS: [{"id": "b1", "title": "Dune"}]})

        records = await store.load(EntityKind.BOOKS)
        records[0]["title"] = "Changed"
        records.append({"id": "b2"})

        assert await store.load(EntityKind.BOOKS) == [{"id": "b1", "title": "Dune"}]

    @pytest.mark.asyncio
    async def test_save_rejects_unserializable_records(self):
        store = InMemoryRecordStore()

        with pytest.raises(TypeError):
            await store.save(EntityKind.BOOKS, [{"id": object()}])
