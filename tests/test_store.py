"""
Tests for the candidate store and its blob backends.
"""
import json
from datetime import datetime

import pytest
from unittest.mock import Mock, patch

from models.schemas import CandidateStatus
from storage.store import CandidateStore, InMemoryBlobStore, JsonFileBlobStore
from tests.conftest import make_answer


class TestCandidateStore:

    def test_create_writes_through(self, store, blob_store):
        candidate_id = store.create({"name": "Ana Lee", "email": "ana@example.com"})

        saved = json.loads(blob_store.blobs["test_state"])
        assert saved["candidates"][0]["id"] == candidate_id
        assert saved["candidates"][0]["name"] == "Ana Lee"
        assert saved["candidates"][0]["status"] == "incomplete"

    def test_update_merges_patch(self, store):
        candidate_id = store.create({"name": "Ana Lee", "email": "ana@example.com"})
        store.update(candidate_id, {"phone": "+15551234567", "current_question_index": 1,
                                    "answers": [make_answer(0)]})

        record = store.get(candidate_id)
        assert record.name == "Ana Lee"
        assert record.phone == "+15551234567"
        assert record.current_question_index == 1
        assert record.answers[0].question_id == "easy-1"

    def test_update_cannot_change_id(self, store):
        candidate_id = store.create({})
        store.update(candidate_id, {"id": "other"})
        assert store.get(candidate_id) is not None
        assert store.get("other") is None

    def test_empty_patch_leaves_record_unchanged(self, store):
        candidate_id = store.create({"name": "Ana Lee"})
        before = store.get(candidate_id)
        store.update(candidate_id, {})
        assert store.get(candidate_id) == before

    def test_update_unknown_id_is_ignored(self, store, blob_store):
        store.create({"name": "Ana Lee"})
        before = blob_store.blobs["test_state"]

        store.update("missing", {"name": "Nobody"})

        assert blob_store.blobs["test_state"] == before
        assert len(store.list()) == 1

    def test_get_returns_copy(self, store):
        candidate_id = store.create({"name": "Ana Lee"})
        record = store.get(candidate_id)
        record.name = "Changed"
        assert store.get(candidate_id).name == "Ana Lee"

    def test_get_missing(self, store):
        assert store.get("nope") is None

    def test_remove_clears_active_pointer(self, store):
        first = store.create({"name": "Ana Lee"})
        second = store.create({"name": "Bo Chen"})
        store.set_active(first)

        store.remove(first)

        assert store.active_id is None
        assert [c.id for c in store.list()] == [second]

    def test_remove_other_keeps_active_pointer(self, store):
        first = store.create({})
        second = store.create({})
        store.set_active(first)
        store.remove(second)
        assert store.active().id == first

    def test_clear(self, store):
        store.set_active(store.create({}))
        store.clear()
        assert store.list() == []
        assert store.active_id is None

    def test_survives_reload(self, blob_store):
        store = CandidateStore(blob_store, key="test_state")
        candidate_id = store.create({"name": "Ana Lee"})
        store.update(candidate_id, {"answers": [make_answer(0, score=9)], "current_question_index": 1})
        store.set_active(candidate_id)

        reloaded = CandidateStore(blob_store, key="test_state")

        assert reloaded.active_id == candidate_id
        record = reloaded.get(candidate_id)
        assert record.answers[0].score == 9
        assert record.started_at == store.get(candidate_id).started_at

    def test_corrupt_blob_starts_empty(self, blob_store):
        blob_store.blobs["test_state"] = "{not json"
        store = CandidateStore(blob_store, key="test_state")
        assert store.list() == []
        assert store.active_id is None

    def test_wrong_shape_starts_empty(self, blob_store):
        blob_store.blobs["test_state"] = json.dumps({"candidates": "oops"})
        assert CandidateStore(blob_store, key="test_state").list() == []

    def test_failed_save_keeps_memory_state(self):
        backend = Mock()
        backend.load.return_value = None
        backend.save.side_effect = OSError("disk full")
        store = CandidateStore(backend, key="test_state")

        candidate_id = store.create({"name": "Ana Lee"})
        store.update(candidate_id, {"name": "Ana Maria Lee"})

        assert store.get(candidate_id).name == "Ana Maria Lee"
        assert backend.save.call_count == 2

    def test_ids_unique_within_same_millisecond(self, store):
        with patch("storage.store.time") as mock_time:
            mock_time.time.return_value = 1700000000.0
            ids = [store.create({}) for _ in range(3)]

        assert ids == ["1700000000000", "1700000000001", "1700000000002"]


class TestQuery:

    @pytest.fixture
    def populated(self, store):
        rows = [
            ("Ana Lee", "ana@example.com", 82, CandidateStatus.COMPLETED, datetime(2024, 1, 3)),
            ("bo chen", "bo@corp.io", 55, CandidateStatus.COMPLETED, datetime(2024, 1, 1)),
            ("Cara Diaz", "cara@example.com", 0, CandidateStatus.IN_PROGRESS, datetime(2024, 1, 2)),
        ]
        for name, email, score, status, started in rows:
            store.create({"name": name, "email": email, "score": score, "status": status, "started_at": started})
        return store

    def test_default_is_score_descending(self, populated):
        assert [c.name for c in populated.query()] == ["Ana Lee", "bo chen", "Cara Diaz"]

    def test_search_matches_name_or_email(self, populated):
        assert [c.name for c in populated.query(search="EXAMPLE")] == ["Ana Lee", "Cara Diaz"]
        assert [c.name for c in populated.query(search="chen")] == ["bo chen"]

    def test_status_filter(self, populated):
        result = populated.query(status=CandidateStatus.IN_PROGRESS)
        assert [c.name for c in result] == ["Cara Diaz"]

    def test_sort_by_name_ignores_case(self, populated):
        result = populated.query(sort_by="name", descending=False)
        assert [c.name for c in result] == ["Ana Lee", "bo chen", "Cara Diaz"]

    def test_sort_by_date(self, populated):
        result = populated.query(sort_by="date", descending=False)
        assert [c.name for c in result] == ["bo chen", "Cara Diaz", "Ana Lee"]

    def test_stats(self, populated):
        assert populated.stats() == {"total": 3, "completed": 2, "in_progress": 1, "average_score": 46}

    def test_stats_empty(self, store):
        assert store.stats() == {"total": 0, "completed": 0, "in_progress": 0, "average_score": 0}

    def test_unknown_sort_key(self, populated):
        with pytest.raises(ValueError):
            populated.query(sort_by="height")


class TestBlobStores:

    def test_in_memory_roundtrip(self):
        blobs = InMemoryBlobStore()
        assert blobs.load("k") is None
        blobs.save("k", "v")
        assert blobs.load("k") == "v"
        blobs.delete("k")
        assert blobs.load("k") is None

    def test_json_file_store(self, tmp_path):
        blobs = JsonFileBlobStore(str(tmp_path / "data"))
        assert blobs.load("state") is None

        blobs.save("state", '{"candidates": []}')
        assert (tmp_path / "data" / "state.json").read_text(encoding="utf-8") == '{"candidates": []}'
        assert blobs.load("state") == '{"candidates": []}'

        blobs.save("state", '{"candidates": [], "active_candidate_id": null}')
        assert [p.name for p in (tmp_path / "data").iterdir()] == ["state.json"]

        blobs.delete("state")
        blobs.delete("state")
        assert blobs.load("state") is None

    def test_candidate_store_on_disk(self, tmp_path):
        first = CandidateStore(JsonFileBlobStore(str(tmp_path)), key="state")
        candidate_id = first.create({"name": "Ana Lee"})
        first.set_active(candidate_id)

        second = CandidateStore(JsonFileBlobStore(str(tmp_path)), key="state")
        assert second.active().name == "Ana Lee"
