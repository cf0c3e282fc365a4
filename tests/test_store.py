"""
Tests for acquire/store.py, acquire/cache.py and acquire/hasher.py.
"""

import json
import os
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

# Ensure project root on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from acquire.cache import FifoCache
from acquire.hasher import hash_content, hash_prefix
from acquire.schema import CurrentDraw, SpecificationRecord, TemperatureRange, VoltageRange
from acquire.store import ContentStore


def _record(url="https://x/lm358", **kwargs):
    defaults = dict(
        component="LM358",
        source_url=url,
        extracted_at="2026-01-01T00:00:00+00:00",
        parsed=True,
        manufacturer="Texas Instruments",
        description="Dual operational amplifier",
        voltage=VoltageRange(min="3V", typ="5V", max="32V"),
        current=CurrentDraw(operating="0.7mA"),
        package="SOIC-8",
        pin_count="8",
        temperature=TemperatureRange(min="0°C", max="70°C"),
        features=["Low power", "Wide supply range"],
        applications=["Active filters"],
    )
    defaults.update(kwargs)
    return SpecificationRecord(**defaults)


# ---------------------------------------------------------------------------
# Specification records
# ---------------------------------------------------------------------------

class TestSpecsFile:

    def test_save_then_load_is_deep_equal(self, tmp_path):
        store = ContentStore(tmp_path)
        record = _record()

        store.save_record(record)

        assert store.load_specs("LM358") == [record]

    def test_file_is_utf8_json_list(self, tmp_path):
        store = ContentStore(tmp_path)
        path = store.save_record(_record())

        assert path == tmp_path / "lm358_specs.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert isinstance(data, list)
        assert data[0]["temperature"]["max"] == "70°C"
        assert "\n  " in path.read_text(encoding="utf-8")

    def test_upsert_by_source_url(self, tmp_path):
        store = ContentStore(tmp_path)
        store.save_record(_record("https://a"))
        store.save_record(_record("https://b"))
        store.save_record(_record("https://a", package="DIP-8"))

        records = store.load_specs("LM358")

        assert sorted(r.source_url for r in records) == ["https://a", "https://b"]
        assert {r.source_url: r.package for r in records}["https://a"] == "DIP-8"
        assert store.has_record("LM358", "https://b")
        assert not store.has_record("LM358", "https://c")

    def test_unparsed_record_round_trips_raw(self, tmp_path):
        store = ContentStore(tmp_path)
        record = SpecificationRecord("LM358", "https://x", "2026-01-01", raw="free text")

        store.save_record(record)

        assert store.load_specs("LM358") == [record]

    def test_missing_file_is_empty(self, tmp_path):
        assert ContentStore(tmp_path).load_specs("LM358") == []

    def test_corrupt_file_is_empty(self, tmp_path):
        (tmp_path / "lm358_specs.json").write_text("{not json", encoding="utf-8")
        assert ContentStore(tmp_path).load_specs("LM358") == []

    def test_single_object_file_tolerated(self, tmp_path):
        (tmp_path / "lm358_specs.json").write_text(json.dumps(_record().to_dict()), encoding="utf-8")
        assert ContentStore(tmp_path).load_specs("LM358") == [_record()]

    def test_extra_nested_keys_ignored(self, tmp_path):
        entry = {"component": "LM358", "source_url": "https://x", "voltage": {"min": "3V", "unit": "V"}}
        (tmp_path / "lm358_specs.json").write_text(json.dumps([entry]), encoding="utf-8")

        records = ContentStore(tmp_path).load_specs("LM358")

        assert len(records) == 1
        assert records[0].voltage == VoltageRange(min="3V")

    def test_raw_fallback_entry_takes_requested_id(self, tmp_path):
        (tmp_path / "lm358_specs.json").write_text(
            json.dumps({"raw": "blah", "parsed": False}), encoding="utf-8",
        )

        records = ContentStore(tmp_path).load_specs("LM358")

        assert len(records) == 1
        assert records[0].component == "LM358"
        assert records[0].source_url == ""
        assert records[0].raw == "blah"

    def test_non_object_entries_skipped(self, tmp_path):
        payload = [_record().to_dict(), "stray", 42]
        (tmp_path / "lm358_specs.json").write_text(json.dumps(payload), encoding="utf-8")
        assert ContentStore(tmp_path).load_specs("LM358") == [_record()]

    def test_scalar_file_is_empty(self, tmp_path):
        (tmp_path / "lm358_specs.json").write_text("42", encoding="utf-8")
        assert ContentStore(tmp_path).load_specs("LM358") == []

    def test_concurrent_saves_to_shared_file_keep_every_record(self, tmp_path):
        store = ContentStore(tmp_path)
        records = [
            _record(f"https://x/{i}", component="LM358" if i % 2 else "lm358")
            for i in range(16)
        ]

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(store.save_record, records))

        saved = store.load_specs("LM358")
        assert sorted(r.source_url for r in saved) == sorted(r.source_url for r in records)
        assert not list(tmp_path.glob("*.part"))


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

class TestDocuments:

    def test_write_document_atomic(self, tmp_path):
        store = ContentStore(tmp_path)
        path = store.document_path("LM358", 3, "pdf")

        written = store.write_document(path, [b"%PDF", b"", b"-1.4"])

        assert written == 8
        assert path.read_bytes() == b"%PDF-1.4"
        assert [p.name for p in tmp_path.iterdir()] == ["lm358_3.pdf"]

    def test_partial_file_removed_on_error(self, tmp_path):
        store = ContentStore(tmp_path)
        path = store.document_path("LM358", 0, "pdf")

        def chunks():
            yield b"%PDF"
            raise ConnectionError("reset")

        with pytest.raises(ConnectionError):
            store.write_document(path, chunks())
        assert list(tmp_path.iterdir()) == []

    def test_size_limit(self, tmp_path):
        store = ContentStore(tmp_path)
        path = store.document_path("LM358", 0, "pdf")

        with pytest.raises(OverflowError):
            store.write_document(path, [b"x" * 10, b"x" * 10], max_bytes=15)
        assert list(tmp_path.iterdir()) == []

    def test_existing_document_lookup(self, tmp_path):
        store = ContentStore(tmp_path)
        (tmp_path / "lm358_1.pdf").write_bytes(b"%PDF")
        (tmp_path / "lm358_2.pdf.part").write_bytes(b"%P")

        assert store.existing_document("LM358", 1) == tmp_path / "lm358_1.pdf"
        assert store.existing_document("LM358", 2) is None
        assert store.existing_document("LM358", 10) is None

    def test_ensure_creates_directory(self, tmp_path):
        store = ContentStore(tmp_path / "a" / "b")
        assert store.ensure().is_dir()

    def test_ensure_failure_propagates(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a dir")
        with pytest.raises(OSError):
            ContentStore(blocker / "sub").ensure()


class TestCleanup:

    def test_removes_only_old_files(self, tmp_path):
        store = ContentStore(tmp_path)
        old = tmp_path / "old_0.pdf"
        new = tmp_path / "new_0.pdf"
        old.write_bytes(b"%PDF")
        new.write_bytes(b"%PDF")
        ten_days_ago = time.time() - 10 * 24 * 3600
        os.utime(old, (ten_days_ago, ten_days_ago))
        (tmp_path / "logs").mkdir()

        removed = store.cleanup_old_files(days=7)

        assert removed == 1
        assert not old.exists()
        assert new.exists()
        assert (tmp_path / "logs").is_dir()

    def test_missing_root(self, tmp_path):
        assert ContentStore(tmp_path / "nope").cleanup_old_files() == 0


# ---------------------------------------------------------------------------
# Memo cache
# ---------------------------------------------------------------------------

class TestFifoCache:

    def test_evicts_oldest_insertion(self):
        cache = FifoCache(capacity=2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("c", 3)
        assert cache.keys() == ["b", "c"]
        assert cache.get("a") is None

    def test_reads_do_not_refresh_position(self):
        cache = FifoCache(capacity=2)
        cache.put("a", 1)
        cache.put("b", 2)
        assert cache.get("a") == 1
        cache.put("c", 3)
        assert "a" not in cache
        assert "b" in cache

    def test_capacity_100_default(self):
        cache = FifoCache()
        for i in range(150):
            cache.put(str(i), i)
        assert len(cache) == 100
        assert cache.keys()[0] == "50"

    def test_hit_miss_counters(self):
        cache = FifoCache()
        cache.put("k", "v")
        cache.get("k")
        cache.get("missing")
        assert (cache.hits, cache.misses) == (1, 1)

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            FifoCache(capacity=0)


class TestHasher:

    def test_fixed_length(self):
        assert len(hash_content("anything")) == 16
        assert len(hash_prefix("x" * 5000)) == 32

    def test_prefix_only(self):
        base = "a" * 500
        assert hash_prefix(base + "tail one") == hash_prefix(base + "tail two")
        assert hash_prefix("b" + base) != hash_prefix(base)

    def test_salt_changes_key(self):
        assert hash_prefix("same text", salt="LM358") != hash_prefix("same text", salt="LM324")
