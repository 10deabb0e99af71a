"""Tests for streamledger/state/store.py."""

import json
import threading

import pytest

from streamledger.state.store import InMemoryStore, JsonFileStore, KeyValueStore, TransactionConflict


class TestInMemoryStore:
    def test_protocol(self):
        assert isinstance(InMemoryStore(), KeyValueStore)

    def test_get_default(self):
        store = InMemoryStore()
        assert store.get("missing") is None
        assert store.get("missing", 7) == 7

    def test_values_are_copied(self):
        store = InMemoryStore()
        value = {"a": [1]}
        store.set("k", value)
        value["a"].append(2)
        store.get("k")["a"].append(3)
        assert store.get("k") == {"a": [1]}

    def test_rejects_empty_key(self):
        with pytest.raises(TypeError):
            InMemoryStore().set("", 1)

    def test_keys_prefix_sorted(self):
        store = InMemoryStore({"b:2": 1, "a:1": 1, "b:1": 1})
        assert store.keys("b:") == ["b:1", "b:2"]

    def test_commit_merges(self):
        store = InMemoryStore({"x": 1})
        store.begin()
        store.set("x", 2)
        store.set("y", 3)
        assert store.snapshot() == {"x": 1}
        store.commit()
        assert store.snapshot() == {"x": 2, "y": 3}

    def test_revert_discards(self):
        store = InMemoryStore({"x": 1})
        store.begin()
        store.set("x", 2)
        store.delete("x")
        assert store.get("x") is None
        assert store.keys() == []
        store.revert()
        assert store.get("x") == 1

    def test_nested_inner_revert(self):
        store = InMemoryStore()
        store.begin()
        store.set("outer", 1)
        store.begin()
        store.set("inner", 2)
        assert store.depth == 2
        store.revert()
        store.commit()
        assert store.snapshot() == {"outer": 1}

    def test_nested_delete_reaches_base(self):
        store = InMemoryStore({"x": 1})
        store.begin()
        store.begin()
        store.delete("x")
        store.commit()
        assert store.get("x") is None
        store.commit()
        assert "x" not in store.snapshot()

    def test_unbalanced_calls(self):
        store = InMemoryStore()
        with pytest.raises(RuntimeError):
            store.commit()
        with pytest.raises(RuntimeError):
            store.revert()

    def test_transaction_context(self):
        store = InMemoryStore()
        with store.transaction():
            store.set("a", 1)
        with pytest.raises(ValueError):
            with store.transaction():
                store.set("b", 2)
                raise ValueError("boom")
        assert store.snapshot() == {"a": 1}
        assert store.depth == 0


def _in_thread(fn):
    out = {}

    def run():
        out["value"] = fn()

    t = threading.Thread(target=run)
    t.start()
    t.join()
    return out["value"]


class TestThreads:
    def test_open_transaction_invisible_to_other_threads(self):
        store = InMemoryStore({"x": 1})
        with store.transaction():
            store.set("x", 2)
            store.set("y", 3)
            assert _in_thread(lambda: (store.get("x"), store.get("y"), store.keys(), store.depth)) == (1, None, ["x"], 0)
        assert _in_thread(lambda: store.get("x")) == 2

    def test_foreign_write_survives_revert(self):
        store = InMemoryStore()
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.set("mine", 1)
                _in_thread(lambda: store.set("theirs", 2))
                assert store.get("theirs") == 2
                raise RuntimeError
        assert store.snapshot() == {"theirs": 2}

    def test_lost_update_is_refused(self):
        store = InMemoryStore({"balance": 10})
        store.begin()
        store.set("balance", store.get("balance") - 4)
        _in_thread(lambda: store.set("balance", 100))
        with pytest.raises(TransactionConflict) as info:
            store.commit()
        assert info.value.keys == ["balance"]
        assert store.snapshot() == {"balance": 100}
        assert store.depth == 0

    def test_disjoint_keys_commit(self):
        store = InMemoryStore({"a": 1})
        with store.transaction():
            store.set("a", store.get("a") + 1)
            _in_thread(lambda: store.set("b", 5))
        assert store.snapshot() == {"a": 2, "b": 5}


class TestJsonFileStore:
    def test_persists_committed_state(self, tmp_path):
        path = tmp_path / "state" / "ledger.json"
        store = JsonFileStore(path)
        with store.transaction():
            store.set("stream_counter", 3)
        assert json.loads(path.read_text(encoding="utf-8")) == {"stream_counter": 3}
        assert JsonFileStore(path).get("stream_counter") == 3

    def test_reverted_state_not_written(self, tmp_path):
        path = tmp_path / "ledger.json"
        store = JsonFileStore(path)
        store.set("a", 1)
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.set("a", 2)
                raise RuntimeError
        assert JsonFileStore(path).get("a") == 1

    def test_rejects_non_object(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(TypeError):
            JsonFileStore(path)

    def test_snapshot_file_is_canonical(self, tmp_path):
        path = tmp_path / "ledger.json"
        store = JsonFileStore(path)
        with store.transaction():
            store.set("b", {"z": 1, "a": "é"})
            store.set("a", True)
        assert path.read_bytes() == '{"a":true,"b":{"a":"é","z":1}}'.encode("utf-8")

    def test_float_values_are_not_persisted(self, tmp_path):
        store = JsonFileStore(tmp_path / "ledger.json")
        with pytest.raises(TypeError):
            store.set("price", 1.5)
        assert store.get("price") is None
