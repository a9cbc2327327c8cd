from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest

from conftest import InMemoryStore, make_product
from diff_engine import diff
from errors import StoreUnavailable
from executor import execute
from schemas import OperationKind, RecordFailure, SyncMode, SyncOperation


def _insert(product) -> SyncOperation:
    return SyncOperation(kind=OperationKind.INSERT, key=product.identity_key, payload=product)


class _CancelAfter:
    """Reports cancelled after `n` checks."""

    def __init__(self, n: int):
        self.remaining = n

    def is_set(self) -> bool:
        self.remaining -= 1
        return self.remaining < 0


def test_inserts_into_empty_store(store: InMemoryStore) -> None:
    report = execute([_insert(make_product("Cloud Slime"))], store, mode=SyncMode.FULL_REPLACE)

    assert (report.inserted, report.updated, report.deleted, report.failed) == (1, 0, 0, 0)
    assert report.status == "ok"
    assert store.rows["cloud slime"].created_at is not None
    assert store.rows["cloud slime"].updated_at is not None


def test_partial_failure_is_isolated(store: InMemoryStore) -> None:
    x, y, z = make_product("X"), make_product("Y"), make_product("Z")
    store.fail_on.add("y")

    report = execute([_insert(x), _insert(y), _insert(z)], store)

    assert report.inserted == 2
    assert report.failed == 1
    assert report.failures[0].key == "y"
    assert report.failures[0].kind == OperationKind.INSERT
    assert report.failures[0].error == "PerRecordStoreError"
    assert set(store.rows) == {"x", "z"}
    assert report.status == "partial"


def test_rerun_is_a_noop(store: InMemoryStore) -> None:
    store.rows["b"] = make_product("B")
    operations = diff(store.find_all(), [make_product("A"), make_product("C", price=1)], SyncMode.FULL_REPLACE)

    first = execute(operations, store, mode=SyncMode.FULL_REPLACE)
    state_after_first = dict(store.rows)
    second = execute(operations, store, mode=SyncMode.FULL_REPLACE)

    assert (first.inserted, first.deleted) == (2, 1)
    assert (second.inserted, second.updated, second.deleted) == (0, 0, 0)
    assert second.unchanged == 3
    assert second.status == "noop"
    assert store.rows == state_after_first


def test_retry_after_partial_failure_does_not_duplicate(store: InMemoryStore) -> None:
    operations = [_insert(make_product("X")), _insert(make_product("Y")), _insert(make_product("Z"))]
    store.fail_on.add("y")
    execute(operations, store)

    store.fail_on.clear()
    retry = execute(operations, store)

    assert (retry.inserted, retry.unchanged, retry.failed) == (1, 2, 0)
    assert sorted(store.rows) == ["x", "y", "z"]
    assert store.writes.count(("upsert", "x")) == 1


def test_update_keeps_created_at(store: InMemoryStore) -> None:
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    store.rows["a"] = make_product("A", created_at=created, updated_at=created)
    operations = diff(store.find_all(), [make_product("A", price=30)])

    report = execute(operations, store)

    assert report.updated == 1
    assert store.rows["a"].created_at == created
    assert store.rows["a"].updated_at > created
    assert store.rows["a"].price == 30.0


def test_deletes_skipped_when_a_write_fails(store: InMemoryStore) -> None:
    store.rows["a"] = make_product("A")
    store.rows["b"] = make_product("B")
    store.fail_on.add("a")
    operations = diff(store.find_all(), [make_product("A", price=1)], SyncMode.FULL_REPLACE)

    report = execute(operations, store, mode=SyncMode.FULL_REPLACE)

    assert report.deletes_skipped is True
    assert report.deleted == 0
    assert "b" in store.rows


def test_handed_in_failures_block_deletes(store: InMemoryStore) -> None:
    store.rows["b"] = make_product("B")
    operations = diff(store.find_all(), [], SyncMode.FULL_REPLACE)
    rejected = RecordFailure(key="b", error="ValidationError", field="price", detail="must be non-negative")

    report = execute(operations, store, mode=SyncMode.FULL_REPLACE, failures=[rejected])

    assert report.deletes_skipped is True
    assert report.failures == [rejected]
    assert "b" in store.rows


def test_deletes_run_after_writes(store: InMemoryStore) -> None:
    store.rows["old"] = make_product("Old")
    delete = SyncOperation(kind=OperationKind.DELETE, key="old", previous=store.rows["old"])

    execute([delete, _insert(make_product("New"))], store, mode=SyncMode.FULL_REPLACE)

    assert store.writes == [("upsert", "new"), ("delete", "old")]


def test_delete_of_missing_record_is_unchanged(store: InMemoryStore) -> None:
    delete = SyncOperation(kind=OperationKind.DELETE, key="ghost")

    report = execute([delete], store, mode=SyncMode.FULL_REPLACE)

    assert (report.deleted, report.unchanged) == (0, 1)
    assert store.writes == []


def test_unknown_category_fails_record(store: InMemoryStore) -> None:
    report = execute(
        [_insert(make_product("A", category="Mystery Slime")), _insert(make_product("B"))],
        store,
        known_categories=store.find_categories(),
    )

    assert report.inserted == 1
    assert report.failures[0].field == "category"
    assert report.failures[0].error == "ValidationError"
    assert set(store.rows) == {"b"}


def test_cancellation_returns_partial_report(store: InMemoryStore) -> None:
    store.rows["old"] = make_product("Old")
    operations = diff(
        store.find_all(),
        [make_product("A"), make_product("B"), make_product("C")],
        SyncMode.FULL_REPLACE,
    )

    report = execute(operations, store, mode=SyncMode.FULL_REPLACE, cancel_event=_CancelAfter(2))

    assert report.cancelled is True
    assert report.inserted == 2
    assert report.deletes_skipped is True
    assert set(store.rows) == {"old", "a", "b"}
    assert report.status == "partial"


def test_cancelled_before_start(store: InMemoryStore) -> None:
    event = threading.Event()
    event.set()

    report = execute([_insert(make_product("A"))], store, cancel_event=event)

    assert report.cancelled is True
    assert report.inserted == 0
    assert store.rows == {}


def test_unavailable_store_aborts_the_run(store: InMemoryStore) -> None:
    store.unavailable = True

    with pytest.raises(StoreUnavailable):
        execute([_insert(make_product("A"))], store)


def test_report_is_frozen(store: InMemoryStore) -> None:
    report = execute([], store)

    assert report.status == "noop"
    with pytest.raises(Exception):
        report.inserted = 5


def test_write_without_payload_is_a_failure(store: InMemoryStore) -> None:
    report = execute(
        [SyncOperation(kind=OperationKind.UPDATE, key="a"), _insert(make_product("B"))],
        store,
    )

    assert report.inserted == 1
    assert [(f.key, f.field) for f in report.failures] == [("a", "payload")]


def test_mode_given_as_string(store: InMemoryStore) -> None:
    report = execute([_insert(make_product("A"))], store, mode="full-replace")

    assert report.mode == SyncMode.FULL_REPLACE
    assert report.inserted == 1
