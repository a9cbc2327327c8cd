"""
Applies SyncOperations to a store.

Operations run one at a time in order. Each one is checked against the state
read at the start of the run, so replaying operations that already landed is
a no-op. Inserts and updates run first; deletes run only when that phase
finished cleanly.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set

from errors import PerRecordStoreError, ValidationError
from schemas import OperationKind, Product, RecordFailure, SyncMode, SyncOperation, SyncReport
from store import CatalogStore


logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _stamp(payload: Product, existing: Optional[Product]) -> Product:
    now = _now()
    created_at = (existing.created_at if existing else None) or payload.created_at or now
    return payload.model_copy(update={"created_at": created_at, "updated_at": now})


class _Run:
    def __init__(self, store: CatalogStore, mode: SyncMode, known_categories: Optional[Set[str]]):
        self.store = store
        self.mode = mode
        self.known_categories = known_categories
        self.state: Dict[str, Product] = {p.identity_key: p for p in store.find_all()}
        self.counts = {"inserted": 0, "updated": 0, "deleted": 0, "unchanged": 0}
        self.failures: List[RecordFailure] = []

    def fail(self, op: SyncOperation, error: Exception, field: Optional[str] = None):
        logger.warning("sync %s '%s' failed: %s", op.kind.value, op.key, error)
        self.failures.append(RecordFailure(
            key=op.key,
            kind=op.kind,
            error=type(error).__name__,
            field=field,
            detail=str(error),
        ))

    def write(self, op: SyncOperation):
        payload = op.payload
        if payload is None:
            raise ValidationError("payload", f"{op.kind.value} operation has no record to write")

        existing = self.state.get(op.key)
        if existing is not None and existing.same_content(payload):
            self.counts["unchanged"] += 1
            return

        if self.known_categories is not None and payload.category not in self.known_categories:
            raise ValidationError("category", f"unknown category '{payload.category}'")

        stamped = _stamp(payload, existing)
        self.store.upsert_by_identity(stamped)
        self.state[op.key] = stamped
        self.counts["inserted" if existing is None else "updated"] += 1

    def delete(self, op: SyncOperation):
        if op.key not in self.state:
            self.counts["unchanged"] += 1
            return
        self.store.delete_by_identity(op.key)
        del self.state[op.key]
        self.counts["deleted"] += 1

    def apply(self, op: SyncOperation):
        try:
            if op.kind == OperationKind.DELETE:
                self.delete(op)
            else:
                self.write(op)
        except ValidationError as e:
            self.fail(op, e, field=e.field)
        except PerRecordStoreError as e:
            self.fail(op, e)


def execute(
    operations: Iterable[SyncOperation],
    store: CatalogStore,
    *,
    mode: SyncMode = SyncMode.MERGE,
    known_categories: Optional[Set[str]] = None,
    cancel_event=None,
    failures: Iterable[RecordFailure] = (),
    warnings: Iterable[str] = (),
) -> SyncReport:
    """
    Apply operations and return a SyncReport.

    Per-record failures are collected in the report; only StoreUnavailable
    escapes. `failures` handed in (e.g. records rejected by the normalizer)
    count against the run and block the delete phase like any other failure.
    `cancel_event` is anything with `is_set()`, checked before each operation.
    """
    mode = SyncMode(mode)
    run = _Run(store, mode, known_categories)
    run.failures.extend(failures)

    operations = list(operations)
    writes = [op for op in operations if op.kind != OperationKind.DELETE]
    deletes = [op for op in operations if op.kind == OperationKind.DELETE]

    logger.info(
        "sync start (%s): %d writes, %d deletes", mode.value, len(writes), len(deletes)
    )

    cancelled = False
    for op in writes:
        if cancel_event is not None and cancel_event.is_set():
            cancelled = True
            break
        run.apply(op)

    deletes_skipped = False
    if deletes and (cancelled or run.failures):
        deletes_skipped = True
        logger.warning(
            "skipping %d deletes: %s",
            len(deletes), "run cancelled" if cancelled else f"{len(run.failures)} records failed",
        )
    else:
        for op in deletes:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                break
            run.apply(op)

    report = SyncReport(
        mode=mode,
        failures=run.failures,
        warnings=list(warnings),
        cancelled=cancelled,
        deletes_skipped=deletes_skipped,
        **run.counts,
    )
    logger.info(
        "sync done (%s): inserted=%d updated=%d deleted=%d unchanged=%d failed=%d%s",
        mode.value, report.inserted, report.updated, report.deleted,
        report.unchanged, report.failed, " (cancelled)" if cancelled else "",
    )
    return report
