# sync.py
import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from diff_engine import diff
from errors import DuplicateKeyWarning, PerRecordStoreError, ValidationError
from executor import execute
from normalizer import normalize
from references import resolve_references
from schemas import Category, Product, RecordFailure, Snapshot, SyncMode, SyncReport, make_identity_key
from snapshot import import_snapshot
from store import CatalogStore
from utils import SEED_PRODUCTS


logger = logging.getLogger(__name__)


def _load_records(source) -> List[Any]:
    if isinstance(source, (bytes, str)):
        return list(import_snapshot(source))
    if isinstance(source, Snapshot):
        return list(source.records)
    if hasattr(source, "find_all"):
        return list(source.find_all())
    return list(source)


def _record_key(raw) -> Optional[str]:
    if isinstance(raw, Product):
        name = raw.name
    elif isinstance(raw, Mapping):
        name = raw.get("name")
    else:
        name = None
    if isinstance(name, str) and name.strip():
        return make_identity_key(name)
    return None


def prepare_catalog(records: Iterable[Any]) -> Tuple[List[Product], List[RecordFailure]]:
    """Normalize and resolve every record; invalid ones become failures."""
    products: List[Product] = []
    failures: List[RecordFailure] = []
    for raw in records:
        try:
            products.append(resolve_references(normalize(raw)))
        except ValidationError as e:
            key = _record_key(raw)
            logger.warning("skipping record '%s': %s", key, e)
            failures.append(RecordFailure(
                key=key,
                error=type(e).__name__,
                field=e.field,
                detail=e.reason,
            ))
    return products, failures


def _reconcile(mode, records, store, cancel_event=None, failures=()) -> SyncReport:
    incoming, rejected = prepare_catalog(records)
    current = store.find_all()

    duplicates: List[DuplicateKeyWarning] = []
    operations = diff(current, incoming, mode, duplicates=duplicates)
    for duplicate in duplicates:
        logger.warning("%s", duplicate)

    return execute(
        operations,
        store,
        mode=mode,
        known_categories=store.find_categories(),
        cancel_event=cancel_event,
        failures=list(failures) + rejected,
        warnings=[str(duplicate) for duplicate in duplicates],
    )


def run_sync(
    mode: SyncMode,
    source,
    store: CatalogStore,
    *,
    cancel_event=None,
) -> SyncReport:
    """
    Reconcile the store with `source`.

    `source` is snapshot bytes/text, a Snapshot, another store, or an iterable
    of raw records. Raises FormatError (before the store is touched) and
    StoreUnavailable; everything else ends up in the returned report.
    Callers authenticate before calling and serialize full-replace runs.
    """
    mode = SyncMode(mode)
    return _reconcile(mode, _load_records(source), store, cancel_event=cancel_event)


def reconcile_images(store: CatalogStore) -> SyncReport:
    """Re-resolve image references of every stored product in place."""
    return run_sync(SyncMode.MERGE, store, store)


def seed_catalog(store: CatalogStore, records: Optional[Iterable[Any]] = None) -> SyncReport:
    """Replace the catalog with the seed data, creating its categories first."""
    records = list(SEED_PRODUCTS if records is None else records)

    names = set()
    for record in records:
        category = record.get("category") if isinstance(record, Mapping) else None
        if isinstance(category, str) and category.strip():
            names.add(category.strip())

    failures = []
    for name in sorted(names):
        try:
            store.upsert_category(Category(name=name))
        except PerRecordStoreError as e:
            logger.warning("seed category '%s' failed: %s", name, e)
            failures.append(RecordFailure(
                key=make_identity_key(name),
                error=type(e).__name__,
                field="category",
                detail=str(e),
            ))

    return _reconcile(SyncMode.FULL_REPLACE, records, store, failures=failures)
