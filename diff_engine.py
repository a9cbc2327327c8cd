import logging
import warnings
from typing import Dict, List, Optional, Sequence, Tuple

from errors import DuplicateKeyWarning
from schemas import OperationKind, Product, SyncMode, SyncOperation


logger = logging.getLogger(__name__)


def index_by_identity(
    catalog: Sequence[Product],
    duplicates: Optional[List[DuplicateKeyWarning]] = None,
) -> Dict[str, Tuple[int, Product]]:
    """
    Map identity key -> (position, product).
    A repeated key keeps the later record and moves it to the later position.

    Collisions are appended to `duplicates` when given, otherwise they are
    issued through `warnings.warn`.
    """
    indexed: Dict[str, Tuple[int, Product]] = {}
    for position, product in enumerate(catalog):
        key = product.identity_key
        if key in indexed:
            collision = DuplicateKeyWarning(key, indexed[key][0], position)
            if duplicates is not None:
                duplicates.append(collision)
            else:
                warnings.warn(collision, stacklevel=2)
            del indexed[key]
        indexed[key] = (position, product)
    return indexed


def diff(
    current: Sequence[Product],
    incoming: Sequence[Product],
    mode: SyncMode = SyncMode.MERGE,
    duplicates: Optional[List[DuplicateKeyWarning]] = None,
) -> List[SyncOperation]:
    """
    Compute the operations that turn `current` into `incoming`.

    Output follows the incoming order; deletes (full-replace only) are appended
    in current order. Timestamps never make two records differ.
    """
    mode = SyncMode(mode)
    current_index = index_by_identity(current, duplicates)
    incoming_index = index_by_identity(incoming, duplicates)

    operations: List[SyncOperation] = []
    for key, (_, product) in incoming_index.items():
        existing = current_index.get(key)
        if existing is None:
            operations.append(SyncOperation(kind=OperationKind.INSERT, key=key, payload=product))
            continue

        previous = existing[1]
        kind = OperationKind.NOOP if previous.same_content(product) else OperationKind.UPDATE
        operations.append(SyncOperation(kind=kind, key=key, payload=product, previous=previous))

    if mode == SyncMode.FULL_REPLACE:
        for key, (_, previous) in current_index.items():
            if key not in incoming_index:
                operations.append(SyncOperation(kind=OperationKind.DELETE, key=key, previous=previous))

    logger.debug(
        "diff: %d current, %d incoming, %d operations (%s)",
        len(current), len(incoming), len(operations), mode.value,
    )
    return operations
