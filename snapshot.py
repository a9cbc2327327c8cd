"""
Versioned catalog snapshots.

    {"formatVersion": 1, "exportedAt": "...", "records": [ {...product...}, ... ]}

Records use the camelCase field names of Product and never carry
storage-internal identifiers.
"""

import json
import logging
from datetime import datetime, timezone
from typing import List, Union

import pydantic

from errors import FormatError
from schemas import Product, Snapshot
from store import CatalogStore


logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
SUPPORTED_FORMAT_VERSIONS = {1}

REQUIRED_RECORD_FIELDS = ("name", "description", "price", "inventory", "category")


def export_snapshot(store: CatalogStore) -> Snapshot:
    records = store.find_all()
    logger.info("exporting %d products", len(records))
    return Snapshot(
        format_version=FORMAT_VERSION,
        exported_at=datetime.now(timezone.utc),
        records=records,
    )


def dump_snapshot(snapshot: Snapshot) -> bytes:
    return snapshot.model_dump_json(by_alias=True, indent=2).encode("utf-8")


def _check_envelope(document) -> None:
    if not isinstance(document, dict):
        raise FormatError(f"snapshot must be a JSON object, got {type(document).__name__}")

    if "formatVersion" not in document:
        raise FormatError("snapshot has no formatVersion")
    version = document["formatVersion"]
    if isinstance(version, bool) or not isinstance(version, int):
        raise FormatError(f"formatVersion must be an integer, got {version!r}")
    if version not in SUPPORTED_FORMAT_VERSIONS:
        raise FormatError(f"unsupported formatVersion {version}")

    if "exportedAt" not in document:
        raise FormatError("snapshot has no exportedAt")
    if not isinstance(document.get("records"), list):
        raise FormatError("snapshot records must be a list")

    for index, record in enumerate(document["records"]):
        if not isinstance(record, dict):
            raise FormatError(f"record {index} must be an object, got {type(record).__name__}")
        missing = [field for field in REQUIRED_RECORD_FIELDS if field not in record]
        if missing:
            raise FormatError(f"record {index} is missing {', '.join(missing)}")


def load_snapshot(data: Union[bytes, str]) -> Snapshot:
    """Parse and validate a snapshot envelope. Raises FormatError."""
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(f"snapshot is not valid UTF-8: {e}") from e

    try:
        document = json.loads(data)
    except json.JSONDecodeError as e:
        raise FormatError(f"snapshot is not valid JSON: {e}") from e

    _check_envelope(document)

    # strict: "12", "5" or "yes" in a typed field is a format error, not a value
    try:
        return Snapshot.model_validate_json(data, strict=True)
    except pydantic.ValidationError as e:
        error = e.errors()[0]
        location = ".".join(str(part) for part in error["loc"])
        raise FormatError(f"{location}: {error['msg']}") from e


def import_snapshot(data: Union[bytes, str]) -> List[Product]:
    return load_snapshot(data).records
