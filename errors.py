# errors.py


class CatalogSyncError(Exception):
    """Base class for catalog sync failures."""


class ValidationError(CatalogSyncError):
    """A raw record could not be turned into a Product."""

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


class FormatError(CatalogSyncError):
    """A snapshot is malformed or has an unknown format version."""


class StoreUnavailable(CatalogSyncError):
    """The store cannot be reached; the whole run is aborted."""


class PerRecordStoreError(CatalogSyncError):
    """The store rejected a single record (constraint violation, dropped connection)."""


class DuplicateKeyWarning(UserWarning):
    """Two incoming records share an identity key; the later one wins."""

    def __init__(self, key: str, first_index: int, second_index: int):
        super().__init__(
            f"duplicate identity key '{key}' at records {first_index} and {second_index}; "
            f"keeping record {second_index}"
        )
        self.key = key
        self.first_index = first_index
        self.second_index = second_index
