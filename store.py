# store.py
import json
import logging
from typing import List, Protocol, Set

import httpx
from postgrest.exceptions import APIError

from errors import PerRecordStoreError, StoreUnavailable
from schemas import Category, Product


logger = logging.getLogger(__name__)

PRODUCTS_TABLE = "products"
CATEGORIES_TABLE = "categories"

# storage-internal identifiers never leave the store
_INTERNAL_COLUMNS = {"product_id", "id", "identity_key"}


class CatalogStore(Protocol):
    def find_all(self) -> List[Product]: ...

    def upsert_by_identity(self, product: Product) -> None: ...

    def delete_by_identity(self, key: str) -> None: ...

    def find_categories(self) -> Set[str]: ...

    def upsert_category(self, category: Category) -> None: ...


def product_from_row(row: dict) -> Product:
    data = {k: v for k, v in row.items() if k not in _INTERNAL_COLUMNS}

    # older rows keep images/video as JSON text
    for column in ("images", "video"):
        if isinstance(data.get(column), str):
            try:
                data[column] = json.loads(data[column])
            except ValueError:
                logger.warning("dropping unreadable %s on '%s'", column, data.get("name"))
                data[column] = None
    if data.get("images") is None:
        data["images"] = []

    return Product.model_validate(data)


def product_to_row(product: Product) -> dict:
    row = product.model_dump(mode="json")
    row["identity_key"] = product.identity_key
    return row


class SupabaseCatalogStore:
    """
    Catalog store over a supabase client owned by the caller.
    `products.identity_key` and `categories.name` carry unique constraints.
    """

    def __init__(self, client):
        self.client = client

    def _read(self, table: str, columns: str = "*"):
        try:
            return self.client.table(table).select(columns).execute().data or []
        except (APIError, httpx.HTTPError) as e:
            raise StoreUnavailable(f"cannot read {table}: {e}") from e

    def _write(self, action: str, key: str, query):
        try:
            return query.execute()
        except httpx.TimeoutException as e:
            raise StoreUnavailable(f"{action} '{key}' timed out: {e}") from e
        except (APIError, httpx.TransportError) as e:
            raise PerRecordStoreError(f"{action} '{key}' failed: {e}") from e

    def find_all(self) -> List[Product]:
        return [product_from_row(row) for row in self._read(PRODUCTS_TABLE)]

    def upsert_by_identity(self, product: Product) -> None:
        query = (
            self.client.table(PRODUCTS_TABLE)
            .upsert(product_to_row(product), on_conflict="identity_key")
        )
        self._write("upsert", product.identity_key, query)

    def delete_by_identity(self, key: str) -> None:
        query = self.client.table(PRODUCTS_TABLE).delete().eq("identity_key", key)
        self._write("delete", key, query)

    def find_categories(self) -> Set[str]:
        return {row["name"] for row in self._read(CATEGORIES_TABLE, "name")}

    def upsert_category(self, category: Category) -> None:
        row = category.model_dump(mode="json", exclude_none=True)
        query = self.client.table(CATEGORIES_TABLE).upsert(row, on_conflict="name")
        self._write("upsert category", category.name, query)
