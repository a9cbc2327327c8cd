from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from errors import PerRecordStoreError, StoreUnavailable
from schemas import Category, Product, make_identity_key


class InMemoryStore:
    """Catalog store fake. Keys in `fail_on` make writes raise PerRecordStoreError."""

    def __init__(self, products=(), categories=()):
        self.rows: dict[str, Product] = {}
        for product in products:
            self.rows[product.identity_key] = product
        self.categories = set(categories)
        self.fail_on: set[str] = set()
        self.unavailable = False
        self.writes: list[tuple[str, str]] = []

    def find_all(self) -> list[Product]:
        if self.unavailable:
            raise StoreUnavailable("store is down")
        return list(self.rows.values())

    def upsert_by_identity(self, product: Product) -> None:
        key = product.identity_key
        self.writes.append(("upsert", key))
        if key in self.fail_on:
            raise PerRecordStoreError(f"constraint violation on '{key}'")
        self.rows[key] = product

    def delete_by_identity(self, key: str) -> None:
        self.writes.append(("delete", key))
        if key in self.fail_on:
            raise PerRecordStoreError(f"cannot delete '{key}'")
        self.rows.pop(key, None)

    def find_categories(self) -> set[str]:
        if self.unavailable:
            raise StoreUnavailable("store is down")
        return set(self.categories)

    def upsert_category(self, category: Category) -> None:
        if make_identity_key(category.name) in self.fail_on:
            raise PerRecordStoreError(f"cannot create category '{category.name}'")
        self.categories.add(category.name)

    def contents(self) -> dict:
        return {key: product.content() for key, product in self.rows.items()}


CATEGORIES = {"Cloud Slime", "Butter Slime", "Glitter Slime"}


def make_product(name: str = "Cloud Slime", **overrides) -> Product:
    data = {
        "name": name,
        "description": f"{name} description",
        "price": 12.0,
        "inventory": 5,
        "category": "Cloud Slime",
    }
    data.update(overrides)
    return Product(**data)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore(categories=CATEGORIES)
