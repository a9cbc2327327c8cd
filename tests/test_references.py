from __future__ import annotations

from conftest import make_product
from references import resolve_references
from schemas import ProductImage


def test_image_list_overrides_legacy_path() -> None:
    product = make_product(
        image_path="/images/old.jpg",
        images=[ProductImage(url="/images/new.jpg"), ProductImage(url="/images/side.jpg")],
    )

    resolved = resolve_references(product)

    assert resolved.image_path == "/images/new.jpg"
    assert [image.url for image in resolved.images] == ["/images/new.jpg", "/images/side.jpg"]


def test_legacy_path_only_builds_image_list() -> None:
    resolved = resolve_references(make_product(image_path="/images/cloud.jpg"))

    assert resolved.images == [ProductImage(url="/images/cloud.jpg", alt_text="Cloud Slime")]
    assert resolved.image_path == "/images/cloud.jpg"


def test_images_only_fills_legacy_path() -> None:
    resolved = resolve_references(make_product(images=[ProductImage(url="/images/a.jpg")]))

    assert resolved.image_path == "/images/a.jpg"


def test_no_images_stays_empty() -> None:
    resolved = resolve_references(make_product(image_path="   "))

    assert resolved.images == []
    assert resolved.image_path is None


def test_consistent_product_is_returned_unchanged() -> None:
    product = make_product(image_path="/images/a.jpg", images=[ProductImage(url="/images/a.jpg")])

    assert resolve_references(product) is product


def test_resolving_twice_changes_nothing() -> None:
    once = resolve_references(make_product(image_path="/images/a.jpg"))

    assert resolve_references(once) == once


def test_does_not_mutate_input() -> None:
    product = make_product(image_path="/images/old.jpg", images=[ProductImage(url="/images/new.jpg")])

    resolve_references(product)

    assert product.image_path == "/images/old.jpg"
