"""
Record normalizer: turns a raw catalog record (admin form payload, seed file,
snapshot entry, Shopify mapping) into a canonical Product.
"""

import math
import re
from datetime import datetime
from typing import Any, Mapping, Optional

import pydantic

from errors import ValidationError
from schemas import Product, ProductImage, ProductVideo, VideoPlatform


MAX_NAME_LENGTH = 100

_TRUE_STRINGS = {"true", "yes", "on", "1"}
_FALSE_STRINGS = {"false", "no", "off", "0", ""}

_YOUTUBE_RE = re.compile(r"(youtube\.com|youtu\.be)/", re.IGNORECASE)
_VIMEO_RE = re.compile(r"vimeo\.com/", re.IGNORECASE)


def _pick(raw: Mapping, *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _required_text(raw: Mapping, field: str, *keys: str) -> str:
    value = _pick(raw, field, *keys)
    if value is None:
        raise ValidationError(field, "is required")
    if not isinstance(value, str):
        raise ValidationError(field, f"expected text, got {type(value).__name__}")
    value = value.strip()
    if not value:
        raise ValidationError(field, "must not be empty")
    return value


def _optional_text(value: Any, field: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(field, f"expected text, got {type(value).__name__}")
    return value.strip() or None


def _coerce_price(value: Any) -> float:
    if value is None:
        raise ValidationError("price", "is required")
    if isinstance(value, bool):
        raise ValidationError("price", "expected a number, got bool")
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ValidationError("price", f"cannot convert {value!r} to a number")
    if math.isnan(price) or math.isinf(price):
        raise ValidationError("price", "must be a finite number")
    if price < 0:
        raise ValidationError("price", "must be non-negative")
    return round(price, 2)


def _coerce_inventory(value: Any) -> int:
    if value is None:
        raise ValidationError("inventory", "is required")
    if isinstance(value, bool):
        raise ValidationError("inventory", "expected an integer, got bool")
    if isinstance(value, int):
        inventory = value
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValidationError("inventory", f"cannot convert {value!r} to an integer")
        if math.isnan(number) or math.isinf(number) or not number.is_integer():
            raise ValidationError("inventory", f"{value!r} is not a whole number")
        inventory = int(number)
    if inventory < 0:
        raise ValidationError("inventory", "must be non-negative")
    return inventory


def _coerce_featured(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValidationError("featured", f"cannot convert {value!r} to a boolean")


def _coerce_timestamp(value: Any, field: str) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass
    raise ValidationError(field, f"cannot parse {value!r} as an ISO-8601 timestamp")


def _coerce_images(value: Any, default_alt: str) -> list:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError("images", f"expected a list, got {type(value).__name__}")

    images = []
    for index, entry in enumerate(value):
        if isinstance(entry, str):
            url, alt = entry, None
        elif isinstance(entry, Mapping):
            url = _optional_text(_pick(entry, "url", "src"), f"images[{index}].url")
            alt = _optional_text(_pick(entry, "altText", "alt_text", "alt"), f"images[{index}].altText")
        else:
            raise ValidationError(f"images[{index}]", f"expected an object, got {type(entry).__name__}")

        url = (url or "").strip()
        if not url:
            continue
        images.append(ProductImage(url=url, alt_text=alt or default_alt))
    return images


def detect_video_platform(url: str) -> VideoPlatform:
    if _YOUTUBE_RE.search(url):
        return VideoPlatform.YOUTUBE
    if _VIMEO_RE.search(url):
        return VideoPlatform.VIMEO
    return VideoPlatform.OTHER


def _coerce_video(value: Any) -> Optional[ProductVideo]:
    if value is None:
        return None
    if isinstance(value, str):
        value = {"url": value}
    if not isinstance(value, Mapping):
        raise ValidationError("video", f"expected an object, got {type(value).__name__}")

    url = _optional_text(value.get("url"), "video.url")
    if not url:
        return None

    platform = _optional_text(_pick(value, "platform", "type"), "video.platform")
    if platform:
        try:
            resolved = VideoPlatform(platform.lower())
        except ValueError:
            raise ValidationError("video.platform", f"unknown platform {platform!r}")
    else:
        resolved = detect_video_platform(url)

    return ProductVideo(
        url=url,
        platform=resolved,
        title=_optional_text(value.get("title"), "video.title"),
    )


def normalize(raw: Any) -> Product:
    """
    Validate and canonicalize one raw record.
    Raises ValidationError(field, reason) on the first bad field.
    """
    if isinstance(raw, Product):
        raw = raw.model_dump(by_alias=True)
    if not isinstance(raw, Mapping):
        raise ValidationError("record", f"expected an object, got {type(raw).__name__}")

    name = _required_text(raw, "name")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError("name", f"must be at most {MAX_NAME_LENGTH} characters")

    description = _required_text(raw, "description")
    price = _coerce_price(_pick(raw, "price"))
    inventory = _coerce_inventory(_pick(raw, "inventory"))
    category = _required_text(raw, "category")
    featured = _coerce_featured(_pick(raw, "featured"))

    image_path = _optional_text(_pick(raw, "imagePath", "image_path"), "imagePath")
    images = _coerce_images(_pick(raw, "images"), default_alt=name)
    video = _coerce_video(_pick(raw, "video"))

    created_at = _coerce_timestamp(_pick(raw, "createdAt", "created_at"), "createdAt")
    updated_at = _coerce_timestamp(_pick(raw, "updatedAt", "updated_at"), "updatedAt")

    try:
        return Product(
            name=name,
            description=description,
            price=price,
            inventory=inventory,
            category=category,
            featured=featured,
            image_path=image_path,
            images=images,
            video=video,
            created_at=created_at,
            updated_at=updated_at,
        )
    except pydantic.ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "record"
        raise ValidationError(field, error["msg"])
