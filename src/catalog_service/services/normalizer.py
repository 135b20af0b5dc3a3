"""Normalization of raw Tiendanube payloads into local catalog records.

Tiendanube returns translatable fields either as a plain string or as a mapping
keyed by language code (``{"es": "Remera", "pt": "Camiseta"}``). Every such
field goes through :func:`localized_text` so the fallback is always explicit.
"""

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any, Union

from catalog_service.domain import (
    CategoryRecord,
    ImageRecord,
    NormalizedProduct,
    ProductRecord,
    VariantRecord,
)
from catalog_service.exceptions import ItemSyncError

PlainString = str
LocalizedMap = Mapping[str, Any]
LocalizedText = Union[PlainString, LocalizedMap, None]

DEFAULT_LANGUAGE = "es"


def localized_text(
    value: LocalizedText, fallback: str = "", language: str = DEFAULT_LANGUAGE
) -> str:
    """Resolve a plain-or-localized field to a single display string."""
    if isinstance(value, str):
        return value or fallback
    if isinstance(value, Mapping):
        preferred = value.get(language)
        if isinstance(preferred, str) and preferred:
            return preferred
        for candidate in value.values():
            if isinstance(candidate, str) and candidate:
                return candidate
    return fallback


def parse_price(value: Any, remote_id: int | None = None) -> float:
    """Parse an upstream price ("199.90", 199.9, None) into a float."""
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ItemSyncError(f"Invalid price {value!r}", remote_id=remote_id) from e


def parse_timestamp(value: Any) -> datetime | None:
    """Parse Tiendanube timestamps such as ``2024-03-01T12:00:00+0000``."""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def split_tags(value: Any) -> list[str]:
    """Split a comma separated tag string; absent or blank yields ``[]``."""
    if not value:
        return []
    if isinstance(value, list):
        return [str(t).strip() for t in value if str(t).strip()]
    return [tag.strip() for tag in str(value).split(",") if tag.strip()]


def build_permalink(shop_id: int, handle: str | None, canonical_url: str | None) -> str | None:
    if canonical_url:
        return canonical_url
    if not handle:
        return None
    return f"https://{shop_id}.mitiendanube.com/productos/{handle}"


def resolve_handle(
    handle: str | None, product_id: int, collides: Callable[[str], bool]
) -> str | None:
    """Suffix the remote id when another product of the shop already owns ``handle``."""
    if not handle:
        return handle
    if collides(handle):
        return f"{handle}-{product_id}"
    return handle


def _require_id(raw: Mapping[str, Any], kind: str) -> int:
    remote_id = raw.get("id")
    if remote_id is None:
        raise ItemSyncError(f"{kind} payload has no id")
    try:
        return int(remote_id)
    except (TypeError, ValueError) as e:
        raise ItemSyncError(f"{kind} id {remote_id!r} is not an integer") from e


def _int_or_none(value: Any) -> int | None:
    if value in (None, "", 0):
        return None
    return int(value)


def normalize_variant(
    raw: Mapping[str, Any], shop_id: int, product_id: int, language: str = DEFAULT_LANGUAGE
) -> VariantRecord:
    variant_id = _require_id(raw, "Variant")
    return VariantRecord(
        shop_id=shop_id,
        product_id=product_id,
        variant_id=variant_id,
        sku=raw.get("sku") or "",
        price=parse_price(raw.get("price"), remote_id=product_id),
        # null stock means "unlimited" upstream
        stock=int(raw.get("stock") or 0),
        options=[localized_text(v, language=language) for v in raw.get("values") or []],
        updated_at_remote=parse_timestamp(raw.get("updated_at")),
    )


def normalize_image(
    raw: Mapping[str, Any], shop_id: int, product_id: int, language: str = DEFAULT_LANGUAGE
) -> ImageRecord:
    alt = raw.get("alt")
    if isinstance(alt, list):
        alt = alt[0] if alt else None
    return ImageRecord(
        shop_id=shop_id,
        product_id=product_id,
        image_id=_require_id(raw, "Image"),
        src=raw.get("src") or "",
        alt=localized_text(alt, language=language),
        position=int(raw.get("position") or 0),
    )


def normalize_product(
    raw: Mapping[str, Any], shop_id: int, language: str = DEFAULT_LANGUAGE
) -> NormalizedProduct:
    """Convert one upstream product into a product record plus its children.

    The base price is the first variant's price (0 when there are no variants);
    the handle is returned as-is, collision handling happens at save time.
    """
    product_id = _require_id(raw, "Product")
    raw_variants = raw.get("variants") or []
    raw_images = raw.get("images") or []

    variants = [normalize_variant(v, shop_id, product_id, language) for v in raw_variants]
    images = [normalize_image(i, shop_id, product_id, language) for i in raw_images]

    handle = localized_text(raw.get("handle"), language=language) or None

    product = ProductRecord(
        shop_id=shop_id,
        product_id=product_id,
        name=localized_text(raw.get("name"), f"Product {product_id}", language),
        description=localized_text(raw.get("description"), "", language),
        price=variants[0].price if variants else 0.0,
        handle=handle,
        permalink=build_permalink(shop_id, handle, raw.get("canonical_url")),
        published=bool(raw.get("published", False)),
        tags=split_tags(raw.get("tags")),
        categories=[int(c["id"]) for c in raw.get("categories") or [] if c.get("id") is not None],
        main_image=images[0].src if images else None,
        created_at_remote=parse_timestamp(raw.get("created_at")),
        updated_at_remote=parse_timestamp(raw.get("updated_at")),
    )
    return NormalizedProduct(product=product, variants=variants, images=images)


def normalize_category(
    raw: Mapping[str, Any], shop_id: int, language: str = DEFAULT_LANGUAGE
) -> CategoryRecord:
    category_id = _require_id(raw, "Category")
    return CategoryRecord(
        shop_id=shop_id,
        category_id=category_id,
        name=localized_text(raw.get("name"), f"Category {category_id}", language),
        description=localized_text(raw.get("description"), "", language),
        handle=localized_text(raw.get("handle"), language=language) or None,
        parent=_int_or_none(raw.get("parent")),
        subcategories=[int(s) for s in raw.get("subcategories") or []],
        seo_title=localized_text(raw.get("seo_title"), "", language),
        seo_description=localized_text(raw.get("seo_description"), "", language),
        google_shopping_category=raw.get("google_shopping_category"),
        created_at_remote=parse_timestamp(raw.get("created_at")),
        updated_at_remote=parse_timestamp(raw.get("updated_at")),
    )
