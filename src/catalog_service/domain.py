"""Plain records exchanged between the sync engine, the store adapter and the API."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


@dataclass
class StoreRecord:
    """A local tenant linked (once OAuth completes) to a Tiendanube shop."""

    name: str
    url: str
    id: int | None = None
    description: str = ""
    logo: str = ""
    shop_id: int | None = None
    access_token: str | None = None
    last_sync_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.shop_id and self.access_token)

    def to_dict(self) -> dict[str, Any]:
        """Public representation; the access token is never included."""
        data = asdict(self)
        data.pop("access_token")
        data["connected"] = self.has_credentials
        return data


@dataclass
class VariantRecord:
    shop_id: int
    product_id: int
    variant_id: int
    price: float
    sku: str = ""
    stock: int = 0
    options: list[str] = field(default_factory=list)
    updated_at_remote: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ImageRecord:
    shop_id: int
    product_id: int
    image_id: int
    src: str
    alt: str = ""
    position: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ProductRecord:
    shop_id: int
    product_id: int
    name: str
    price: float
    description: str = ""
    handle: str | None = None
    permalink: str | None = None
    published: bool = False
    tags: list[str] = field(default_factory=list)
    categories: list[int] = field(default_factory=list)
    main_image: str | None = None
    created_at_remote: datetime | None = None
    updated_at_remote: datetime | None = None
    synced_at: datetime | None = None
    sync_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CategoryRecord:
    shop_id: int
    category_id: int
    name: str
    description: str = ""
    handle: str | None = None
    parent: int | None = None
    subcategories: list[int] = field(default_factory=list)
    seo_title: str = ""
    seo_description: str = ""
    google_shopping_category: str | None = None
    created_at_remote: datetime | None = None
    updated_at_remote: datetime | None = None
    synced_at: datetime | None = None
    sync_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class NormalizedProduct:
    """A product together with the children that replace the stored ones."""

    product: ProductRecord
    variants: list[VariantRecord] = field(default_factory=list)
    images: list[ImageRecord] = field(default_factory=list)


class ProductSort(str, Enum):
    """Sort orders accepted by product listings."""

    NEWEST = "newest"
    OLDEST = "oldest"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"


@dataclass
class ProductFilters:
    published: bool | None = None
    min_price: float | None = None
    max_price: float | None = None
    in_stock: bool | None = None
    tags: list[str] = field(default_factory=list)
    category_id: int | None = None
    search: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Only the filters that were actually applied."""
        return {k: v for k, v in asdict(self).items() if v not in (None, [])}


@dataclass
class SyncItemError:
    id: int | None
    error: str


@dataclass
class SyncSummary:
    """Outcome of one sync invocation; returned even under partial failure."""

    store_id: int
    resource: str
    total_synced: int = 0
    pages_fetched: int = 0
    reached_page_limit: bool = False
    errors: list[SyncItemError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "total_synced": self.total_synced,
            "store_id": self.store_id,
            "pages_fetched": self.pages_fetched,
            "reached_page_limit": self.reached_page_limit,
        }
        if self.errors:
            data["errors"] = [asdict(e) for e in self.errors]
        return data


def page_info(page: int, limit: int, total: int) -> dict[str, Any]:
    """Pagination block shared by every listing response."""
    total_pages = -(-total // limit) if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": total_pages,
        "has_next_page": page < total_pages,
        "has_prev_page": page > 1,
    }
