"""SQLAlchemy models for the catalog mirror.

All tables live in the 'catalog' schema. Catalog rows are keyed by the remote
Tiendanube shop id plus the remote entity id, so re-syncing the same upstream
data always lands on the same rows.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    ARRAY,
    BigInteger,
    Boolean,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from catalog_service.domain import (
    CategoryRecord,
    ImageRecord,
    ProductRecord,
    StoreRecord,
    VariantRecord,
)

# Schema for all catalog tables
SCHEMA = "catalog"


class Base(DeclarativeBase):
    """Base class for all models."""

    __table_args__ = {"schema": SCHEMA}


# =============================================================================
# Stores
# =============================================================================


class Store(Base):
    """A tenant; linked to a Tiendanube shop once OAuth completes."""

    __tablename__ = "stores"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    logo: Mapped[str] = mapped_column(String(1000), default="")

    shop_id: Mapped[Optional[int]] = mapped_column(BigInteger, unique=True, index=True)
    access_token: Mapped[Optional[str]] = mapped_column(String(255))
    last_sync_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = ({"schema": SCHEMA},)

    def to_record(self) -> StoreRecord:
        return StoreRecord(
            id=self.id,
            name=self.name,
            url=self.url,
            description=self.description or "",
            logo=self.logo or "",
            shop_id=self.shop_id,
            access_token=self.access_token,
            last_sync_at=self.last_sync_at,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


# =============================================================================
# Products
# =============================================================================


class Product(Base):
    """A mirrored Tiendanube product."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shop_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    product_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    name: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    price: Mapped[float] = mapped_column(Float, default=0.0)
    handle: Mapped[Optional[str]] = mapped_column(String(500))
    permalink: Mapped[Optional[str]] = mapped_column(String(1000))
    published: Mapped[bool] = mapped_column(Boolean, default=False)
    tags: Mapped[list[str]] = mapped_column(ARRAY(String), default=list)
    categories: Mapped[list[int]] = mapped_column(ARRAY(BigInteger), default=list)
    main_image: Mapped[Optional[str]] = mapped_column(String(1000))

    created_at_remote: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    updated_at_remote: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    synced_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    sync_error: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint("shop_id", "product_id", name="uq_products_shop_product"),
        Index("ix_products_shop_handle", "shop_id", "handle"),
        Index("ix_products_shop_published", "shop_id", "published"),
        {"schema": SCHEMA},
    )

    def to_record(self) -> ProductRecord:
        return ProductRecord(
            shop_id=self.shop_id,
            product_id=self.product_id,
            name=self.name,
            price=self.price,
            description=self.description or "",
            handle=self.handle,
            permalink=self.permalink,
            published=self.published,
            tags=list(self.tags or []),
            categories=list(self.categories or []),
            main_image=self.main_image,
            created_at_remote=self.created_at_remote,
            updated_at_remote=self.updated_at_remote,
            synced_at=self.synced_at,
            sync_error=self.sync_error,
        )


class Variant(Base):
    """A purchasable variant of a product; replaced wholesale on every resync."""

    __tablename__ = "variants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shop_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    product_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    variant_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    sku: Mapped[str] = mapped_column(String(255), default="")
    price: Mapped[float] = mapped_column(Float, default=0.0)
    stock: Mapped[int] = mapped_column(Integer, default=0)
    options: Mapped[list[str]] = mapped_column(ARRAY(String), default=list)
    updated_at_remote: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint(
            "shop_id", "product_id", "variant_id", name="uq_variants_shop_product_variant"
        ),
        Index("ix_variants_shop_product", "shop_id", "product_id"),
        {"schema": SCHEMA},
    )

    def to_record(self) -> VariantRecord:
        return VariantRecord(
            shop_id=self.shop_id,
            product_id=self.product_id,
            variant_id=self.variant_id,
            price=self.price,
            sku=self.sku or "",
            stock=self.stock,
            options=list(self.options or []),
            updated_at_remote=self.updated_at_remote,
        )


class Image(Base):
    """A product image; replaced wholesale on every resync."""

    __tablename__ = "images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shop_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    product_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    image_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    src: Mapped[str] = mapped_column(String(1000), nullable=False)
    alt: Mapped[str] = mapped_column(String(500), default="")
    position: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (
        UniqueConstraint("shop_id", "product_id", "image_id", name="uq_images_shop_product_image"),
        Index("ix_images_shop_product", "shop_id", "product_id"),
        {"schema": SCHEMA},
    )

    def to_record(self) -> ImageRecord:
        return ImageRecord(
            shop_id=self.shop_id,
            product_id=self.product_id,
            image_id=self.image_id,
            src=self.src,
            alt=self.alt or "",
            position=self.position,
        )


# =============================================================================
# Categories
# =============================================================================


class Category(Base):
    """A mirrored Tiendanube category. ``parent`` may point at a row that does not exist."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shop_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    category_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    name: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    handle: Mapped[Optional[str]] = mapped_column(String(500))
    parent: Mapped[Optional[int]] = mapped_column(BigInteger)
    subcategories: Mapped[list[int]] = mapped_column(ARRAY(BigInteger), default=list)
    seo_title: Mapped[str] = mapped_column(String(500), default="")
    seo_description: Mapped[str] = mapped_column(Text, default="")
    google_shopping_category: Mapped[Optional[str]] = mapped_column(String(500))

    created_at_remote: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    updated_at_remote: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    synced_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    sync_error: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint("shop_id", "category_id", name="uq_categories_shop_category"),
        Index("ix_categories_shop_parent", "shop_id", "parent"),
        {"schema": SCHEMA},
    )

    def to_record(self) -> CategoryRecord:
        return CategoryRecord(
            shop_id=self.shop_id,
            category_id=self.category_id,
            name=self.name,
            description=self.description or "",
            handle=self.handle,
            parent=self.parent,
            subcategories=list(self.subcategories or []),
            seo_title=self.seo_title or "",
            seo_description=self.seo_description or "",
            google_shopping_category=self.google_shopping_category,
            created_at_remote=self.created_at_remote,
            updated_at_remote=self.updated_at_remote,
            synced_at=self.synced_at,
            sync_error=self.sync_error,
        )
