"""Persistence boundary for mirrored catalog data.

``CatalogStore`` is what the sync engine and the query services talk to. The
PostgreSQL implementation below writes every product together with its
children inside a savepoint, so one failing item never leaves half-written
rows behind and never poisons the rest of the page's transaction.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Callable

import structlog
from sqlalchemy import Select, and_, delete, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_service.domain import (
    CategoryRecord,
    ImageRecord,
    NormalizedProduct,
    ProductFilters,
    ProductRecord,
    ProductSort,
    StoreRecord,
    VariantRecord,
)
from catalog_service.exceptions import ConflictError
from catalog_service.infrastructure.database.connection import get_db_session
from catalog_service.infrastructure.database.models import (
    Category,
    Image,
    Product,
    Store,
    Variant,
)

logger = structlog.get_logger()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CatalogStore(ABC):
    """Async store for stores, products (with variants and images) and categories."""

    # -- stores ---------------------------------------------------------------

    @abstractmethod
    async def get_store(self, store_id: int) -> StoreRecord | None: ...

    @abstractmethod
    async def get_store_by_shop_id(self, shop_id: int) -> StoreRecord | None: ...

    @abstractmethod
    async def get_store_by_url(self, url: str) -> StoreRecord | None: ...

    @abstractmethod
    async def list_stores(self, offset: int = 0, limit: int = 20) -> tuple[list[StoreRecord], int]: ...

    @abstractmethod
    async def list_connected_stores(self) -> list[StoreRecord]:
        """Stores holding both a shop id and an access token."""

    @abstractmethod
    async def create_store(self, store: StoreRecord) -> StoreRecord: ...

    @abstractmethod
    async def update_store(self, store_id: int, changes: dict[str, Any]) -> StoreRecord | None: ...

    @abstractmethod
    async def delete_store(self, store_id: int) -> bool: ...

    @abstractmethod
    async def touch_last_sync(self, store_id: int, at: datetime) -> None: ...

    @abstractmethod
    async def clear_access_token(self, shop_id: int) -> bool: ...

    @abstractmethod
    async def purge_shop(self, shop_id: int) -> dict[str, int]:
        """Delete the store and every catalog row of ``shop_id``; returns per-table counts."""

    # -- products -------------------------------------------------------------

    @abstractmethod
    async def handle_taken(self, shop_id: int, handle: str, exclude_product_id: int) -> bool:
        """True when another product of the shop already uses ``handle``."""

    @abstractmethod
    async def save_product(self, item: NormalizedProduct) -> None:
        """Upsert the product and replace its variants and images."""

    @abstractmethod
    async def record_product_error(self, shop_id: int, product_id: int, error: str) -> None: ...

    @abstractmethod
    async def delete_product(self, shop_id: int, product_id: int) -> bool: ...

    @abstractmethod
    async def get_product(self, shop_id: int, product_id: int) -> ProductRecord | None: ...

    @abstractmethod
    async def find_products(
        self,
        shop_id: int,
        filters: ProductFilters,
        sort: ProductSort = ProductSort.NEWEST,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[ProductRecord], int]: ...

    @abstractmethod
    async def list_products(self, shop_id: int, published: bool | None = None) -> list[ProductRecord]: ...

    @abstractmethod
    async def list_variants(
        self, shop_id: int, product_ids: list[int] | None = None
    ) -> list[VariantRecord]: ...

    @abstractmethod
    async def list_images(self, shop_id: int, product_id: int) -> list[ImageRecord]: ...

    # -- categories -----------------------------------------------------------

    @abstractmethod
    async def save_category(self, category: CategoryRecord) -> None: ...

    @abstractmethod
    async def record_category_error(self, shop_id: int, category_id: int, error: str) -> None: ...

    @abstractmethod
    async def delete_category(self, shop_id: int, category_id: int) -> bool: ...

    @abstractmethod
    async def get_category(self, shop_id: int, category_id: int) -> CategoryRecord | None: ...

    @abstractmethod
    async def list_categories(self, shop_id: int) -> list[CategoryRecord]: ...

    # -- transactions ---------------------------------------------------------

    @abstractmethod
    async def commit(self) -> None: ...


CatalogStoreFactory = Callable[[], AbstractAsyncContextManager[CatalogStore]]


_SORT_COLUMNS = {
    ProductSort.NEWEST: (Product.updated_at_remote.desc().nulls_last(),),
    ProductSort.OLDEST: (Product.created_at_remote.asc().nulls_last(),),
    ProductSort.PRICE_ASC: (Product.price.asc(),),
    ProductSort.PRICE_DESC: (Product.price.desc(),),
    ProductSort.NAME_ASC: (Product.name.asc(),),
    ProductSort.NAME_DESC: (Product.name.desc(),),
}

_STORE_FIELDS = {"name", "url", "description", "logo", "shop_id", "access_token", "last_sync_at"}


class SqlCatalogStore(CatalogStore):
    """PostgreSQL implementation on an ``AsyncSession``."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # -- stores ---------------------------------------------------------------

    async def _store_row(self, *criteria: Any) -> Store | None:
        result = await self.session.execute(select(Store).where(*criteria))
        return result.scalar_one_or_none()

    async def get_store(self, store_id: int) -> StoreRecord | None:
        row = await self._store_row(Store.id == store_id)
        return row.to_record() if row else None

    async def get_store_by_shop_id(self, shop_id: int) -> StoreRecord | None:
        row = await self._store_row(Store.shop_id == shop_id)
        return row.to_record() if row else None

    async def get_store_by_url(self, url: str) -> StoreRecord | None:
        row = await self._store_row(Store.url == url)
        return row.to_record() if row else None

    async def list_stores(self, offset: int = 0, limit: int = 20) -> tuple[list[StoreRecord], int]:
        total = await self.session.scalar(select(func.count()).select_from(Store))
        result = await self.session.execute(
            select(Store).order_by(Store.created_at.desc()).offset(offset).limit(limit)
        )
        return [row.to_record() for row in result.scalars()], total or 0

    async def list_connected_stores(self) -> list[StoreRecord]:
        result = await self.session.execute(
            select(Store)
            .where(Store.shop_id.is_not(None), Store.access_token.is_not(None))
            .order_by(Store.id)
        )
        return [row.to_record() for row in result.scalars()]

    async def create_store(self, store: StoreRecord) -> StoreRecord:
        row = Store(
            name=store.name,
            url=store.url,
            description=store.description,
            logo=store.logo,
            shop_id=store.shop_id,
            access_token=store.access_token,
            last_sync_at=store.last_sync_at,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(row)
                await self.session.flush()
        except IntegrityError as e:
            raise ConflictError(f"Store with url {store.url!r} or same shop already exists") from e
        await self.session.refresh(row)
        return row.to_record()

    async def update_store(self, store_id: int, changes: dict[str, Any]) -> StoreRecord | None:
        row = await self._store_row(Store.id == store_id)
        if row is None:
            return None
        for key, value in changes.items():
            if key in _STORE_FIELDS:
                setattr(row, key, value)
        try:
            async with self.session.begin_nested():
                await self.session.flush()
        except IntegrityError as e:
            raise ConflictError("Store url or shop id already in use") from e
        await self.session.refresh(row)
        return row.to_record()

    async def delete_store(self, store_id: int) -> bool:
        result = await self.session.execute(delete(Store).where(Store.id == store_id))
        return result.rowcount > 0

    async def touch_last_sync(self, store_id: int, at: datetime) -> None:
        await self.session.execute(
            update(Store).where(Store.id == store_id).values(last_sync_at=at)
        )

    async def clear_access_token(self, shop_id: int) -> bool:
        result = await self.session.execute(
            update(Store).where(Store.shop_id == shop_id).values(access_token=None)
        )
        return result.rowcount > 0

    async def purge_shop(self, shop_id: int) -> dict[str, int]:
        counts: dict[str, int] = {}
        for name, model in (
            ("variants", Variant),
            ("images", Image),
            ("products", Product),
            ("categories", Category),
            ("stores", Store),
        ):
            result = await self.session.execute(delete(model).where(model.shop_id == shop_id))
            counts[name] = result.rowcount
        return counts

    # -- products -------------------------------------------------------------

    async def handle_taken(self, shop_id: int, handle: str, exclude_product_id: int) -> bool:
        found = await self.session.scalar(
            select(Product.id)
            .where(
                Product.shop_id == shop_id,
                Product.handle == handle,
                Product.product_id != exclude_product_id,
            )
            .limit(1)
        )
        return found is not None

    async def save_product(self, item: NormalizedProduct) -> None:
        product = item.product
        values = product.to_dict()
        values["synced_at"] = utcnow()
        values["sync_error"] = None

        stmt = pg_insert(Product).values(**values)
        stmt = stmt.on_conflict_do_update(
            constraint="uq_products_shop_product",
            set_={k: stmt.excluded[k] for k in values if k not in ("shop_id", "product_id")},
        )
        owner = and_(Variant.shop_id == product.shop_id, Variant.product_id == product.product_id)
        image_owner = and_(Image.shop_id == product.shop_id, Image.product_id == product.product_id)

        async with self.session.begin_nested():
            await self.session.execute(stmt)
            await self.session.execute(delete(Variant).where(owner))
            await self.session.execute(delete(Image).where(image_owner))
            if item.variants:
                await self.session.execute(
                    pg_insert(Variant), [v.to_dict() for v in item.variants]
                )
            if item.images:
                await self.session.execute(
                    pg_insert(Image), [i.to_dict() for i in item.images]
                )

    async def record_product_error(self, shop_id: int, product_id: int, error: str) -> None:
        """Mark an existing row; an item that never stored successfully has none."""
        async with self.session.begin_nested():
            await self.session.execute(
                update(Product)
                .where(Product.shop_id == shop_id, Product.product_id == product_id)
                .values(sync_error=error, synced_at=utcnow())
            )

    async def delete_product(self, shop_id: int, product_id: int) -> bool:
        await self.session.execute(
            delete(Variant).where(Variant.shop_id == shop_id, Variant.product_id == product_id)
        )
        await self.session.execute(
            delete(Image).where(Image.shop_id == shop_id, Image.product_id == product_id)
        )
        result = await self.session.execute(
            delete(Product).where(Product.shop_id == shop_id, Product.product_id == product_id)
        )
        return result.rowcount > 0

    async def get_product(self, shop_id: int, product_id: int) -> ProductRecord | None:
        result = await self.session.execute(
            select(Product).where(Product.shop_id == shop_id, Product.product_id == product_id)
        )
        row = result.scalar_one_or_none()
        return row.to_record() if row else None

    def _filtered(self, query: Select, shop_id: int, filters: ProductFilters) -> Select:
        query = query.where(Product.shop_id == shop_id)
        if filters.published is not None:
            query = query.where(Product.published == filters.published)
        if filters.min_price is not None:
            query = query.where(Product.price >= filters.min_price)
        if filters.max_price is not None:
            query = query.where(Product.price <= filters.max_price)
        if filters.tags:
            query = query.where(Product.tags.overlap(filters.tags))
        if filters.category_id is not None:
            query = query.where(Product.categories.contains([filters.category_id]))
        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.where(
                or_(
                    Product.name.ilike(pattern),
                    Product.description.ilike(pattern),
                    func.array_to_string(Product.tags, " ").ilike(pattern),
                )
            )
        if filters.in_stock is not None:
            total_stock = (
                select(func.coalesce(func.sum(Variant.stock), 0))
                .where(Variant.shop_id == Product.shop_id, Variant.product_id == Product.product_id)
                .correlate(Product)
                .scalar_subquery()
            )
            query = query.where(total_stock > 0 if filters.in_stock else total_stock == 0)
        return query

    async def find_products(
        self,
        shop_id: int,
        filters: ProductFilters,
        sort: ProductSort = ProductSort.NEWEST,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[ProductRecord], int]:
        count_query = self._filtered(select(func.count(Product.id)), shop_id, filters)
        total = await self.session.scalar(count_query) or 0

        query = (
            self._filtered(select(Product), shop_id, filters)
            .order_by(*_SORT_COLUMNS[sort], Product.product_id)
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return [row.to_record() for row in result.scalars()], total

    async def list_products(self, shop_id: int, published: bool | None = None) -> list[ProductRecord]:
        query = select(Product).where(Product.shop_id == shop_id)
        if published is not None:
            query = query.where(Product.published == published)
        result = await self.session.execute(query.order_by(Product.product_id))
        return [row.to_record() for row in result.scalars()]

    async def list_variants(
        self, shop_id: int, product_ids: list[int] | None = None
    ) -> list[VariantRecord]:
        query = select(Variant).where(Variant.shop_id == shop_id)
        if product_ids is not None:
            query = query.where(Variant.product_id.in_(product_ids))
        result = await self.session.execute(query.order_by(Variant.product_id, Variant.variant_id))
        return [row.to_record() for row in result.scalars()]

    async def list_images(self, shop_id: int, product_id: int) -> list[ImageRecord]:
        result = await self.session.execute(
            select(Image)
            .where(Image.shop_id == shop_id, Image.product_id == product_id)
            .order_by(Image.position, Image.image_id)
        )
        return [row.to_record() for row in result.scalars()]

    # -- categories -----------------------------------------------------------

    async def save_category(self, category: CategoryRecord) -> None:
        values = category.to_dict()
        values["synced_at"] = utcnow()
        values["sync_error"] = None
        stmt = pg_insert(Category).values(**values)
        stmt = stmt.on_conflict_do_update(
            constraint="uq_categories_shop_category",
            set_={k: stmt.excluded[k] for k in values if k not in ("shop_id", "category_id")},
        )
        async with self.session.begin_nested():
            await self.session.execute(stmt)

    async def record_category_error(self, shop_id: int, category_id: int, error: str) -> None:
        async with self.session.begin_nested():
            await self.session.execute(
                update(Category)
                .where(Category.shop_id == shop_id, Category.category_id == category_id)
                .values(sync_error=error, synced_at=utcnow())
            )

    async def delete_category(self, shop_id: int, category_id: int) -> bool:
        result = await self.session.execute(
            delete(Category).where(
                Category.shop_id == shop_id, Category.category_id == category_id
            )
        )
        return result.rowcount > 0

    async def get_category(self, shop_id: int, category_id: int) -> CategoryRecord | None:
        result = await self.session.execute(
            select(Category).where(
                Category.shop_id == shop_id, Category.category_id == category_id
            )
        )
        row = result.scalar_one_or_none()
        return row.to_record() if row else None

    async def list_categories(self, shop_id: int) -> list[CategoryRecord]:
        result = await self.session.execute(
            select(Category).where(Category.shop_id == shop_id).order_by(Category.name)
        )
        return [row.to_record() for row in result.scalars()]

    async def commit(self) -> None:
        await self.session.commit()


@asynccontextmanager
async def catalog_store_scope() -> AsyncGenerator[CatalogStore, None]:
    """A ``SqlCatalogStore`` on its own session; commits on clean exit."""
    async with get_db_session() as session:
        yield SqlCatalogStore(session)
