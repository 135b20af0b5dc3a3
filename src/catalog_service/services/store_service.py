"""Store management."""

from typing import Any

import structlog

from catalog_service.domain import StoreRecord, page_info
from catalog_service.exceptions import ConflictError, NotFoundError
from catalog_service.repositories import CatalogStore

logger = structlog.get_logger()


class StoreService:
    """CRUD over local stores. Everything returned goes through ``StoreRecord.to_dict``,
    which drops the access token."""

    def __init__(self, store: CatalogStore):
        self.store = store

    async def create(self, name: str, url: str, description: str = "", logo: str = "") -> dict[str, Any]:
        if await self.store.get_store_by_url(url) is not None:
            raise ConflictError(f"A store with url {url!r} already exists")
        record = await self.store.create_store(
            StoreRecord(name=name, url=url, description=description, logo=logo)
        )
        await self.store.commit()
        logger.info("Store created", store_id=record.id, url=url)
        return record.to_dict()

    async def list(self, page: int = 1, limit: int = 20) -> dict[str, Any]:
        stores, total = await self.store.list_stores(offset=(page - 1) * limit, limit=limit)
        return {
            "stores": [s.to_dict() for s in stores],
            "pagination": page_info(page, limit, total),
        }

    async def get(self, store_id: int) -> dict[str, Any]:
        return (await self.require(store_id)).to_dict()

    async def require(self, store_id: int) -> StoreRecord:
        record = await self.store.get_store(store_id)
        if record is None:
            raise NotFoundError(f"Store {store_id} not found")
        return record

    async def update(self, store_id: int, changes: dict[str, Any]) -> dict[str, Any]:
        current = await self.require(store_id)

        url = changes.get("url")
        if url and url != current.url:
            other = await self.store.get_store_by_url(url)
            if other is not None and other.id != store_id:
                raise ConflictError(f"A store with url {url!r} already exists")

        shop_id = changes.get("shop_id")
        if shop_id and shop_id != current.shop_id:
            other = await self.store.get_store_by_shop_id(shop_id)
            if other is not None and other.id != store_id:
                raise ConflictError(f"Shop {shop_id} is already linked to store {other.id}")

        record = await self.store.update_store(store_id, changes)
        await self.store.commit()
        logger.info("Store updated", store_id=store_id, fields=sorted(changes))
        return record.to_dict()

    async def delete(self, store_id: int) -> None:
        if not await self.store.delete_store(store_id):
            raise NotFoundError(f"Store {store_id} not found")
        await self.store.commit()
        logger.info("Store deleted", store_id=store_id)
