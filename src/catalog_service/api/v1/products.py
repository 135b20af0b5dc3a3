"""Product catalog endpoints, scoped to a Tiendanube shop."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from catalog_service.api.dependencies import get_product_query_service
from catalog_service.domain import ProductFilters, ProductSort
from catalog_service.services.product_query import ProductQueryService

router = APIRouter()


def _split_tags(tags: list[str] | None) -> list[str]:
    """Accept both ``?tags=a&tags=b`` and ``?tags=a,b``."""
    result: list[str] = []
    for value in tags or []:
        result.extend(t.strip() for t in value.split(",") if t.strip())
    return result


@router.get("/{shop_id}")
async def list_products(
    shop_id: int,
    published: bool | None = None,
    min_price: Annotated[float | None, Query(ge=0)] = None,
    max_price: Annotated[float | None, Query(ge=0)] = None,
    in_stock: bool | None = None,
    tags: Annotated[list[str] | None, Query()] = None,
    category_id: int | None = None,
    search: Annotated[str | None, Query(max_length=200)] = None,
    sort: ProductSort = ProductSort.NEWEST,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    service: ProductQueryService = Depends(get_product_query_service),
) -> dict[str, Any]:
    filters = ProductFilters(
        published=published,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        tags=_split_tags(tags),
        category_id=category_id,
        search=search or None,
    )
    return await service.list_products(shop_id, filters, sort, page, limit)


@router.get("/{shop_id}/search")
async def search_products(
    shop_id: int,
    q: Annotated[str, Query(min_length=1, max_length=200)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    service: ProductQueryService = Depends(get_product_query_service),
) -> dict[str, Any]:
    filters = ProductFilters(published=True, search=q)
    return await service.list_products(shop_id, filters, ProductSort.NEWEST, page, limit)


@router.get("/{shop_id}/tags")
async def get_tags(
    shop_id: int,
    service: ProductQueryService = Depends(get_product_query_service),
) -> dict[str, Any]:
    tags = await service.get_tags(shop_id)
    return {"tags": tags, "total": len(tags)}


@router.get("/{shop_id}/tags/{tag}")
async def get_products_by_tag(
    shop_id: int,
    tag: str,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    service: ProductQueryService = Depends(get_product_query_service),
) -> dict[str, Any]:
    filters = ProductFilters(published=True, tags=[tag])
    return await service.list_products(shop_id, filters, ProductSort.NEWEST, page, limit)


@router.get("/{shop_id}/featured")
async def get_featured(
    shop_id: int,
    limit: Annotated[int, Query(ge=1, le=50)] = 12,
    service: ProductQueryService = Depends(get_product_query_service),
) -> dict[str, Any]:
    return {"products": await service.get_featured(shop_id, limit)}


@router.get("/{shop_id}/price-range")
async def get_price_range(
    shop_id: int,
    service: ProductQueryService = Depends(get_product_query_service),
) -> dict[str, float]:
    return await service.get_price_range(shop_id)


@router.get("/{shop_id}/stats")
async def get_stats(
    shop_id: int,
    service: ProductQueryService = Depends(get_product_query_service),
) -> dict[str, Any]:
    return await service.get_stats(shop_id)


@router.get("/{shop_id}/{product_id}")
async def get_product(
    shop_id: int,
    product_id: int,
    service: ProductQueryService = Depends(get_product_query_service),
) -> dict[str, Any]:
    return await service.get_product(shop_id, product_id)


@router.get("/{shop_id}/{product_id}/related")
async def get_related(
    shop_id: int,
    product_id: int,
    limit: Annotated[int, Query(ge=1, le=24)] = 6,
    service: ProductQueryService = Depends(get_product_query_service),
) -> dict[str, Any]:
    return await service.get_related(shop_id, product_id, limit)
