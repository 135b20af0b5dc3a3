"""Category endpoints, scoped to a Tiendanube shop."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from catalog_service.api.dependencies import get_category_query_service
from catalog_service.services.category_query import CategoryQueryService

router = APIRouter()


@router.get("/{shop_id}")
async def list_categories(
    shop_id: int,
    service: CategoryQueryService = Depends(get_category_query_service),
) -> dict[str, Any]:
    """All categories of the shop, flat and as a tree."""
    return await service.get_categories(shop_id)


@router.get("/{shop_id}/tree")
async def get_tree(
    shop_id: int,
    service: CategoryQueryService = Depends(get_category_query_service),
) -> dict[str, Any]:
    return {"tree": await service.get_tree(shop_id)}


@router.get("/{shop_id}/roots")
async def get_roots(
    shop_id: int,
    service: CategoryQueryService = Depends(get_category_query_service),
) -> dict[str, Any]:
    roots = await service.get_roots(shop_id)
    return {"categories": roots, "total": len(roots)}


@router.get("/{shop_id}/stats")
async def get_stats(
    shop_id: int,
    service: CategoryQueryService = Depends(get_category_query_service),
) -> dict[str, Any]:
    return await service.get_stats(shop_id)


@router.get("/{shop_id}/search")
async def search_categories(
    shop_id: int,
    q: Annotated[str, Query(min_length=1, max_length=200)],
    service: CategoryQueryService = Depends(get_category_query_service),
) -> dict[str, Any]:
    results = await service.search(shop_id, q)
    return {"categories": results, "total": len(results), "query": q}


@router.get("/{shop_id}/{category_id}")
async def get_category(
    shop_id: int,
    category_id: int,
    service: CategoryQueryService = Depends(get_category_query_service),
) -> dict[str, Any]:
    return await service.get_category(shop_id, category_id)


@router.get("/{shop_id}/{category_id}/subcategories")
async def get_subcategories(
    shop_id: int,
    category_id: int,
    service: CategoryQueryService = Depends(get_category_query_service),
) -> dict[str, Any]:
    children = await service.get_subcategories(shop_id, category_id)
    return {"categories": children, "total": len(children)}


@router.get("/{shop_id}/{category_id}/breadcrumb")
async def get_breadcrumb(
    shop_id: int,
    category_id: int,
    service: CategoryQueryService = Depends(get_category_query_service),
) -> dict[str, Any]:
    return {"breadcrumb": await service.get_breadcrumb(shop_id, category_id)}
