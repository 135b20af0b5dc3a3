"""Derived views over a shop's flat category list.

Parent links come straight from Tiendanube and are not validated, so a parent
may be missing (the category is then a root) or links may form a cycle. Every
upward walk here tracks visited ids and stops on a repeat.
"""

from typing import Any

from catalog_service.domain import CategoryRecord


def _find_cycle(category_id: int, by_id: dict[int, CategoryRecord]) -> list[int] | None:
    """Return the cycle reachable from ``category_id`` by parent links, if any."""
    path: list[int] = []
    position: dict[int, int] = {}
    current: int | None = category_id
    while current is not None and current in by_id:
        if current in position:
            return path[position[current]:]
        position[current] = len(path)
        path.append(current)
        current = by_id[current].parent
    return None


def effective_parents(categories: list[CategoryRecord]) -> dict[int, int | None]:
    """Map each category id to the parent used for tree building.

    Unresolvable parents become ``None``; in each parent cycle the smallest id
    is promoted to root so the remaining links form a proper tree.
    """
    by_id = {c.category_id: c for c in categories}
    parents: dict[int, int | None] = {
        c.category_id: c.parent if c.parent in by_id and c.parent != c.category_id else None
        for c in categories
    }
    for category_id in by_id:
        cycle = _find_cycle(category_id, by_id)
        if cycle:
            parents[min(cycle)] = None
    return parents


def _node(category: CategoryRecord) -> dict[str, Any]:
    node = category.to_dict()
    node["children"] = []
    return node


def build_category_tree(categories: list[CategoryRecord]) -> list[dict[str, Any]]:
    """Nest categories by parent; every category appears exactly once.

    Siblings are ordered by name, then id.
    """
    parents = effective_parents(categories)
    nodes = {c.category_id: _node(c) for c in categories}
    roots: list[dict[str, Any]] = []

    for category in categories:
        node = nodes[category.category_id]
        parent_id = parents[category.category_id]
        if parent_id is None:
            roots.append(node)
        else:
            nodes[parent_id]["children"].append(node)

    def sort_level(level: list[dict[str, Any]]) -> None:
        level.sort(key=lambda n: (n["name"].lower(), n["category_id"]))
        for n in level:
            sort_level(n["children"])

    sort_level(roots)
    return roots


def build_breadcrumb(categories: list[CategoryRecord], category_id: int) -> list[dict[str, Any]]:
    """Root-first trail of ``{id, name, handle}`` ending at ``category_id``.

    Walks the same parent links as the tree. Unknown ids yield an empty trail.
    """
    by_id = {c.category_id: c for c in categories}
    parents = effective_parents(categories)
    trail: list[dict[str, Any]] = []
    visited: set[int] = set()
    current: int | None = category_id

    while current is not None and current in by_id and current not in visited:
        visited.add(current)
        category = by_id[current]
        trail.insert(0, {"id": category.category_id, "name": category.name, "handle": category.handle})
        current = parents[current]

    return trail


def max_depth(categories: list[CategoryRecord]) -> int:
    """Length of the longest resolvable parent chain; a lone root has depth 1."""
    parents = effective_parents(categories)
    deepest = 0
    for category in categories:
        depth = 0
        visited: set[int] = set()
        current: int | None = category.category_id
        while current is not None and current not in visited:
            visited.add(current)
            depth += 1
            current = parents[current]
        deepest = max(deepest, depth)
    return deepest


def category_stats(categories: list[CategoryRecord]) -> dict[str, Any]:
    parents = effective_parents(categories)
    with_children = {p for p in parents.values() if p is not None}
    roots = sum(1 for p in parents.values() if p is None)
    return {
        "total_categories": len(categories),
        "root_categories": roots,
        "categories_with_subcategories": len(with_children),
        "categories_without_subcategories": len(categories) - len(with_children),
        "max_depth": max_depth(categories),
    }
