from __future__ import annotations

"""
Display-side filters that compose with ranking output.

Both filters return a new list and keep the input order, so they can be
applied in any order, before or after ``rank_catalog``.
"""

from typing import List, Optional, Sequence

from .config import ALL_CATEGORIES, CatalogItem


def _matches_query(item: CatalogItem, query: str) -> bool:
    if query in item.name.lower():
        return True
    if query in item.category.lower():
        return True
    if any(query in tag.lower() for tag in item.tags):
        return True
    return query in item.description.lower()


def filter_by_query(items: Sequence[CatalogItem], query: Optional[str]) -> List[CatalogItem]:
    """Case-insensitive substring search over name, category, tags and description."""
    if not query or not query.strip():
        return list(items)

    q = query.strip().lower()
    return [item for item in items if _matches_query(item, q)]


def filter_by_category(items: Sequence[CatalogItem], category: Optional[str]) -> List[CatalogItem]:
    """Exact (case-sensitive) category match; ``"all"`` or blank keeps everything."""
    if not category or category == ALL_CATEGORIES:
        return list(items)
    return [item for item in items if item.category == category]


def get_categories(items: Sequence[CatalogItem]) -> List[str]:
    """Distinct categories, sorted, with the ``"all"`` sentinel first."""
    return [ALL_CATEGORIES] + sorted({item.category for item in items})
