from __future__ import annotations

"""
Ranking engine: predictions + catalog -> relevance-ordered items.

Steps:
  1) build the prediction index once
  2) score every item (tags + name + category)
  3) keep items scoring at least MIN_SCORE (and above zero)
  4) stable sort by score desc, so ties keep catalog order
  5) truncate to ``limit``
  6) if nothing survived, fall back to the first ``limit`` catalog items

The engine is a pure function of its inputs; it never mutates the catalog
and holds no state between calls.
"""

import time
from typing import List, Optional, Sequence

from loguru import logger

from . import config
from .config import ALL_CATEGORIES, CatalogItem, Prediction, ScoringWeights
from .filters import filter_by_category, filter_by_query
from .pipeline_types import MatchResult
from .prediction_index import build_prediction_index
from .scoring import MatchStrategy, match_kind, score_item

_TOP_LOGGED = 10


def score_catalog(
    predictions: Sequence[Prediction],
    catalog: Sequence[CatalogItem],
    weights: Optional[ScoringWeights] = None,
    matcher: MatchStrategy = match_kind,
) -> List[MatchResult]:
    """Score every catalog item; results stay in catalog order."""
    index = build_prediction_index(predictions)
    return [score_item(item, index, weights=weights, matcher=matcher) for item in catalog]


def rank_matches(
    predictions: Sequence[Prediction],
    catalog: Sequence[CatalogItem],
    limit: Optional[int] = None,
    weights: Optional[ScoringWeights] = None,
    min_score: Optional[float] = None,
    matcher: MatchStrategy = match_kind,
) -> List[MatchResult]:
    """
    Scored, filtered and sorted matches, without the fallback.

    Args:
        predictions: Classifier output, most confident first.
        catalog: Items to rank.
        limit: Max results (defaults to config.DEFAULT_LIMIT).
        weights: Scorer weights (defaults to config.DEFAULT_WEIGHTS).
        min_score: Pre-filter threshold (defaults to config.MIN_SCORE).
        matcher: Token match strategy.

    Returns:
        MatchResult list, best first, at most ``limit`` long.
    """
    limit = config.DEFAULT_LIMIT if limit is None else max(0, int(limit))
    min_score = config.MIN_SCORE if min_score is None else float(min_score)

    scored = score_catalog(predictions, catalog, weights=weights, matcher=matcher)
    kept = [r for r in scored if r.score > 0 and r.score >= min_score]

    # sorted() is stable: equal scores keep catalog input order
    ranked = sorted(kept, key=lambda r: -r.score)

    logger.info("Scored {} items: {} at or above {:.1f}", len(scored), len(kept), min_score)
    for r in ranked[:_TOP_LOGGED]:
        logger.debug(
            "  {:.2f} {} matched={} tags={}",
            r.score, r.item.name, r.matched_fields, r.item.tags,
        )

    return ranked[:limit]


def rank_catalog(
    predictions: Sequence[Prediction],
    catalog: Sequence[CatalogItem],
    limit: Optional[int] = None,
    weights: Optional[ScoringWeights] = None,
    min_score: Optional[float] = None,
    matcher: MatchStrategy = match_kind,
) -> List[CatalogItem]:
    """
    Rank ``catalog`` by relevance to ``predictions``.

    Never returns an empty list for a non-empty catalog (and positive
    limit): when no item qualifies, the first ``limit`` items are returned
    in their original order.
    """
    limit = config.DEFAULT_LIMIT if limit is None else max(0, int(limit))
    started = time.perf_counter()

    matches = rank_matches(
        predictions,
        catalog,
        limit=limit,
        weights=weights,
        min_score=min_score,
        matcher=matcher,
    )
    elapsed_ms = (time.perf_counter() - started) * 1000.0

    if not matches:
        logger.info(
            "No matches for {} predictions; returning first {} catalog items ({:.1f} ms)",
            len(predictions), min(limit, len(catalog)), elapsed_ms,
        )
        return list(catalog[:limit])

    logger.info("Returning {} matched items ({:.1f} ms)", len(matches), elapsed_ms)
    return [r.item for r in matches]


def search_catalog(
    predictions: Sequence[Prediction],
    catalog: Sequence[CatalogItem],
    limit: Optional[int] = None,
    query: Optional[str] = None,
    category: Optional[str] = ALL_CATEGORIES,
    weights: Optional[ScoringWeights] = None,
) -> List[CatalogItem]:
    """Rank, then narrow by free-text query and category for display."""
    items = rank_catalog(predictions, catalog, limit=limit, weights=weights)
    items = filter_by_query(items, query)
    return filter_by_category(items, category)
