"""
Field-level relevance scoring between catalog items and a prediction index.

Every (field token, prediction token) pair is tested with a match strategy
(exact equality, else substring containment for longer tokens) and the
contribution is

    base_weight * confidence * rank_weight(rank)

summed over all pairs. The classifier's top few guesses dominate through
the rank decay step function (5/4/3/2 by default).

Weights live in ``config.ScoringWeights`` so they can be tuned without code
changes.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from .config import DEFAULT_WEIGHTS, NAME_MATCH_PREFIX, CatalogItem, RankDecay, ScoringWeights
from .normalize import tokenize_with_whole
from .pipeline_types import FieldScore, MatchResult, PredictionToken

EXACT = "exact"
PARTIAL = "partial"

# (field_token, prediction_token, min_partial_len) -> EXACT | PARTIAL | None
MatchStrategy = Callable[[str, str, int], Optional[str]]


def match_kind(field_token: str, pred_token: str, min_partial_len: int) -> Optional[str]:
    """Default match strategy: exact equality, else two-way containment.

    Containment only counts when both tokens are longer than
    ``min_partial_len`` so short fragments do not collide.
    """
    if field_token == pred_token:
        return EXACT
    if len(field_token) > min_partial_len and len(pred_token) > min_partial_len:
        if pred_token in field_token or field_token in pred_token:
            return PARTIAL
    return None


def rank_weight(rank: int, decay: Optional[RankDecay] = None) -> float:
    decay = decay or DEFAULT_WEIGHTS.rank_decay
    return decay.weight(rank)


def score_field(
    field_tokens: Sequence[str],
    prediction_index: Sequence[PredictionToken],
    base_exact: float,
    base_partial: float,
    rank_decay: Optional[RankDecay] = None,
    min_partial_len: Optional[int] = None,
    matcher: MatchStrategy = match_kind,
) -> FieldScore:
    """
    Sum the contributions of every (field token, prediction token) pair.

    Args:
        field_tokens: Tokens of one field value (see ``tokenize_with_whole``).
        prediction_index: Output of ``build_prediction_index``.
        base_exact: Base weight for an exact match.
        base_partial: Base weight for a substring match.
        rank_decay: Rank multiplier step function; defaults to 5/4/3/2.
        min_partial_len: Length gate for substring matches.
        matcher: Match strategy, ``match_kind`` by default.

    Returns:
        FieldScore with the summed score and whether anything matched.
    """
    rank_decay = rank_decay or DEFAULT_WEIGHTS.rank_decay
    if min_partial_len is None:
        min_partial_len = DEFAULT_WEIGHTS.min_partial_len

    score = 0.0
    matched = False
    for field_token in field_tokens:
        for pred in prediction_index:
            kind = matcher(field_token, pred.token, min_partial_len)
            if kind == EXACT:
                base = base_exact
            elif kind == PARTIAL:
                base = base_partial
            else:
                continue
            score += base * pred.confidence * rank_decay.weight(pred.rank)
            matched = True
    return FieldScore(score=score, matched=matched)


def score_category(
    category: str,
    prediction_index: Sequence[PredictionToken],
    base: float,
    rank_decay: Optional[RankDecay] = None,
) -> float:
    """Flat, containment-only score for the coarse category field."""
    rank_decay = rank_decay or DEFAULT_WEIGHTS.rank_decay
    cat = (category or "").strip().lower()
    if not cat:
        return 0.0

    score = 0.0
    for pred in prediction_index:
        if pred.token in cat or cat in pred.token:
            score += base * pred.confidence * rank_decay.weight(pred.rank)
    return score


def _add_unique(out: List[str], value: str) -> None:
    if value not in out:
        out.append(value)


def score_item(
    item: CatalogItem,
    prediction_index: Sequence[PredictionToken],
    weights: Optional[ScoringWeights] = None,
    matcher: MatchStrategy = match_kind,
) -> MatchResult:
    """
    Total relevance of one item: tags + name words + category.

    ``matched_fields`` lists each matching tag verbatim and each matching
    name word as ``name:<word>``, once each, in first-seen order.
    """
    w = weights or DEFAULT_WEIGHTS
    total = 0.0
    matched_fields: List[str] = []

    if not prediction_index:
        return MatchResult(item=item, score=0.0, matched_fields=matched_fields)

    for tag in item.tags:
        fs = score_field(
            tokenize_with_whole(tag),
            prediction_index,
            w.tags.exact,
            w.tags.partial,
            rank_decay=w.rank_decay,
            min_partial_len=w.min_partial_len,
            matcher=matcher,
        )
        total += fs.score
        if fs.matched:
            _add_unique(matched_fields, tag)

    # name words are scored one at a time so each gets its own provenance
    for word in tokenize_with_whole(item.name):
        fs = score_field(
            [word],
            prediction_index,
            w.name.exact,
            w.name.partial,
            rank_decay=w.rank_decay,
            min_partial_len=w.min_partial_len,
            matcher=matcher,
        )
        total += fs.score
        if fs.matched:
            _add_unique(matched_fields, f"{NAME_MATCH_PREFIX}{word}")

    total += score_category(item.category, prediction_index, w.category, rank_decay=w.rank_decay)

    return MatchResult(item=item, score=total, matched_fields=matched_fields)
