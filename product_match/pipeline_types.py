"""Typed containers shared across pipeline modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .config import CatalogItem


@dataclass(frozen=True)
class PredictionToken:
    """One normalized word from a prediction label, with its origin."""

    token: str
    confidence: float
    rank: int


@dataclass(frozen=True)
class FieldScore:
    score: float
    matched: bool


@dataclass
class MatchResult:
    """Score of a single catalog item against a prediction index."""

    item: CatalogItem
    score: float
    matched_fields: List[str] = field(default_factory=list)
