from __future__ import annotations

import os
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------
# Result size policy
# ---------------------------

DEFAULT_LIMIT_FALLBACK = 50
DEFAULT_LIMIT = int(os.getenv("PRODUCT_MATCH_DEFAULT_LIMIT", str(DEFAULT_LIMIT_FALLBACK)))

# Hard pre-filter applied before the final cut. Tuned against the default
# base weights below; re-tune it whenever those change.
DEFAULT_MIN_SCORE = 100.0
MIN_SCORE = float(os.getenv("PRODUCT_MATCH_MIN_SCORE", str(DEFAULT_MIN_SCORE)))


# ---------------------------
# Token handling
# ---------------------------

# prediction tokens must be longer than this ("a", "of" are noise)
MIN_PREDICTION_TOKEN_LEN = 2

# both sides of a substring match must be longer than this
MIN_PARTIAL_TOKEN_LEN = 3

# prefix used for name provenance in MatchResult.matched_fields
NAME_MATCH_PREFIX = "name:"


# ---------------------------
# Filters
# ---------------------------

ALL_CATEGORIES = "all"


# ---------------------------
# Label predictor
# ---------------------------

DEFAULT_CLASSIFIER_MODEL = "google/mobilenet_v2_1.0_224"
IMAGE_CLASSIFIER_MODEL = os.getenv("PRODUCT_MATCH_CLASSIFIER_MODEL", DEFAULT_CLASSIFIER_MODEL)

# the catalog matcher gets the top 10 guesses rather than the usual 3
PREDICTION_TOP_K = int(os.getenv("PRODUCT_MATCH_TOP_K", "10"))


# ---------------------------
# Scoring weights
# ---------------------------

class RankDecay(BaseModel):
    """
    Step function mapping a prediction's rank to a score multiplier.

    ``steps[i]`` is used for rank ``i``; every rank past the last step gets
    ``floor``. The defaults give 5/4/3 for the top three guesses and 2 after.
    """

    model_config = ConfigDict(frozen=True)

    steps: Tuple[float, ...] = (5.0, 4.0, 3.0)
    floor: float = 2.0

    def weight(self, rank: int) -> float:
        if 0 <= rank < len(self.steps):
            return self.steps[rank]
        return self.floor


class FieldWeights(BaseModel):
    """Base weights for one field family (exact vs. substring match)."""

    model_config = ConfigDict(frozen=True)

    exact: float = Field(ge=0)
    partial: float = Field(ge=0)


class ScoringWeights(BaseModel):
    """
    All tunables of the field scorer in one place.

    Names are treated as more specific than free-form tags; category is a
    coarse, containment-only signal.
    """

    model_config = ConfigDict(frozen=True)

    tags: FieldWeights = Field(default_factory=lambda: FieldWeights(exact=100.0, partial=10.0))
    name: FieldWeights = Field(default_factory=lambda: FieldWeights(exact=150.0, partial=15.0))
    category: float = Field(default=5.0, ge=0)
    rank_decay: RankDecay = Field(default_factory=RankDecay)
    min_partial_len: int = Field(default=MIN_PARTIAL_TOKEN_LEN, ge=0)


DEFAULT_WEIGHTS = ScoringWeights()


# ---------------------------
# Pydantic models shared around the app
# ---------------------------

class Prediction(BaseModel):
    """
    One (label, confidence) guess from the image classifier.

    Confidence is expected in [0, 1] but deliberately not validated: an
    out-of-range value only skews scores.
    """

    model_config = ConfigDict(frozen=True)

    label: str
    confidence: float


class CatalogItem(BaseModel):
    """
    Canonical schema for a single catalog product.
    """

    model_config = ConfigDict(frozen=True)

    id: Union[int, str]
    name: str
    category: str = ""
    tags: List[str] = Field(default_factory=list)
    description: str = ""
    price: Optional[float] = None
    image_ref: Optional[str] = None
