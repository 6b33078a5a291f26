from __future__ import annotations

from typing import List, Sequence

from loguru import logger

from .config import MIN_PREDICTION_TOKEN_LEN, Prediction
from .normalize import tokenize_with_whole
from .pipeline_types import PredictionToken


def build_prediction_index(
    predictions: Sequence[Prediction],
    min_token_len: int = MIN_PREDICTION_TOKEN_LEN,
) -> List[PredictionToken]:
    """
    Flatten ranked predictions into (token, confidence, rank) triples.

    ``rank`` is the position of the originating prediction in the input,
    which is taken as-is (the classifier already orders by confidence).
    Tokens of ``min_token_len`` characters or fewer are dropped.
    """
    index: List[PredictionToken] = []
    for rank, pred in enumerate(predictions):
        for token in tokenize_with_whole(pred.label):
            if len(token) > min_token_len:
                index.append(
                    PredictionToken(token=token, confidence=float(pred.confidence), rank=rank)
                )

    logger.debug("Prediction index: {} tokens from {} predictions", len(index), len(predictions))
    return index
