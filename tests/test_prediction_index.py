from product_match.config import Prediction
from product_match.pipeline_types import PredictionToken
from product_match.prediction_index import build_prediction_index


def test_index_carries_confidence_and_rank():
    preds = [
        Prediction(label="coffee mug", confidence=0.9),
        Prediction(label="teapot", confidence=0.05),
    ]
    index = build_prediction_index(preds)

    assert index == [
        PredictionToken(token="coffee mug", confidence=0.9, rank=0),
        PredictionToken(token="coffee", confidence=0.9, rank=0),
        PredictionToken(token="mug", confidence=0.9, rank=0),
        PredictionToken(token="teapot", confidence=0.05, rank=1),
        PredictionToken(token="teapot", confidence=0.05, rank=1),
    ]


def test_index_drops_short_tokens():
    index = build_prediction_index([Prediction(label="cup of tea", confidence=0.5)])
    tokens = [t.token for t in index]
    assert "of" not in tokens
    assert tokens == ["cup of tea", "cup", "tea"]


def test_index_keeps_input_order_not_confidence_order():
    preds = [
        Prediction(label="lamp", confidence=0.1),
        Prediction(label="desk", confidence=0.8),
    ]
    index = build_prediction_index(preds)
    assert [(t.token, t.rank) for t in index][0] == ("lamp", 0)
    assert index[-1].rank == 1


def test_same_word_recurs_across_predictions():
    preds = [
        Prediction(label="water bottle", confidence=0.6),
        Prediction(label="wine bottle", confidence=0.3),
    ]
    bottle = [t for t in build_prediction_index(preds) if t.token == "bottle"]
    assert [(t.confidence, t.rank) for t in bottle] == [(0.6, 0), (0.3, 1)]


def test_empty_inputs():
    assert build_prediction_index([]) == []
    assert build_prediction_index([Prediction(label="a", confidence=1.0)]) == []
