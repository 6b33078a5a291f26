import pytest
from pydantic import ValidationError

from product_match.config import (
    DEFAULT_WEIGHTS,
    CatalogItem,
    FieldWeights,
    Prediction,
    RankDecay,
    ScoringWeights,
)


def test_default_weights():
    assert DEFAULT_WEIGHTS.tags == FieldWeights(exact=100.0, partial=10.0)
    assert DEFAULT_WEIGHTS.name == FieldWeights(exact=150.0, partial=15.0)
    assert DEFAULT_WEIGHTS.category == 5.0
    assert DEFAULT_WEIGHTS.min_partial_len == 3


def test_rank_decay_step_function():
    decay = RankDecay()
    assert [decay.weight(r) for r in range(5)] == [5.0, 4.0, 3.0, 2.0, 2.0]
    assert decay.weight(-1) == 2.0


def test_negative_weights_rejected():
    with pytest.raises(ValidationError):
        FieldWeights(exact=-1.0, partial=0.0)
    with pytest.raises(ValidationError):
        ScoringWeights(category=-5.0)


def test_models_are_frozen():
    pred = Prediction(label="mug", confidence=0.5)
    with pytest.raises(ValidationError):
        pred.confidence = 0.9


def test_prediction_confidence_not_range_checked():
    assert Prediction(label="mug", confidence=1.7).confidence == 1.7


def test_catalog_item_defaults():
    item = CatalogItem(id="sku-1", name="Mug")
    assert item.tags == []
    assert item.category == ""
    assert item.description == ""
    assert item.price is None
    assert item.image_ref is None
