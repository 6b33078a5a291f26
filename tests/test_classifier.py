import threading
import time

import pytest

from product_match import classifier
from product_match.classifier import LabelPredictor, extract_tags, load_default_model
from product_match.config import Prediction
from product_match.normalize import tokenize


class DummyPipeline:
    """Same call shape as a transformers image-classification pipeline."""

    def __init__(self):
        self.disposed = False
        self.calls = []

    def __call__(self, image, top_k=5):
        self.calls.append((image, top_k))
        out = [
            {"label": "Coffee Mug", "score": 0.8},
            {"label": "Espresso", "score": 0.1},
            {"label": "Cup", "score": 0.05},
        ]
        return out[:top_k]

    def dispose(self):
        self.disposed = True


class DummyClassifier:
    """Browser-style model: classify(image, k) with className/probability."""

    def classify(self, image, k):
        return [{"className": "Water Bottle", "probability": 0.7}]


class CountingLoader:
    def __init__(self, factory=DummyPipeline, delay=0.0):
        self.factory = factory
        self.delay = delay
        self.count = 0
        self.models = []

    def __call__(self):
        self.count += 1
        time.sleep(self.delay)
        model = self.factory()
        self.models.append(model)
        return model


def test_predict_loads_lazily_and_lowercases():
    loader = CountingLoader()
    predictor = LabelPredictor(loader=loader, top_k=10)
    assert not predictor.is_loaded

    preds = predictor.predict("mug.jpg")

    assert predictor.is_loaded
    assert loader.count == 1
    assert preds[0] == Prediction(label="coffee mug", confidence=0.8)
    assert [p.label for p in preds] == ["coffee mug", "espresso", "cup"]
    assert loader.models[0].calls == [("mug.jpg", 10)]


def test_predict_respects_top_k():
    predictor = LabelPredictor(loader=CountingLoader(), top_k=2)
    assert len(predictor.predict("img")) == 2


def test_classify_style_model():
    predictor = LabelPredictor(loader=DummyClassifier)
    assert predictor.predict("img") == [Prediction(label="water bottle", confidence=0.7)]


def test_load_is_idempotent():
    loader = CountingLoader()
    predictor = LabelPredictor(loader=loader)
    first = predictor.load()
    second = predictor.load()
    predictor.predict("img")
    assert first is second
    assert loader.count == 1


def test_concurrent_load_initializes_once():
    loader = CountingLoader(delay=0.05)
    predictor = LabelPredictor(loader=loader)

    threads = [threading.Thread(target=predictor.load) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert loader.count == 1


def test_dispose_releases_and_allows_reload():
    loader = CountingLoader()
    predictor = LabelPredictor(loader=loader)
    predictor.load()

    predictor.dispose()
    assert not predictor.is_loaded
    assert loader.models[0].disposed

    predictor.predict("img")
    assert loader.count == 2


def test_dispose_without_load_is_noop():
    LabelPredictor(loader=CountingLoader()).dispose()


def test_context_manager_lifecycle():
    loader = CountingLoader()
    with LabelPredictor(loader=loader) as predictor:
        assert predictor.is_loaded
    assert not predictor.is_loaded
    assert loader.models[0].disposed


def test_loader_returning_none_raises():
    predictor = LabelPredictor(loader=lambda: None)
    with pytest.raises(RuntimeError):
        predictor.predict("img")
    assert not predictor.is_loaded


def test_default_loader_without_transformers(monkeypatch):
    monkeypatch.setattr(classifier, "pipeline", None)
    monkeypatch.setattr(classifier, "_import_err", ImportError("missing"), raising=False)
    with pytest.raises(RuntimeError):
        load_default_model()


def test_default_loader_builds_pipeline(monkeypatch):
    seen = {}

    def fake_pipeline(task, model=None, device=None):
        seen.update(task=task, model=model, device=device)
        return DummyPipeline()

    monkeypatch.setattr(classifier, "pipeline", fake_pipeline)
    model = load_default_model("some/model")
    assert isinstance(model, DummyPipeline)
    assert seen == {"task": "image-classification", "model": "some/model", "device": -1}


def test_extract_tags_splits_and_dedups():
    preds = [
        Prediction(label="coffee mug", confidence=0.9),
        Prediction(label="Mug, Cup", confidence=0.1),
    ]
    assert extract_tags(preds) == ["coffee", "mug", "cup"]


def test_extract_tags_matches_tokenizer():
    preds = [Prediction(label="  Water   Bottle,, Flask ", confidence=0.5)]
    assert extract_tags(preds) == tokenize("water bottle flask")
