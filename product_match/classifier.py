from __future__ import annotations

"""
Owned, load-once wrapper around an external image classifier.

The ranking engine only ever sees the ``Prediction`` list this produces;
the model itself is opaque. ``LabelPredictor`` replaces a process-wide
model global with an explicit resource:

    predictor = LabelPredictor()
    predictions = predictor.predict("photo.jpg")   # loads on first use
    predictor.dispose()

Any callable returning a model works as ``loader``. The model must be
callable as ``model(image)`` (e.g. a transformers pipeline) or expose
``classify(image, top_k)``.
"""

import threading
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

from loguru import logger

from . import config
from .config import Prediction
from .normalize import tokenize

try:
    from transformers import pipeline  # type: ignore
except Exception as e:
    pipeline = None
    _import_err = e

ModelLoader = Callable[[], Any]


def load_default_model(model_name: Optional[str] = None) -> Any:
    """Build a transformers image-classification pipeline on CPU."""
    if pipeline is None:
        raise RuntimeError(f"transformers is not available: {_import_err}")

    model_name = model_name or config.IMAGE_CLASSIFIER_MODEL
    logger.info("Loading image classifier: {}", model_name)
    return pipeline("image-classification", model=model_name, device=-1)


def _to_prediction(raw: Any) -> Prediction:
    if isinstance(raw, Prediction):
        return Prediction(label=raw.label.lower(), confidence=raw.confidence)
    if isinstance(raw, Mapping):
        label = raw.get("label", raw.get("className", ""))
        score = raw.get("score", raw.get("probability", 0.0))
    else:
        label, score = raw
    return Prediction(label=str(label).lower(), confidence=float(score))


class LabelPredictor:
    """Lazily-initialized classifier with an explicit load/dispose lifecycle."""

    def __init__(self, loader: Optional[ModelLoader] = None, top_k: Optional[int] = None):
        self._loader: ModelLoader = loader or load_default_model
        self.top_k = config.PREDICTION_TOP_K if top_k is None else int(top_k)
        self._model: Any = None
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    def load(self) -> Any:
        """Load the model once; concurrent callers share the same instance."""
        if self._model is not None:
            return self._model
        with self._lock:
            if self._model is None:
                model = self._loader()
                if model is None:
                    raise RuntimeError("Model loader returned None")
                self._model = model
                logger.info("Image classifier loaded")
        return self._model

    def _run_model(self, model: Any, image: Any) -> Iterable[Any]:
        if hasattr(model, "classify"):
            return model.classify(image, self.top_k)
        return model(image, top_k=self.top_k)

    def predict(self, image: Any) -> List[Prediction]:
        """Classify ``image``; labels are lower-cased, model order is kept."""
        model = self.load()
        raw = self._run_model(model, image)
        predictions = [_to_prediction(r) for r in raw][: self.top_k]
        logger.info(
            "Classified image: {}",
            [(p.label, round(p.confidence, 3)) for p in predictions],
        )
        return predictions

    def dispose(self) -> None:
        """Release the model; a later ``predict`` loads it again."""
        with self._lock:
            model, self._model = self._model, None
        if model is None:
            return
        for name in ("dispose", "close"):
            release = getattr(model, name, None)
            if callable(release):
                release()
                break
        logger.info("Image classifier disposed")

    def __enter__(self) -> "LabelPredictor":
        self.load()
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()


def extract_tags(predictions: Sequence[Prediction]) -> List[str]:
    """
    Split compound labels into words ("coffee mug" -> "coffee", "mug").

    Deduplicated, first-seen order.
    """
    tags: List[str] = []
    for pred in predictions:
        for word in tokenize(pred.label):
            if word not in tags:
                tags.append(word)
    return tags
