from __future__ import annotations

"""
Command-line entry point: classify (or read predictions) -> rank -> filter.

    python -m product_match --catalog products.json --predictions preds.json
    python -m product_match --catalog products.csv --image mug.jpg --limit 10
    python -m product_match --catalog products.json --list-categories
"""

import argparse
import json
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger

from . import config
from .catalog import load_catalog
from .classifier import LabelPredictor
from .config import Prediction
from .filters import get_categories
from .ranking import search_catalog


def load_predictions(path: Path) -> List[Prediction]:
    """
    Read a JSON list of predictions. Accepts ``label``/``confidence`` or
    the ``className``/``probability`` keys browser classifiers emit.
    """
    if not path.exists():
        raise FileNotFoundError(f"Predictions file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"Expected a JSON list of predictions in {path}")

    preds: List[Prediction] = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValueError(f"Prediction entries must be objects, got {entry!r}")
        label = entry.get("label", entry.get("className", ""))
        confidence = entry.get("confidence", entry.get("probability", 0.0))
        try:
            preds.append(Prediction(label=str(label), confidence=float(confidence)))
        except (TypeError, ValueError) as e:
            raise ValueError(f"Bad prediction entry {entry!r}: {e}") from e
    return preds


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="product_match",
        description="Rank catalog products against image classifier labels.",
    )
    ap.add_argument("--catalog", type=Path, required=True,
                    help="Catalog file (.json, .csv or .parquet)")
    source = ap.add_mutually_exclusive_group()
    source.add_argument("--predictions", type=Path,
                        help="JSON list of {label, confidence} predictions")
    source.add_argument("--image", type=Path,
                        help="Image to classify with the configured model")
    ap.add_argument("--limit", type=int, default=config.DEFAULT_LIMIT)
    ap.add_argument("--query", type=str, default=None,
                    help="Free-text filter applied after ranking")
    ap.add_argument("--category", type=str, default=config.ALL_CATEGORIES,
                    help="Category filter applied after ranking ('all' to disable)")
    ap.add_argument("--list-categories", action="store_true",
                    help="Print the catalog's categories and exit")
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    try:
        catalog = load_catalog(args.catalog)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Could not load catalog: {}", e)
        return 1

    if args.list_categories:
        print(json.dumps(get_categories(catalog), indent=2))
        return 0

    if args.image is not None:
        try:
            with LabelPredictor() as predictor:
                predictions = predictor.predict(str(args.image))
        except (RuntimeError, OSError, ValueError) as e:
            logger.error("Could not classify image {}: {}", args.image, e)
            return 1
    elif args.predictions is not None:
        try:
            predictions = load_predictions(args.predictions)
        except (FileNotFoundError, ValueError) as e:
            logger.error("Could not load predictions: {}", e)
            return 1
    else:
        ap.error("one of --predictions or --image is required")

    items = search_catalog(
        predictions,
        catalog,
        limit=args.limit,
        query=args.query,
        category=args.category,
    )
    print(json.dumps([item.model_dump() for item in items], indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
