from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd
from loguru import logger

from .config import CatalogItem


# ---------------------------
# Column detection / standardization
# ---------------------------

# Catalog exports come from different tools, so accept the likely variants.
COLUMN_CANDIDATES: Dict[str, List[str]] = {
    "id": ["id", "ID", "item_id", "product_id", "sku"],
    "name": ["name", "Name", "title", "Title", "product_name"],
    "category": ["category", "Category", "product_category"],
    "tags": ["tags", "Tags", "keywords", "labels"],
    "description": ["description", "Description", "desc", "summary"],
    "price": ["price", "Price", "unit_price"],
    "image_ref": ["image_ref", "imageRef", "image", "image_url", "imageUrl", "Image"],
}

SUPPORTED_SUFFIXES = {".json", ".csv", ".parquet"}


def _standardize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename raw catalog columns to the canonical CatalogItem field names."""
    col_map: Dict[str, str] = {}
    lower_to_original = {str(c).lower(): c for c in df.columns}

    for canon, candidates in COLUMN_CANDIDATES.items():
        for candidate in candidates:
            if candidate in df.columns:
                col_map[candidate] = canon
                break
            cand_lower = candidate.lower()
            if cand_lower in lower_to_original:
                col_map[lower_to_original[cand_lower]] = canon
                break

    logger.debug("Standardizing catalog columns with map: {}", col_map)
    df_std = df.rename(columns=col_map)

    if "name" not in df_std.columns:
        raise ValueError(f"Catalog has no name column. Found: {list(df.columns)}")
    return df_std


# ---------------------------
# Field parsing helpers
# ---------------------------

def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and np.isnan(value):
        return True
    return False


def parse_tags_field(value: Any) -> List[str]:
    """
    Parse a raw tags value into an ordered list of strings.

    Handles:
      - NaN / None -> []
      - "a, b; c" -> ["a", "b", "c"]
      - list / tuple / np.ndarray -> list[str]
    Empty entries are dropped; order is kept.
    """
    if isinstance(value, (list, tuple, np.ndarray)):
        tokens = [str(v).strip() for v in value if not _is_missing(v)]
    elif _is_missing(value):
        return []
    else:
        tokens = [p.strip() for p in re.split(r"[;,|]+", str(value))]
    return [t for t in tokens if t]


def _coerce_price(value: Any) -> Optional[float]:
    if _is_missing(value):
        return None
    try:
        return float(str(value).strip().lstrip("$"))
    except ValueError:
        return None


def _coerce_id(value: Any, default: int) -> Union[int, str]:
    if _is_missing(value):
        return default
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return int(value)
    s = str(value).strip()
    return s if s else default


def _coerce_text(value: Any) -> str:
    if _is_missing(value):
        return ""
    return str(value).strip()


def item_from_row(row: Mapping[str, Any], position: int = 0) -> CatalogItem:
    """Build a CatalogItem from one standardized row; ``position`` backs a missing id."""
    image_ref = row.get("image_ref")
    return CatalogItem(
        id=_coerce_id(row.get("id"), default=position),
        name=_coerce_text(row.get("name")),
        category=_coerce_text(row.get("category")),
        tags=parse_tags_field(row.get("tags")),
        description=_coerce_text(row.get("description")),
        price=_coerce_price(row.get("price")),
        image_ref=None if _is_missing(image_ref) else str(image_ref),
    )


def items_from_frame(df: pd.DataFrame) -> List[CatalogItem]:
    """Convert a raw catalog DataFrame into CatalogItems, in row order."""
    df = _standardize_columns(df)

    items: List[CatalogItem] = []
    for position, row in enumerate(df.to_dict(orient="records")):
        if not _coerce_text(row.get("name")):
            logger.warning("Catalog row {} has no name; skipping", position)
            continue
        items.append(item_from_row(row, position=position))
    return items


def items_from_records(records: Iterable[Mapping[str, Any]]) -> List[CatalogItem]:
    """Same as ``items_from_frame`` for a list of dicts (e.g. parsed JSON)."""
    records = list(records)
    if not records:
        return []
    return items_from_frame(pd.DataFrame.from_records(records))


# ---------------------------
# IO helpers
# ---------------------------

def _read_json_records(path: Path) -> List[Dict[str, Any]]:
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)
    if isinstance(raw, dict):
        raw = raw.get("products", raw.get("items", []))
    if not isinstance(raw, list):
        raise ValueError(f"Expected a list of products in {path}")
    return raw


def load_catalog(path: Union[str, Path]) -> List[CatalogItem]:
    """
    Load a product catalog from JSON, CSV or Parquet.

    JSON may be a bare array of objects or ``{"products": [...]}``.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")

    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(
            f"Unsupported catalog format '{suffix}'. Expected one of {sorted(SUPPORTED_SUFFIXES)}"
        )

    logger.info("Loading catalog from {}", path)
    if suffix == ".json":
        items = items_from_records(_read_json_records(path))
    elif suffix == ".csv":
        items = items_from_frame(pd.read_csv(path, encoding="utf-8"))
    else:
        items = items_from_frame(pd.read_parquet(path))

    logger.info("Loaded catalog with {} items", len(items))
    return items
