"""General value coercion helpers shared by ingestion, analytics and sorting code."""

from __future__ import annotations

import re
import unicodedata
from datetime import datetime, timezone
from typing import Any, Optional

import pandas as pd


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def is_missing(value: Any) -> bool:
    """True for None, blank strings and pandas missing scalars (NaN/NaT/NA)."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        missing = pd.isna(value)
    except (TypeError, ValueError):
        return False
    return isinstance(missing, bool) and missing


def as_text(value: Any) -> str:
    if is_missing(value):
        return ""
    return str(value).strip()


def optional_text(value: Any) -> Optional[str]:
    txt = as_text(value)
    return txt or None


def fold_text(value: str) -> str:
    """Accent- and case-insensitive form used for comparisons and searches."""
    folded = unicodedata.normalize("NFKD", str(value or ""))
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return re.sub(r"\s+", " ", folded).strip().casefold()
