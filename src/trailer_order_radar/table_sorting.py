"""Tri-state (asc -> desc -> none) single-column sorting shared by every table view."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from trailer_order_radar.utils import fold_text


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortCriterion:
    column_id: str
    direction: SortDirection = SortDirection.ASC

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC


# Zero or one criterion; never mutated in place.
SortState = Tuple[SortCriterion, ...]
EMPTY_SORT_STATE: SortState = ()

ValueAccessor = Callable[[Any], Any]


# -------------------------
# State transitions
# -------------------------
def _find_criterion(
    column_id: str, state: Optional[Iterable[SortCriterion]]
) -> Optional[SortCriterion]:
    for criterion in tuple(state or ()):
        if criterion.column_id == column_id:
            return criterion
    return None


def toggle_sort(column_id: str, state: Optional[Iterable[SortCriterion]]) -> SortState:
    """Advance ``column_id`` one step through asc -> desc -> unsorted.

    Toggling a column that is not the active one discards the previous sort
    and starts the new column ascending.
    """
    current = _find_criterion(column_id, state)
    if current is None:
        return (SortCriterion(column_id, SortDirection.ASC),)
    if current.direction is SortDirection.ASC:
        return (SortCriterion(column_id, SortDirection.DESC),)
    return EMPTY_SORT_STATE


def sort_direction_of(
    column_id: str, state: Optional[Iterable[SortCriterion]]
) -> Optional[SortDirection]:
    current = _find_criterion(column_id, state)
    return current.direction if current is not None else None


def active_criterion(state: Optional[Iterable[SortCriterion]]) -> Optional[SortCriterion]:
    items = tuple(state or ())
    return items[0] if items else None


# -------------------------
# Ordering
# -------------------------
def _is_absent(value: Any) -> bool:
    if value is None:
        return True
    try:
        missing = pd.isna(value)
    except (TypeError, ValueError):
        return False
    return isinstance(missing, bool) and missing


def _text_key(value: Any) -> Tuple[str, str]:
    txt = str(value)
    return (fold_text(txt), txt.casefold())


def _natural_key(value: Any) -> Any:
    return _text_key(value) if isinstance(value, str) else value


def _sorted_indexes(values: List[Any], *, descending: bool) -> List[int]:
    idx = list(range(len(values)))
    try:
        keys = [_natural_key(v) for v in values]
        return sorted(idx, key=lambda i: keys[i], reverse=descending)
    except TypeError:
        # Mixed, mutually incomparable types: compare their text form.
        text_keys = [_text_key(v) for v in values]
        return sorted(idx, key=lambda i: text_keys[i], reverse=descending)


def sorted_positions(values: Sequence[Any], criterion: SortCriterion) -> List[int]:
    """Return the permutation that orders ``values`` by ``criterion``.

    Positions holding a missing value (None/NaN/NaT) stay where they are;
    the present values are stably ordered among the remaining positions.
    """
    present = [i for i, value in enumerate(values) if not _is_absent(value)]
    order = _sorted_indexes([values[i] for i in present], descending=criterion.descending)

    positions = list(range(len(values)))
    for slot, j in zip(present, order):
        positions[slot] = present[j]
    return positions


def _column_value(record: Any, column_id: str) -> Any:
    try:
        if isinstance(record, Mapping):
            return record.get(column_id)
        return getattr(record, column_id, None)
    except Exception:
        return None


def sort_records(
    records: Iterable[Any],
    state: Optional[Iterable[SortCriterion]],
    accessors: Optional[Dict[str, ValueAccessor]] = None,
) -> List[Any]:
    """Return ``records`` ordered by the active criterion (input order when unsorted).

    ``accessors`` maps column ids to callables for derived columns, e.g. a
    dealer column that resolves ``dealer_id`` to a display name.
    """
    rows = list(records)
    criterion = active_criterion(state)
    if criterion is None:
        return rows

    accessor = (accessors or {}).get(criterion.column_id)
    if accessor is None:
        values = [_column_value(row, criterion.column_id) for row in rows]
    else:
        values = [accessor(row) for row in rows]
    return [rows[i] for i in sorted_positions(values, criterion)]


def sort_dataframe(df: pd.DataFrame, state: Optional[Iterable[SortCriterion]]) -> pd.DataFrame:
    if not isinstance(df, pd.DataFrame):
        return pd.DataFrame()
    criterion = active_criterion(state)
    if criterion is None or df.empty or criterion.column_id not in df.columns:
        return df.copy(deep=False)

    values = df[criterion.column_id].tolist()
    return df.iloc[sorted_positions(values, criterion)].copy(deep=False)
