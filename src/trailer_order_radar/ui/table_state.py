"""Per-view sort state kept in Streamlit session state."""

from __future__ import annotations

from typing import Optional

import streamlit as st

from trailer_order_radar.table_sorting import (
    EMPTY_SORT_STATE,
    SortCriterion,
    SortDirection,
    SortState,
    toggle_sort,
)

SORT_STATE_KEY_PREFIX = "__table_sort::"

_SORT_INDICATORS = {
    SortDirection.ASC: "↑",
    SortDirection.DESC: "↓",
}
UNSORTED_INDICATOR = "↕"


def sort_state_key(view: str) -> str:
    return f"{SORT_STATE_KEY_PREFIX}{str(view or '').strip()}"


def get_sort_state(view: str) -> SortState:
    """Read the view's sort state; anything unexpected in session reads as unsorted."""
    raw = st.session_state.get(sort_state_key(view))
    if not isinstance(raw, tuple):
        return EMPTY_SORT_STATE
    if not all(isinstance(c, SortCriterion) for c in raw):
        return EMPTY_SORT_STATE
    return raw


def toggle_column_sort(view: str, column_id: str) -> SortState:
    """Click handler for a sortable header: store and return the next state."""
    new_state = toggle_sort(column_id, get_sort_state(view))
    st.session_state[sort_state_key(view)] = new_state
    return new_state


def clear_sort_state(view: str) -> None:
    st.session_state.pop(sort_state_key(view), None)


def sort_indicator(direction: Optional[SortDirection]) -> str:
    if direction is None:
        return UNSORTED_INDICATOR
    return _SORT_INDICATORS.get(direction, UNSORTED_INDICATOR)
