"""Dashboard data preparation: status annotation, counts, tab filters and groups."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Union

import pandas as pd

from trailer_order_radar.config import BRIGHTVIEW_SCOPES
from trailer_order_radar.schema import OrderRecord, OrdersDocument
from trailer_order_radar.status_semantics import (
    OrderStatus,
    coerce_status,
    describe_order,
)
from trailer_order_radar.table_sorting import (
    SortCriterion,
    ValueAccessor,
    active_criterion,
    sort_dataframe,
    sorted_positions,
)
from trailer_order_radar.utils import as_text, fold_text

STATUS_COL = "computed_status"
STATUS_LABEL_COL = "status_label"
STATUS_COLOR_COL = "status_color"
SUB_STATUS_COL = "sub_status"
SUB_STATUS_COLOR_COL = "sub_status_color"

# Raw date strings stay untouched for classification; parsed copies go to `*_at`.
PARSED_DATE_COLUMNS = {
    "order_date": "ordered_at",
    "finalized_date": "finalized_at",
    "build_date": "built_at",
}
SEARCH_COLUMNS = ("po", "model", "vin_num")
NEED_FIX_GROUP = "NEED FIX"

DateLike = Union[date, datetime, str, pd.Timestamp]


def _safe_df(df: pd.DataFrame | None) -> pd.DataFrame:
    return df if isinstance(df, pd.DataFrame) else pd.DataFrame()


def _to_dt_naive_utc(value: pd.Series) -> pd.Series:
    """Coerce to datetime on the UTC timeline, then drop the timezone."""
    out = pd.to_datetime(value, utc=True, errors="coerce", format="mixed")
    return out.dt.tz_convert(None)


def _bound_naive_utc(value: DateLike) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.normalize()


def _as_int(value: Any) -> int:
    try:
        return int(float(as_text(value)))
    except (ValueError, OverflowError):
        return 0


def _row_value(row: Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


# -------------------------
# Frames
# -------------------------
def orders_to_dataframe(source: OrdersDocument | Iterable[OrderRecord] | None) -> pd.DataFrame:
    """Classified frame of the orders, one row per record.

    Statuses come from the records themselves, so a date pandas cannot parse
    still counts as present. Parsed dates are added as separate `*_at` columns.
    """
    orders = source.orders if isinstance(source, OrdersDocument) else list(source or [])
    if not orders:
        return pd.DataFrame()

    rows = []
    for order in orders:
        row = order.model_dump()
        described = describe_order(order)
        row[STATUS_COL] = described.status.value
        row[STATUS_LABEL_COL] = described.label
        row[STATUS_COLOR_COL] = described.color
        row[SUB_STATUS_COL] = described.sub_status
        row[SUB_STATUS_COLOR_COL] = described.sub_status_color
        rows.append(row)

    df = pd.DataFrame(rows)
    for raw_col, parsed_col in PARSED_DATE_COLUMNS.items():
        if raw_col in df.columns:
            df[parsed_col] = _to_dt_naive_utc(df[raw_col])
    return df


def annotate_statuses(df: pd.DataFrame | None) -> pd.DataFrame:
    """Return a copy with the derived status/label/color columns added.

    Expects the raw (unparsed) signal columns, as stored on `OrderRecord`.
    """
    safe = _safe_df(df)
    if safe.empty:
        return safe.copy(deep=False)

    out = safe.copy()
    described = [describe_order(row) for row in out.to_dict(orient="records")]
    out[STATUS_COL] = [d.status.value for d in described]
    out[STATUS_LABEL_COL] = [d.label for d in described]
    out[STATUS_COLOR_COL] = [d.color for d in described]
    out[SUB_STATUS_COL] = [d.sub_status for d in described]
    out[SUB_STATUS_COLOR_COL] = [d.sub_status_color for d in described]
    return out


def _ensure_statuses(df: pd.DataFrame) -> pd.DataFrame:
    return df if STATUS_COL in df.columns else annotate_statuses(df)


def _brightview_mask(df: pd.DataFrame, scope: str) -> pd.Series:
    token = str(scope or "").strip().lower()
    if token not in BRIGHTVIEW_SCOPES or token == "all" or "brightview" not in df.columns:
        return pd.Series(True, index=df.index)
    flags = df["brightview"].fillna(False).astype(bool)
    return flags == (token == "brightview")


def apply_brightview_scope(df: pd.DataFrame | None, scope: str) -> pd.DataFrame:
    """Rows in the brightview scope (`all`, `brightview` or `standard`)."""
    safe = _safe_df(df)
    if safe.empty:
        return safe.copy(deep=False)
    return safe.loc[_brightview_mask(safe, scope)].copy(deep=False)


# -------------------------
# Counts & filters
# -------------------------
def status_counts(df: pd.DataFrame | None, brightview_scope: str = "all") -> Dict[OrderStatus, int]:
    """Orders per status in pipeline order; every status is present."""
    counts: Dict[OrderStatus, int] = {status: 0 for status in OrderStatus}
    safe = _safe_df(df)
    if safe.empty:
        return counts

    annotated = _ensure_statuses(safe)
    scoped = annotated.loc[_brightview_mask(annotated, brightview_scope)]
    for value, n in scoped[STATUS_COL].value_counts().items():
        status = coerce_status(value)
        if status is not None:
            counts[status] += int(n)
    return counts


def _search_mask(
    df: pd.DataFrame, query: str, dealers: Optional[Mapping[int, str]]
) -> pd.Series:
    mask = pd.Series(False, index=df.index)
    for col in SEARCH_COLUMNS:
        if col in df.columns:
            mask |= df[col].map(lambda v: query in fold_text(as_text(v)))
    if dealers and "dealer_id" in df.columns:
        mask |= df["dealer_id"].map(
            lambda v: query in fold_text(dealers.get(_as_int(v), ""))
        )
    if "asset_no" in df.columns:
        mask |= df["asset_no"].map(lambda v: _as_int(v) > 0 and query in str(_as_int(v)))
    return mask


def _finalized_range_mask(
    df: pd.DataFrame, date_from: DateLike, date_to: Optional[DateLike]
) -> pd.Series:
    if "finalized_at" in df.columns:
        finalized = _to_dt_naive_utc(df["finalized_at"])
    elif "finalized_date" in df.columns:
        finalized = _to_dt_naive_utc(df["finalized_date"])
    else:
        return pd.Series(False, index=df.index)
    start = _bound_naive_utc(date_from)
    end = _bound_naive_utc(date_to if date_to is not None else date_from)
    finalized = finalized.dt.normalize()
    return finalized.notna() & (finalized >= start) & (finalized <= end)


def filter_orders(
    df: pd.DataFrame | None,
    *,
    status: Any,
    brightview_scope: str = "all",
    search: str = "",
    dealers: Optional[Mapping[int, str]] = None,
    date_from: Optional[DateLike] = None,
    date_to: Optional[DateLike] = None,
) -> pd.DataFrame:
    """Rows of one status tab, narrowed by brightview scope, search and (shipped only) dates."""
    safe = _safe_df(df)
    if safe.empty:
        return pd.DataFrame()

    annotated = _ensure_statuses(safe)
    target = coerce_status(status) or OrderStatus.SCHEDULE
    mask = annotated[STATUS_COL] == target.value
    mask &= _brightview_mask(annotated, brightview_scope)

    query = fold_text(search)
    if query:
        mask &= _search_mask(annotated, query, dealers)

    if target is OrderStatus.SHIPPED and date_from is not None:
        mask &= _finalized_range_mask(annotated, date_from, date_to)

    return annotated.loc[mask].copy(deep=False)


def group_special_orders(df: pd.DataFrame | None) -> Dict[str, pd.DataFrame]:
    """Group special orders by their raw marker text (missing marker -> NEED FIX)."""
    safe = _safe_df(df)
    if safe.empty:
        return {}

    annotated = _ensure_statuses(safe)
    special = annotated.loc[annotated[STATUS_COL] == OrderStatus.SPECIAL.value]
    if special.empty:
        return {}

    if "sequence_marker" in special.columns:
        keys = special["sequence_marker"].map(lambda v: as_text(v) or NEED_FIX_GROUP)
    else:
        keys = pd.Series(NEED_FIX_GROUP, index=special.index)
    return {
        str(key): group.copy(deep=False)
        for key, group in special.groupby(keys, sort=False)
    }


# -------------------------
# Table views
# -------------------------
def order_table_accessors(dealers: Optional[Mapping[int, str]] = None) -> Dict[str, ValueAccessor]:
    """Derived sort columns of the order book: display number and dealer name.

    The number key is `(0, asset_no)` for asset-numbered orders and
    `(1, folded po)` otherwise, so asset numbers stay numeric and sort first.
    """
    names = dict(dealers or {})

    def _number(row: Any) -> Any:
        asset_no = _as_int(_row_value(row, "asset_no"))
        if asset_no > 0:
            return (0, asset_no)
        po = as_text(_row_value(row, "po"))
        return (1, fold_text(po)) if po else None

    def _dealer(row: Any) -> Any:
        return names.get(_as_int(_row_value(row, "dealer_id"))) or None

    return {"number": _number, "dealer": _dealer}


def build_status_view(
    df: pd.DataFrame | None,
    *,
    status: Any,
    sort_state: Iterable[SortCriterion] = (),
    brightview_scope: str = "all",
    search: str = "",
    dealers: Optional[Mapping[int, str]] = None,
    date_from: Optional[DateLike] = None,
    date_to: Optional[DateLike] = None,
) -> pd.DataFrame:
    """Classified, filtered and display-ordered rows for one status tab.

    Besides real columns, `sort_state` may name the derived "number" and
    "dealer" columns from `order_table_accessors`.
    """
    filtered = filter_orders(
        df,
        status=status,
        brightview_scope=brightview_scope,
        search=search,
        dealers=dealers,
        date_from=date_from,
        date_to=date_to,
    )
    criterion = active_criterion(sort_state)
    accessors = order_table_accessors(dealers)
    if (
        criterion is None
        or filtered.empty
        or criterion.column_id in filtered.columns
        or criterion.column_id not in accessors
    ):
        return sort_dataframe(filtered, sort_state)

    accessor = accessors[criterion.column_id]
    values = [accessor(row) for row in filtered.to_dict(orient="records")]
    return filtered.iloc[sorted_positions(values, criterion)].copy(deep=False)
