"""Raw data-service rows -> canonical OrderRecord / Dealer models.

Rows come from several generations of the order table, so each canonical
field is read from the first non-empty column among its known spellings.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from trailer_order_radar.schema import Dealer, OrderRecord
from trailer_order_radar.utils import as_text, is_missing, optional_text

_TRUE_TOKENS = {"1", "true", "t", "yes", "y"}


def _first(row: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = row.get(key)
        if not is_missing(value):
            return value
    return None


def _as_int(value: Any, default: int = 0) -> int:
    if is_missing(value) or isinstance(value, bool):
        return default
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return default


def _as_float(value: Any, default: float = 0.0) -> float:
    if is_missing(value) or isinstance(value, bool):
        return default
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return as_text(value).lower() in _TRUE_TOKENS


def _shipment_id(value: Any) -> Optional[Union[int, str]]:
    if is_missing(value):
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    txt = as_text(value)
    return int(txt) if txt.isdigit() else txt


def map_order(row: Mapping[str, Any]) -> OrderRecord:
    return OrderRecord(
        id=_as_int(_first(row, "id", "ID")),
        dealer_id=_as_int(_first(row, "dealer_id", "dealerId", "dealer")),
        shipment_id=_shipment_id(_first(row, "shipment_id", "shipmentId", "shipment")),
        sequence_marker=optional_text(_first(row, "sequ", "Sequ", "status")),
        finalized_date=optional_text(_first(row, "fin_date", "finDate")),
        build_date=optional_text(_first(row, "build_date", "buildDate")),
        order_date=optional_text(_first(row, "order_date", "orderDate")),
        order_num=optional_text(_first(row, "order_num", "orderNum", "order_number")),
        model=as_text(_first(row, "model", "Model")),
        price=_as_float(_first(row, "price", "Price")),
        notes=optional_text(_first(row, "notes", "Notes")),
        vin_num=as_text(_first(row, "vin_num", "vinNum", "vin")),
        po=as_text(_first(row, "po", "PO", "po_number")),
        asset_no=_as_int(_first(row, "asset_no", "assetNo", "asset_number")),
        brightview=_as_bool(_first(row, "brightview", "brightView")),
        build_notes=optional_text(_first(row, "build_notes", "buildNotes")),
    )


def map_dealer(row: Mapping[str, Any]) -> Optional[Dealer]:
    """Map a dealer row; rows without a positive id or a name are dropped."""
    dealer_id = _as_int(_first(row, "id", "ID"))
    name = as_text(_first(row, "name", "Name"))
    if dealer_id <= 0 or not name:
        return None
    return Dealer(id=dealer_id, name=name)
