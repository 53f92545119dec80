from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List

import pandas as pd
import pytest

from trailer_order_radar.analytics import dashboard as dash
from trailer_order_radar.schema import OrderRecord, OrdersDocument
from trailer_order_radar.status_semantics import OrderStatus, classify_order
from trailer_order_radar.table_sorting import SortCriterion, SortDirection

DEALERS = {1: "Acme Hauling", 2: "Zephyr Trailers", 3: "Björk Farms"}


def _orders() -> List[OrderRecord]:
    rows: List[Dict[str, Any]] = [
        {"id": 1, "dealer_id": 1, "sequence_marker": "weld", "po": "PO-1", "model": "LX 16"},
        {"id": 2, "dealer_id": 2, "sequence_marker": "Mount/Wire", "build_date": "2024-01-05"},
        {"id": 3, "dealer_id": 3, "build_date": "2024-01-09", "asset_no": 880, "model": "HD"},
        {"id": 4, "dealer_id": 1, "sequence_marker": "need fix", "brightview": True},
        {"id": 5, "dealer_id": 2, "sequence_marker": "special paint", "po": "A-9"},
        {"id": 6, "dealer_id": 1, "sequence_marker": "fix"},
        {
            "id": 7,
            "dealer_id": 2,
            "shipment_id": 11,
            "finalized_date": "2024-03-02",
            "vin_num": "1TRL555",
            "brightview": True,
        },
        {"id": 8, "dealer_id": 3, "shipment_id": 12, "finalized_date": "2024-04-20"},
        {"id": 9, "dealer_id": 3, "shipment_id": 13},
        {"id": 10, "dealer_id": 1},
    ]
    return [OrderRecord(**row) for row in rows]


@pytest.fixture()
def frame() -> pd.DataFrame:
    return dash.orders_to_dataframe(OrdersDocument(orders=_orders()))


def test_orders_to_dataframe_parses_dates(frame: pd.DataFrame) -> None:
    assert len(frame) == 10
    assert pd.api.types.is_datetime64_any_dtype(frame["built_at"])
    assert frame.loc[frame["id"] == 2, "build_date"].tolist() == ["2024-01-05"]
    assert dash.orders_to_dataframe(None).empty
    assert dash.orders_to_dataframe([]).empty


def test_annotate_statuses_adds_derived_columns(frame: pd.DataFrame) -> None:
    raw = pd.DataFrame([o.model_dump() for o in _orders()])
    out = dash.annotate_statuses(raw)
    by_id = out.set_index("id")

    assert dash.STATUS_COL not in raw.columns
    assert out[dash.STATUS_COL].tolist() == frame[dash.STATUS_COL].tolist()
    assert by_id.loc[1, dash.STATUS_COL] == "welded"
    assert by_id.loc[2, dash.STATUS_COL] == "trailer-build"
    assert by_id.loc[2, dash.SUB_STATUS_COL] == "MOUNT"
    assert by_id.loc[3, dash.SUB_STATUS_COL] == "TRAILER BUILD"
    assert by_id.loc[7, dash.STATUS_LABEL_COL] == "SHIPPED"
    assert by_id.loc[10, dash.STATUS_COL] == "schedule"


def test_status_counts_cover_every_status(frame: pd.DataFrame) -> None:
    counts = dash.status_counts(frame)

    assert list(counts) == list(OrderStatus)
    assert counts[OrderStatus.SHIPPED] == 3
    assert counts[OrderStatus.SPECIAL] == 3
    assert counts[OrderStatus.TRAILER_BUILD] == 2
    assert counts[OrderStatus.ZINK] == 0
    assert sum(counts.values()) == 10


def test_status_counts_respect_brightview_scope(frame: pd.DataFrame) -> None:
    brightview = dash.status_counts(frame, brightview_scope="brightview")
    standard = dash.status_counts(frame, brightview_scope="standard")

    assert sum(brightview.values()) == 2
    assert brightview[OrderStatus.SHIPPED] == 1
    assert sum(standard.values()) == 8
    assert dash.status_counts(None)[OrderStatus.SCHEDULE] == 0


def test_filter_orders_by_status_and_search(frame: pd.DataFrame) -> None:
    special = dash.filter_orders(frame, status="special")
    assert sorted(special["id"]) == [4, 5, 6]

    assert dash.filter_orders(frame, status="special", search="a-9")["id"].tolist() == [5]
    by_dealer = dash.filter_orders(frame, status="trailer-build", search="bjork", dealers=DEALERS)
    assert by_dealer["id"].tolist() == [3]
    by_asset = dash.filter_orders(frame, status=OrderStatus.TRAILER_BUILD, search="880")
    assert by_asset["id"].tolist() == [3]
    by_vin = dash.filter_orders(frame, status="shipped", search="1trl")
    assert by_vin["id"].tolist() == [7]


def test_filter_shipped_by_inclusive_finalized_range(frame: pd.DataFrame) -> None:
    march = dash.filter_orders(
        frame, status="shipped", date_from="2024-03-01", date_to="2024-03-02"
    )
    assert march["id"].tolist() == [7]

    one_day = dash.filter_orders(frame, status="shipped", date_from="2024-04-20")
    assert one_day["id"].tolist() == [8]

    # Date range only narrows the shipped tab.
    assert len(dash.filter_orders(frame, status="welded", date_from="2030-01-01")) == 1


def test_group_special_orders_by_marker(frame: pd.DataFrame) -> None:
    groups = dash.group_special_orders(frame)
    assert set(groups) == {"need fix", "special paint", "fix"}
    assert groups["fix"]["id"].tolist() == [6]

    no_marker = pd.DataFrame([{"id": 1, dash.STATUS_COL: "special"}])
    assert set(dash.group_special_orders(no_marker)) == {dash.NEED_FIX_GROUP}
    assert dash.group_special_orders(pd.DataFrame()) == {}


def test_build_status_view_sorts_real_and_derived_columns(frame: pd.DataFrame) -> None:
    by_id_desc = dash.build_status_view(
        frame, status="special", sort_state=(SortCriterion("id", SortDirection.DESC),)
    )
    assert by_id_desc["id"].tolist() == [6, 5, 4]

    by_dealer = dash.build_status_view(
        frame,
        status="shipped",
        sort_state=(SortCriterion("dealer", SortDirection.ASC),),
        dealers=DEALERS,
    )
    assert by_dealer["id"].tolist() == [8, 9, 7]

    unsorted = dash.build_status_view(frame, status="shipped")
    assert unsorted["id"].tolist() == [7, 8, 9]


def test_order_table_accessors_number_prefers_asset_no() -> None:
    accessors = dash.order_table_accessors(DEALERS)
    assert accessors["number"]({"asset_no": 880, "po": "PO-1"}) == (0, 880)
    assert accessors["number"]({"asset_no": 0, "po": "PO-1"}) == (1, "po-1")
    assert accessors["number"]({"asset_no": 0, "po": ""}) is None
    assert accessors["dealer"](OrderRecord(id=1, dealer_id=2)) == "Zephyr Trailers"
    assert accessors["dealer"]({"dealer_id": 99}) is None


def test_frame_statuses_match_record_classification() -> None:
    orders = [
        OrderRecord(id=1, finalized_date="2024-03-02T10:00:00+00:00"),
        OrderRecord(id=2, finalized_date="2024-03-02"),
        OrderRecord(id=3, build_date="pending"),
        OrderRecord(id=4, build_date="05/01/2024", sequence_marker="17"),
    ]
    frame = dash.orders_to_dataframe(orders)

    assert frame[dash.STATUS_COL].tolist() == [classify_order(o).value for o in orders]
    assert frame[dash.STATUS_COL].tolist() == [
        "ready-to-ship",
        "ready-to-ship",
        "trailer-build",
        "trailer-build",
    ]
    assert frame["build_date"].tolist()[2] == "pending"
    assert pd.isna(frame["built_at"].tolist()[2])


def test_shipped_range_handles_mixed_offsets_and_aware_bounds() -> None:
    orders = [
        OrderRecord(id=1, shipment_id=1, finalized_date="2024-03-02T10:00:00+00:00"),
        OrderRecord(id=2, shipment_id=2, finalized_date="2024-03-02"),
        OrderRecord(id=3, shipment_id=3, finalized_date="2024-03-05T23:30:00-05:00"),
    ]
    frame = dash.orders_to_dataframe(orders)

    same_day = dash.filter_orders(frame, status="shipped", date_from="2024-03-02")
    assert same_day["id"].tolist() == [1, 2]

    aware = dash.filter_orders(
        frame,
        status="shipped",
        date_from=datetime(2024, 3, 1, tzinfo=timezone.utc),
        date_to=datetime(2024, 3, 6, tzinfo=timezone.utc),
    )
    assert aware["id"].tolist() == [1, 2, 3]

    # 23:30 at -05:00 is the next day in UTC.
    assert dash.filter_orders(frame, status="shipped", date_from="2024-03-06")["id"].tolist() == [3]


def test_number_sort_keeps_asset_numbers_numeric() -> None:
    orders = [
        OrderRecord(id=1, asset_no=100, build_date="2024-01-01"),
        OrderRecord(id=2, asset_no=9, build_date="2024-01-01"),
        OrderRecord(id=3, po="B-7", build_date="2024-01-01"),
        OrderRecord(id=4, asset_no=10, build_date="2024-01-01"),
        OrderRecord(id=5, po="a-2", build_date="2024-01-01"),
    ]
    frame = dash.orders_to_dataframe(orders)

    asc = dash.build_status_view(
        frame, status="trailer-build", sort_state=(SortCriterion("number", SortDirection.ASC),)
    )
    assert asc["id"].tolist() == [2, 4, 1, 5, 3]

    desc = dash.build_status_view(
        frame, status="trailer-build", sort_state=(SortCriterion("number", SortDirection.DESC),)
    )
    assert desc["id"].tolist() == [3, 5, 1, 4, 2]


def test_apply_brightview_scope(frame: pd.DataFrame) -> None:
    assert sorted(dash.apply_brightview_scope(frame, "brightview")["id"]) == [4, 7]
    assert len(dash.apply_brightview_scope(frame, "standard")) == 8
    assert len(dash.apply_brightview_scope(frame, "bogus")) == 10
    assert dash.apply_brightview_scope(None, "all").empty
