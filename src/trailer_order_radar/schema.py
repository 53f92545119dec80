"""Typed schema models for trailer orders, dealers and the local orders document."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

ORDERS_SCHEMA_VERSION = "1.0"


class OrderRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int = 0
    dealer_id: int = 0
    # Status signals
    shipment_id: Optional[Union[int, str]] = None
    sequence_marker: Optional[str] = None
    finalized_date: Optional[str] = None
    build_date: Optional[str] = None

    order_date: Optional[str] = None
    order_num: Optional[str] = None
    model: str = ""
    price: float = 0.0
    notes: Optional[str] = None
    vin_num: str = ""
    po: str = ""
    asset_no: int = 0
    brightview: bool = False
    build_notes: Optional[str] = None


class Dealer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str


class OrdersDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    schema_version: str = ORDERS_SCHEMA_VERSION
    ingested_at: str = ""
    source_url: str = ""
    orders: List[OrderRecord] = Field(default_factory=list)
    dealers: List[Dealer] = Field(default_factory=list)

    @staticmethod
    def empty() -> "OrdersDocument":
        return OrdersDocument(
            schema_version=ORDERS_SCHEMA_VERSION,
            ingested_at=datetime.now(timezone.utc).isoformat(),
            source_url="",
            orders=[],
            dealers=[],
        )

    def dealer_names(self) -> dict[int, str]:
        return {d.id: d.name for d in self.dealers}
