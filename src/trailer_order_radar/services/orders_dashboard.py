"""Entry points that assemble settings, logging, ingest, cache and the classified frame."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import pandas as pd
import requests

from trailer_order_radar.analytics.dashboard import apply_brightview_scope, orders_to_dataframe
from trailer_order_radar.config import (
    Settings,
    brightview_scope,
    ensure_env,
    load_settings,
)
from trailer_order_radar.ingest.supabase_ingest import ingest_orders
from trailer_order_radar.logging_utils import configure_logging
from trailer_order_radar.repositories.orders_repo import OrdersRepo
from trailer_order_radar.schema import OrdersDocument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardData:
    frame: pd.DataFrame
    dealers: Dict[int, str] = field(default_factory=dict)
    refreshed: bool = False
    from_cache: bool = False
    message: str = ""


def bootstrap_settings() -> Settings:
    """Create `.env` if needed, load it and configure the package logger."""
    ensure_env()
    settings = load_settings()
    configure_logging(settings)
    return settings


def _orders_repo(settings: Settings) -> OrdersRepo:
    raw = str(settings.DATA_PATH or "").strip()
    return OrdersRepo(Path(raw or "data/orders.json"))


def load_dashboard_frame(
    settings: Settings,
    *,
    refresh: bool = True,
    session: Optional[requests.Session] = None,
) -> DashboardData:
    """Refresh orders from Supabase (or reuse the cache) and classify them.

    A successful refresh is written back to the cache. When the refresh fails
    or is skipped, the cached document is used; with no cache the frame is
    empty. Rows are narrowed to the configured brightview scope.
    """
    configure_logging(settings)
    repo = _orders_repo(settings)
    cached = repo.load()

    doc: Optional[OrdersDocument] = cached
    refreshed = False
    message = "Using cached orders." if cached is not None else "No cached orders."
    if refresh:
        ok, message, fetched = ingest_orders(settings, cached, session=session)
        if ok and fetched is not None:
            repo.save(fetched)
            doc, refreshed = fetched, True
        else:
            logger.warning("Order refresh failed, using cache: %s", message)

    if doc is None:
        return DashboardData(frame=pd.DataFrame(), message=message)

    frame = apply_brightview_scope(orders_to_dataframe(doc), brightview_scope(settings))
    return DashboardData(
        frame=frame,
        dealers=doc.dealer_names(),
        refreshed=refreshed,
        from_cache=not refreshed,
        message=message,
    )
