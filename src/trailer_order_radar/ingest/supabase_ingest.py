"""Order/dealer fetch from the managed Supabase (PostgREST) data service."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests
from pydantic import ValidationError
from tenacity import RetryError, retry, stop_after_attempt, wait_exponential

from trailer_order_radar.config import SUPABASE_PLACEHOLDER_URL, Settings
from trailer_order_radar.ingest.order_mapper import map_dealer, map_order
from trailer_order_radar.schema import (
    ORDERS_SCHEMA_VERSION,
    Dealer,
    OrderRecord,
    OrdersDocument,
)
from trailer_order_radar.security import redact_secrets, supabase_origin
from trailer_order_radar.utils import now_iso

logger = logging.getLogger(__name__)


class SupabaseFetchError(RuntimeError):
    """Raised by the low-level fetch; public helpers turn it into an empty result."""

    def __init__(self, message: str, *, table: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.table = table
        self.status_code = status_code


@retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=1, max=8))
def _request(
    session: requests.Session, method: str, url: str, *, timeout: int, **kwargs: Any
) -> requests.Response:
    r = session.request(method, url, timeout=timeout, **kwargs)
    if r.status_code in (429, 503):
        raise RuntimeError("rate limited")
    return r


def is_supabase_configured(settings: Settings) -> bool:
    url = str(settings.SUPABASE_URL or "").strip()
    key = str(settings.SUPABASE_ANON_KEY or "").strip()
    return bool(url and key and url.rstrip("/") != SUPABASE_PLACEHOLDER_URL)


def _session(settings: Settings) -> requests.Session:
    key = str(settings.SUPABASE_ANON_KEY or "").strip()
    session = requests.Session()
    session.headers.update(
        {
            "Accept": "application/json",
            "apikey": key,
            "Authorization": f"Bearer {key}",
        }
    )
    return session


def _fetch_rows(
    settings: Settings,
    table: str,
    params: Optional[Dict[str, str]] = None,
    *,
    session: Optional[requests.Session] = None,
) -> List[Dict[str, Any]]:
    try:
        base = supabase_origin(settings.SUPABASE_URL)
    except ValueError as e:
        raise SupabaseFetchError(str(e), table=table) from e

    query: Dict[str, str] = {"select": "*"}
    query.update(params or {})
    sess = session or _session(settings)
    try:
        r = _request(
            sess,
            "GET",
            f"{base}/rest/v1/{table}",
            params=query,
            timeout=max(1, int(settings.SUPABASE_TIMEOUT)),
        )
    except (requests.RequestException, RetryError, RuntimeError) as e:
        raise SupabaseFetchError(f"request failed: {e}", table=table) from e

    if r.status_code != 200:
        raise SupabaseFetchError(
            f"HTTP {r.status_code}: {r.text[:200]}", table=table, status_code=r.status_code
        )
    try:
        payload = r.json()
    except ValueError as e:
        raise SupabaseFetchError("response is not JSON", table=table) from e
    if not isinstance(payload, list):
        raise SupabaseFetchError("response is not a row list", table=table)
    return [dict(row) for row in payload if isinstance(row, dict)]


def fetch_table_rows(
    settings: Settings,
    table: str,
    params: Optional[Dict[str, str]] = None,
    *,
    session: Optional[requests.Session] = None,
) -> List[Dict[str, Any]]:
    """Fetch raw rows; any failure yields `[]` plus a logged diagnostic."""
    if not is_supabase_configured(settings):
        logger.info("Supabase not configured; skipping fetch of %r", table)
        return []
    try:
        return _fetch_rows(settings, table, params, session=session)
    except SupabaseFetchError as e:
        logger.warning("Supabase fetch of %r failed: %s", table, redact_secrets(str(e)))
        return []


def _map_orders(rows: List[Dict[str, Any]]) -> List[OrderRecord]:
    out: List[OrderRecord] = []
    for row in rows:
        try:
            out.append(map_order(row))
        except ValidationError as e:
            logger.warning("Skipping malformed order row id=%r: %s", row.get("id"), e)
    return out


def _map_dealers(rows: List[Dict[str, Any]]) -> List[Dealer]:
    out: Dict[int, Dealer] = {}
    for row in rows:
        dealer = map_dealer(row)
        if dealer is not None and dealer.id not in out:
            out[dealer.id] = dealer
    return list(out.values())


def _brightview_params(brightview: Optional[bool]) -> Dict[str, str]:
    if brightview is None:
        return {}
    return {"brightview": "eq.true" if brightview else "eq.false"}


def fetch_orders(
    settings: Settings,
    brightview: Optional[bool] = None,
    *,
    session: Optional[requests.Session] = None,
) -> List[OrderRecord]:
    rows = fetch_table_rows(
        settings,
        settings.SUPABASE_ORDER_TABLE,
        _brightview_params(brightview),
        session=session,
    )
    return _map_orders(rows)


def fetch_dealers(
    settings: Settings, *, session: Optional[requests.Session] = None
) -> List[Dealer]:
    rows = fetch_table_rows(
        settings, settings.SUPABASE_DEALER_TABLE, {"select": "id,name"}, session=session
    )
    return _map_dealers(rows)


def ingest_orders(
    settings: Settings,
    existing_doc: Optional[OrdersDocument] = None,
    *,
    session: Optional[requests.Session] = None,
) -> Tuple[bool, str, Optional[OrdersDocument]]:
    """Fetch orders + dealers and merge them (by id) into the local document."""
    if not is_supabase_configured(settings):
        return False, "Supabase is not configured (SUPABASE_URL / SUPABASE_ANON_KEY).", None

    sess = session or _session(settings)
    try:
        order_rows = _fetch_rows(settings, settings.SUPABASE_ORDER_TABLE, session=sess)
        dealer_rows = _fetch_rows(
            settings, settings.SUPABASE_DEALER_TABLE, {"select": "id,name"}, session=sess
        )
    except SupabaseFetchError as e:
        message = redact_secrets(str(e))
        logger.warning("Order ingest failed on %r: %s", e.table, message)
        return False, f"Supabase {e.table}: {message}", None

    orders = _map_orders(order_rows)
    dealers = _map_dealers(dealer_rows)

    doc = existing_doc or OrdersDocument.empty()
    doc.schema_version = ORDERS_SCHEMA_VERSION
    doc.ingested_at = now_iso()
    doc.source_url = str(settings.SUPABASE_URL or "").strip().rstrip("/")

    merged_orders = {o.id: o for o in doc.orders}
    for o in orders:
        merged_orders[o.id] = o
    doc.orders = list(merged_orders.values())

    merged_dealers = {d.id: d for d in doc.dealers}
    for d in dealers:
        merged_dealers[d.id] = d
    doc.dealers = list(merged_dealers.values())

    logger.info(
        "Ingested %d orders (%d total), %d dealers", len(orders), len(doc.orders), len(dealers)
    )
    return (
        True,
        f"Order ingest OK ({len(orders)} orders, merge total {len(doc.orders)}).",
        doc,
    )
