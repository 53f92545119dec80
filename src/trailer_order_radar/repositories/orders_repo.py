"""Local JSON cache of the last orders document fetched from the data service."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from trailer_order_radar.schema import ORDERS_SCHEMA_VERSION, OrdersDocument

logger = logging.getLogger(__name__)


class OrdersRepo:
    """Cache file for offline use; an unreadable cache reads as no cache."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[OrdersDocument]:
        """Cached document, or None when missing, corrupt or from another schema."""
        if not self._path.exists():
            return None
        try:
            doc = OrdersDocument.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("Ignoring unreadable orders cache %s: %s", self._path, e)
            return None

        if doc.schema_version != ORDERS_SCHEMA_VERSION:
            logger.warning(
                "Ignoring orders cache %s with schema %r (expected %r)",
                self._path,
                doc.schema_version,
                ORDERS_SCHEMA_VERSION,
            )
            return None
        return doc

    def save(self, doc: OrdersDocument) -> None:
        """Write the document via a temp file so readers never see a partial cache."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(f"{self._path.name}.tmp")
        with tmp.open("w", encoding="utf-8") as f:
            f.write(doc.model_dump_json(indent=2, ensure_ascii=False))
            f.flush()
            os.fsync(f.fileno())
        tmp.replace(self._path)
        logger.info("Saved %d orders to %s", len(doc.orders), self._path)
