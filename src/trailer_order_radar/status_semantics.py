"""Order lifecycle classification: canonical status, build sub-stage, labels and colors.

Status is never persisted. It is re-derived from four raw order fields every
time an order is read, by walking ``STATUS_RULES`` top to bottom and keeping
the first rule whose predicate matches.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Final, List, Optional, Tuple

from trailer_order_radar.utils import is_missing


class OrderStatus(str, Enum):
    """Lifecycle statuses, declared in pipeline order (not detection order)."""

    SCHEDULE = "schedule"
    WELDED = "welded"
    ZINK = "zink"
    RETURNED = "returned"
    ASSEMBLED = "assembled"
    TRAILER_BUILD = "trailer-build"
    SPECIAL = "special"
    READY_TO_SHIP = "ready-to-ship"
    SHIPPED = "shipped"


class TrailerBuildStage(str, Enum):
    WIRE = "wire"
    FLOOR = "floor"
    MOUNT = "mount"


# Most advanced stage first: "Mount/Wire" reads as mount and "floor + wire" as floor.
# This reverses a wire-first reading, which would show WIRE for both markers.
TRAILER_BUILD_STAGE_PRECEDENCE: Final[Tuple[TrailerBuildStage, ...]] = (
    TrailerBuildStage.MOUNT,
    TrailerBuildStage.FLOOR,
    TrailerBuildStage.WIRE,
)

WELD_TOKENS: Final[Tuple[str, ...]] = ("weld",)
ZINK_TOKENS: Final[Tuple[str, ...]] = ("zink", "zinc")
RETURN_TOKENS: Final[Tuple[str, ...]] = ("return",)
ASSEMBLY_TOKENS: Final[Tuple[str, ...]] = ("assembl",)
TRAILER_BUILD_TOKENS: Final[Tuple[str, ...]] = tuple(
    stage.value for stage in TrailerBuildStage
) + ("trailer",)
SPECIAL_TOKENS: Final[Tuple[str, ...]] = ("special", "need fix", "fix")
READY_TOKENS: Final[Tuple[str, ...]] = ("ready", "ship")

_FIELD_ALIASES: Final[Dict[str, Tuple[str, ...]]] = {
    "shipment_id": ("shipment_id", "shipmentId", "shipment"),
    "sequence_marker": ("sequence_marker", "sequenceMarker", "sequ", "Sequ"),
    "finalized_date": ("finalized_date", "finalizedDate", "fin_date", "finDate"),
    "build_date": ("build_date", "buildDate"),
}

_NUMERIC_MARKER_RE = re.compile(r"^\d+$")


# -------------------------
# Field access
# -------------------------
def _read_field(order: Any, field: str) -> Any:
    """Read a canonical field from a model, a mapping/Series row or any object."""
    if order is None:
        return None
    is_mapping = hasattr(order, "get") and hasattr(order, "keys")
    for name in _FIELD_ALIASES[field]:
        try:
            if is_mapping:
                value = order.get(name) if name in order.keys() else None
            else:
                value = getattr(order, name, None)
        except Exception:
            value = None
        if not is_missing(value):
            return value
    return None


def _marker_text(order: Any) -> str:
    value = _read_field(order, "sequence_marker")
    return value.strip() if isinstance(value, str) else ""


@dataclass(frozen=True)
class OrderSignals:
    """Normalized view of the raw fields the status rules look at."""

    has_shipment: bool
    marker: str
    has_finalized_date: bool
    has_build_date: bool


def order_signals(order: Any) -> OrderSignals:
    return OrderSignals(
        has_shipment=_read_field(order, "shipment_id") is not None,
        marker=_marker_text(order).lower(),
        has_finalized_date=_read_field(order, "finalized_date") is not None,
        has_build_date=_read_field(order, "build_date") is not None,
    )


# -------------------------
# Rules
# -------------------------
@dataclass(frozen=True)
class StatusRule:
    name: str
    status: OrderStatus
    predicate: Callable[[OrderSignals], bool]


def _marker_contains(tokens: Tuple[str, ...]) -> Callable[[OrderSignals], bool]:
    def _predicate(signals: OrderSignals) -> bool:
        return any(token in signals.marker for token in tokens)

    return _predicate


STATUS_RULES: Final[Tuple[StatusRule, ...]] = (
    StatusRule("shipment", OrderStatus.SHIPPED, lambda s: s.has_shipment),
    StatusRule("marker:weld", OrderStatus.WELDED, _marker_contains(WELD_TOKENS)),
    StatusRule("marker:zink", OrderStatus.ZINK, _marker_contains(ZINK_TOKENS)),
    StatusRule("marker:return", OrderStatus.RETURNED, _marker_contains(RETURN_TOKENS)),
    StatusRule("marker:assembly", OrderStatus.ASSEMBLED, _marker_contains(ASSEMBLY_TOKENS)),
    StatusRule(
        "marker:trailer-build", OrderStatus.TRAILER_BUILD, _marker_contains(TRAILER_BUILD_TOKENS)
    ),
    StatusRule("marker:special", OrderStatus.SPECIAL, _marker_contains(SPECIAL_TOKENS)),
    StatusRule("marker:ready", OrderStatus.READY_TO_SHIP, _marker_contains(READY_TOKENS)),
    StatusRule("finalized_date", OrderStatus.READY_TO_SHIP, lambda s: s.has_finalized_date),
    StatusRule("build_date", OrderStatus.TRAILER_BUILD, lambda s: s.has_build_date),
    StatusRule("default", OrderStatus.SCHEDULE, lambda s: True),
)


def matching_rule(order: Any) -> StatusRule:
    """Return the first rule in ``STATUS_RULES`` that matches the order."""
    signals = order_signals(order)
    return next(rule for rule in STATUS_RULES if rule.predicate(signals))


def classify_order(order: Any) -> OrderStatus:
    """Derive the canonical status of an order. Total: never raises."""
    return matching_rule(order).status


# -------------------------
# Labels & colors
# -------------------------
_NEUTRAL = "#E2E6EE"
_VIOLET_500 = "#8B5CF6"
_AMBER_500 = "#F59E0B"
_AMBER_600 = "#D97706"
_BLUE_400 = "#60A5FA"
_BLUE_500 = "#3B82F6"
_CYAN_500 = "#06B6D4"
_GREEN_500 = "#22C55E"
_EMERALD_500 = "#10B981"
_EMERALD_600 = "#059669"
_ORANGE_500 = "#F97316"
_TEAL_500 = "#14B8A6"

_STATUS_LABELS: Final[Dict[OrderStatus, str]] = {
    OrderStatus.SCHEDULE: "SCHEDULE",
    OrderStatus.WELDED: "WELDED",
    OrderStatus.ZINK: "ZINK",
    OrderStatus.RETURNED: "RETURNED",
    OrderStatus.ASSEMBLED: "ASSEMBLED",
    OrderStatus.TRAILER_BUILD: "TRAILER BUILD",
    OrderStatus.SPECIAL: "SPECIAL",
    OrderStatus.READY_TO_SHIP: "READY TO SHIP",
    OrderStatus.SHIPPED: "SHIPPED",
}

_STATUS_COLORS: Final[Dict[OrderStatus, str]] = {
    OrderStatus.SCHEDULE: _NEUTRAL,
    OrderStatus.WELDED: _VIOLET_500,
    OrderStatus.ZINK: _AMBER_500,
    OrderStatus.RETURNED: _AMBER_600,
    OrderStatus.ASSEMBLED: _BLUE_500,
    OrderStatus.TRAILER_BUILD: _EMERALD_500,
    OrderStatus.SPECIAL: _ORANGE_500,
    OrderStatus.READY_TO_SHIP: _TEAL_500,
    OrderStatus.SHIPPED: _EMERALD_600,
}

_STAGE_COLORS: Final[Dict[TrailerBuildStage, str]] = {
    TrailerBuildStage.WIRE: _BLUE_400,
    TrailerBuildStage.FLOOR: _CYAN_500,
    TrailerBuildStage.MOUNT: _GREEN_500,
}
DEFAULT_SUB_STATUS_COLOR = _EMERALD_500


def coerce_status(value: Any) -> Optional[OrderStatus]:
    """Parse enum members, values ("ready-to-ship") and labels ("Ready to Ship")."""
    if isinstance(value, OrderStatus):
        return value
    token = str(value or "").strip().lower().replace("_", "-").replace(" ", "-")
    try:
        return OrderStatus(token)
    except ValueError:
        return None


def status_label(status: Any) -> str:
    resolved = coerce_status(status) or OrderStatus.SCHEDULE
    return _STATUS_LABELS[resolved]


def status_color(status: Any) -> str:
    resolved = coerce_status(status) or OrderStatus.SCHEDULE
    return _STATUS_COLORS[resolved]


def status_color_map() -> Dict[str, str]:
    """Color per status value, for charts and badges keyed by status string."""
    return {status.value: _STATUS_COLORS[status] for status in OrderStatus}


def pipeline_statuses() -> List[OrderStatus]:
    return list(OrderStatus)


def pipeline_rank_map() -> Dict[OrderStatus, int]:
    return {status: idx for idx, status in enumerate(OrderStatus)}


# -------------------------
# Trailer-build sub-stage
# -------------------------
def trailer_build_stage(text: Any) -> Optional[TrailerBuildStage]:
    lowered = text.lower() if isinstance(text, str) else ""
    for stage in TRAILER_BUILD_STAGE_PRECEDENCE:
        if stage.value in lowered:
            return stage
    return None


def sub_status_color(sub_status: Any) -> str:
    stage = trailer_build_stage(sub_status)
    if stage is None:
        return DEFAULT_SUB_STATUS_COLOR
    return _STAGE_COLORS[stage]


def sub_status_label(order: Any, status: Optional[OrderStatus] = None) -> str:
    """Badge text for an order.

    Trailer-build orders show their stage (WIRE/FLOOR/MOUNT) when the marker
    names one, else the marker itself unless it is a bare sequence number.
    Every other status shows its regular label.
    """
    resolved = status if status is not None else classify_order(order)
    if resolved is not OrderStatus.TRAILER_BUILD:
        return status_label(resolved)

    marker = _marker_text(order)
    stage = trailer_build_stage(marker)
    if stage is not None:
        return stage.value.upper()
    if marker and not _NUMERIC_MARKER_RE.match(marker):
        return marker.upper()
    return status_label(resolved)


@dataclass(frozen=True)
class OrderClassification:
    status: OrderStatus
    label: str
    color: str
    sub_status: str
    sub_status_color: str


def describe_order(order: Any) -> OrderClassification:
    status = classify_order(order)
    sub_status = sub_status_label(order, status)
    return OrderClassification(
        status=status,
        label=status_label(status),
        color=status_color(status),
        sub_status=sub_status,
        sub_status_color=(
            sub_status_color(sub_status)
            if status is OrderStatus.TRAILER_BUILD
            else status_color(status)
        ),
    )
