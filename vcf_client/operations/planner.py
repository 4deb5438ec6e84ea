"""
Time-series query planning.

Derives the time range, rollup type and sampling interval for a metrics
request. Longer ranges are sampled more coarsely so the number of points per
series stays bounded.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..exceptions import ValidationError

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS
DEFAULT_RANGE_MS = DAY_MS
DEFAULT_ROLLUP = "AVG"


class IntervalType(str, Enum):
    """Vendor interval units."""

    MINUTES = "MINUTES"
    HOURS = "HOURS"
    DAYS = "DAYS"


# (upper bound of the range inclusive, interval type, quantifier)
INTERVAL_TIERS: Tuple[Tuple[int, IntervalType, int], ...] = (
    (6 * HOUR_MS, IntervalType.MINUTES, 5),
    (24 * HOUR_MS, IntervalType.MINUTES, 15),
    (168 * HOUR_MS, IntervalType.HOURS, 1),
)
LONG_RANGE_INTERVAL = (IntervalType.DAYS, 1)


def normalize_rollup(hint: Optional[str]) -> str:
    """Map the ``AVERAGE`` alias to ``AVG``; pass anything else through."""
    if not hint:
        return DEFAULT_ROLLUP
    if hint == "AVERAGE":
        return "AVG"
    return hint


def coerce_bound(value: Any, field: str) -> Optional[int]:
    """Convert a range bound to epoch milliseconds; None stays None."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be epoch milliseconds", field)
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"{field} must be epoch milliseconds", field)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be epoch milliseconds", field) from None


def interval_for(range_ms: int) -> Tuple[IntervalType, int]:
    """Pick the sampling interval for a range length in milliseconds."""
    for upper, interval_type, quantifier in INTERVAL_TIERS:
        if range_ms <= upper:
            return interval_type, quantifier
    return LONG_RANGE_INTERVAL


@dataclass(frozen=True)
class QueryPlan:
    """Fully derived parameters of one metrics query."""

    resource_ids: Tuple[str, ...]
    stat_keys: Tuple[str, ...]
    begin: int
    end: int
    roll_up_type: str
    interval_type: IntervalType
    interval_quantifier: int

    @property
    def range_ms(self) -> int:
        return self.end - self.begin

    def to_params(self) -> List[Tuple[str, str]]:
        """Query parameters for ``GET /api/resources/stats`` (repeated keys kept)."""
        params: List[Tuple[str, str]] = []
        params.extend(("resourceId", resource_id) for resource_id in self.resource_ids)
        params.extend(("statKey", stat_key) for stat_key in self.stat_keys)
        params.append(("rollUpType", self.roll_up_type))
        params.append(("intervalType", self.interval_type.value))
        params.append(("intervalQuantifier", str(self.interval_quantifier)))
        params.append(("begin", str(self.begin)))
        params.append(("end", str(self.end)))
        return params

    def to_query_body(self) -> Dict[str, Any]:
        """Body for ``POST /api/resources/stats/query``."""
        return {
            "resourceId": list(self.resource_ids),
            "statKey": list(self.stat_keys),
            "begin": self.begin,
            "end": self.end,
            "rollUpType": self.roll_up_type,
            "intervalType": self.interval_type.value,
            "intervalQuantifier": self.interval_quantifier,
        }


class MetricQueryPlanner:
    """
    Builds QueryPlan values.

    Example:
        ```python
        planner = MetricQueryPlanner()
        plan = planner.plan(["vm-1"], ["cpu|usage_average"], roll_up_type="AVERAGE")
        plan.interval_type   # IntervalType.MINUTES (default 24h range)
        ```
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """
        Args:
            clock: Time source in epoch seconds
        """
        self._clock = clock

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def plan(
        self,
        resource_ids: Sequence[str],
        stat_keys: Sequence[str],
        begin: Optional[int] = None,
        end: Optional[int] = None,
        roll_up_type: Optional[str] = None,
    ) -> QueryPlan:
        """
        Derive a query plan.

        Args:
            resource_ids: Resources to query (at least one)
            stat_keys: Metric keys to query (at least one)
            begin: Range start in epoch milliseconds
            end: Range end in epoch milliseconds
            roll_up_type: Rollup hint; ``AVERAGE`` is accepted for ``AVG``

        Returns:
            Immutable QueryPlan

        Raises:
            ValidationError: On empty id/key lists, non-numeric bounds or an inverted range
        """
        if not resource_ids:
            raise ValidationError("resourceIds parameter is required", "resourceIds")
        if not stat_keys:
            raise ValidationError("statKeys parameter is required", "statKeys")

        begin = coerce_bound(begin, "begin")
        end = coerce_bound(end, "end")

        if begin is None and end is None:
            end = self.now_ms()
            begin = end - DEFAULT_RANGE_MS
        elif end is None:
            end = self.now_ms()
        elif begin is None:
            begin = end - DEFAULT_RANGE_MS

        if begin > end:
            raise ValidationError("begin must not be later than end", "begin")

        interval_type, quantifier = interval_for(end - begin)
        return QueryPlan(
            resource_ids=tuple(resource_ids),
            stat_keys=tuple(stat_keys),
            begin=int(begin),
            end=int(end),
            roll_up_type=normalize_rollup(roll_up_type),
            interval_type=interval_type,
            interval_quantifier=quantifier,
        )
