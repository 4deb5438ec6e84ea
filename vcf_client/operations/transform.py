"""
Vendor stats response normalization.

The operations backend nests samples as ``values[].stat-list.stat[]`` with
``statKey.key``, ``timestamps`` and ``data`` on each stat. ``normalize``
flattens that into MetricSeries and never raises on malformed input.
"""

from __future__ import annotations

import logging
import math
from typing import Any, List, Optional

from ..models.metrics import MetricSeries

logger = logging.getLogger(__name__)


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_timestamp(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    return None


def _as_sample(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return None
    return None


def _build_series(resource_id: str, metric_key: str, stat: dict) -> MetricSeries:
    raw_timestamps = _as_list(stat.get("timestamps"))
    raw_values = _as_list(stat.get("data"))

    timestamps: List[int] = []
    values: List[Optional[float]] = []
    for raw_timestamp, raw_value in zip(raw_timestamps, raw_values):
        timestamp = _as_timestamp(raw_timestamp)
        if timestamp is None:
            continue
        timestamps.append(timestamp)
        values.append(_as_sample(raw_value))

    if len(raw_timestamps) != len(raw_values):
        logger.debug(
            f"Metric {metric_key}: {len(raw_timestamps)} timestamps but "
            f"{len(raw_values)} data points, truncated to the shorter side"
        )

    return MetricSeries(
        resource_id=resource_id,
        metric_key=metric_key,
        timestamps=timestamps,
        values=values,
    )


def normalize(raw: Any, requested_resource_id: str) -> List[MetricSeries]:
    """
    Flatten a stats response into metric series.

    Args:
        raw: Parsed JSON response, of any shape
        requested_resource_id: Id used when a value item carries none

    Returns:
        One series per stat with a key; empty for empty or malformed input
    """
    series: List[MetricSeries] = []
    value_items = _as_list(_as_dict(raw).get("values"))
    logger.debug(f"Transforming response with {len(value_items)} value items")

    for item in value_items:
        item = _as_dict(item)
        resource_id = item.get("resourceId")
        if not isinstance(resource_id, str) or not resource_id:
            resource_id = requested_resource_id

        stats = _as_list(_as_dict(item.get("stat-list")).get("stat"))
        for stat in stats:
            stat = _as_dict(stat)
            metric_key = _as_dict(stat.get("statKey")).get("key")
            if not isinstance(metric_key, str) or not metric_key:
                continue
            series.append(_build_series(resource_id, metric_key, stat))

    logger.debug(f"Final transformed metrics: {len(series)} series")
    return series
