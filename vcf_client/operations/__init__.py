"""
Operations (monitoring) backend support: query planning, response
normalization, resource resolution and the public operation surface.
"""

from .planner import IntervalType, MetricQueryPlanner, QueryPlan, normalize_rollup
from .resolver import Matched, NoMatch, ResolveResult, ResourceResolver, Unavailable
from .service import OperationsService
from .transform import normalize

__all__ = [
    "IntervalType",
    "MetricQueryPlanner",
    "QueryPlan",
    "normalize_rollup",
    "Matched",
    "NoMatch",
    "ResolveResult",
    "ResourceResolver",
    "Unavailable",
    "OperationsService",
    "normalize",
]
