"""
Uniform metric series models.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MetricSeries(BaseModel):
    """
    One metric of one resource over time.

    ``timestamps`` are epoch milliseconds; ``values`` holds the sample for the
    timestamp at the same position (None where the backend sent no number).
    """

    resource_id: str = Field(alias="resourceId")
    metric_key: str = Field(alias="metricKey")
    timestamps: List[int] = Field(default_factory=list)
    values: List[Optional[float]] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @model_validator(mode="after")
    def check_lengths(self) -> "MetricSeries":
        if len(self.timestamps) != len(self.values):
            raise ValueError("timestamps and values must have the same length")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class MetricsResponse(BaseModel):
    """Result of a metrics read: a list of series."""

    values: List[MetricSeries] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"values": [series.to_dict() for series in self.values]}
