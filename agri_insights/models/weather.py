"""Weather snapshot consumed by demand forecasting.

The core is agnostic to where the snapshot comes from (mock, API, satellite).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from agri_insights.models.fields import repair_number


class WeatherSnapshot(BaseModel):
    """Current conditions plus an optional list of near-future snapshots."""

    model_config = ConfigDict(frozen=True)

    temp_max: float = 0.0
    temp_min: float = 0.0
    rainfall_mm: float = 0.0
    humidity: float = 0.0
    wind_speed_km: float = 0.0
    forecast: list["WeatherSnapshot"] = []

    @field_validator(
        "temp_max", "temp_min", "rainfall_mm", "humidity", "wind_speed_km", mode="before"
    )
    @classmethod
    def repair_readings(cls, v: Any) -> float:
        return repair_number(v)
