"""
Farmer, plot and agronomic input models.

These are read-only inputs to the core. Optional descriptive fields default
to ``None`` so that sparse store rows (common for newly registered farmers)
still validate.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from agri_insights.models.fields import repair_number, repair_timestamp


class Farmer(BaseModel):
    """A registered farmer (a dealer's customer and debtor)."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str
    full_name: str
    mobile: Optional[str] = None
    village: Optional[str] = None
    mandal: Optional[str] = None
    district: Optional[str] = None
    primary_crop: Optional[str] = None


class FarmPlot(BaseModel):
    """A cultivated plot.

    Attributes:
        id: Store record ID.
        farmer_id: Owning farmer.
        acreage: Plot area (the unit is whatever the store records, acres in
            practice); junk values repair to 0.
        soil_type: e.g. ``"Sandy"``, ``"Red Loam"``.
        plant_type: Crop planted on the plot.
        planted_at: Plantation date, or ``None`` if unknown. Undated plots
            are excluded from age-cohort demand estimates.
    """

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str
    farmer_id: str
    acreage: float = 0.0
    soil_type: Optional[str] = None
    plant_type: Optional[str] = None
    planted_at: Optional[datetime] = None

    @field_validator("acreage", mode="before")
    @classmethod
    def repair_acreage(cls, v: Any) -> float:
        return repair_number(v)

    @field_validator("acreage")
    @classmethod
    def validate_acreage_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"acreage must be non-negative, got {v}.")
        return v

    @field_validator("planted_at", mode="before")
    @classmethod
    def repair_planted_at(cls, v: Any) -> Optional[datetime]:
        return repair_timestamp(v)


class AgronomicInput(BaseModel):
    """A fertilizer, pesticide or other input applied to a plot."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str
    farm_plot_id: str
    name: str
    input_type: str = ""
    applied_at: Optional[datetime] = None

    @field_validator("input_type", mode="before")
    @classmethod
    def normalise_input_type(cls, v: Any) -> str:
        return "" if v is None else str(v).strip().upper()

    @field_validator("applied_at", mode="before")
    @classmethod
    def repair_applied_at(cls, v: Any) -> Optional[datetime]:
        return repair_timestamp(v)
