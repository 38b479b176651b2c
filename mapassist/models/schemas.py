"""Pydantic schemas for payloads handed over by the host editor."""

from __future__ import annotations

import math

from pydantic import BaseModel, Field, field_validator

from mapassist.core.geometry.points import GeoPoint
from mapassist.core.geometry.polygon import MapPolygon


def _check_lat_lon(lat: float, lon: float) -> None:
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ValueError("Coordinate must be a finite number")
    if not -90 <= lat <= 90:
        raise ValueError(f"Latitude {lat} out of range")
    if not -180 <= lon <= 180:
        raise ValueError(f"Longitude {lon} out of range")


class GeoPointInput(BaseModel):
    lat: float
    lon: float

    @field_validator("lon")
    @classmethod
    def must_be_valid(cls, v: float, info) -> float:
        _check_lat_lon(info.data.get("lat", 0.0), v)
        return v

    def to_point(self) -> GeoPoint:
        return GeoPoint(self.lat, self.lon)


class FeatureInput(BaseModel):
    id: str | None = None
    nodes: list[list[float]]  # [[lat, lon], ...]
    tags: dict[str, str] = {}
    is_area: bool = True

    @field_validator("nodes")
    @classmethod
    def must_be_pairs(cls, v: list[list[float]]) -> list[list[float]]:
        for pair in v:
            if len(pair) != 2:
                raise ValueError("Node must be [lat, lon]")
            _check_lat_lon(pair[0], pair[1])
        return v

    @field_validator("tags")
    @classmethod
    def keys_not_blank(cls, v: dict[str, str]) -> dict[str, str]:
        if any(not k.strip() for k in v):
            raise ValueError("Tag keys cannot be blank")
        return v

    def to_polygon(self) -> MapPolygon:
        return MapPolygon(
            id=self.id,
            nodes=[GeoPoint(lat, lon) for lat, lon in self.nodes],
            tags=dict(self.tags),
            is_area=self.is_area,
        )


class CombineRequest(BaseModel):
    ids: list[str] = Field(min_length=1)


class ClickResponse(BaseModel):
    polygon_id: str
    current_name: str
    suggested_name: str | None = None
    suggestion_source: str | None = None  # "interpolated" | "nearest"
    level: str | None = None
