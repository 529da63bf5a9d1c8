# models.py
# Pydantic models for request/response validation

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Union


# --- AOD Contour Models ---

class RegionBoundsModel(BaseModel):
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float


class ContourResponse(BaseModel):
    """Interpolated AOD grid. values[i][j] is at (lats[i], lons[j]), null = no data."""
    lats: List[float]
    lons: List[float]
    values: List[List[Optional[float]]]
    point_count: int
    resolution: int
    influence_radius: float
    epsilon: float
    empty: bool  # True if no point fell inside the region
    min_value: Optional[float]
    max_value: Optional[float]
    region: RegionBoundsModel


class PointValue(BaseModel):
    """Response for a single-coordinate AOD estimate."""
    lat: float
    lon: float
    value: Optional[float]
    contributors: int


class AODPoint(BaseModel):
    latitude: float
    longitude: float
    value: float


class PointListResponse(BaseModel):
    count: int
    points: List[AODPoint]
    truncated: bool = False  # True if list was cut off


class RegionInfo(BaseModel):
    bounds: RegionBoundsModel
    geometry: Dict[str, Any]
    area_km2: float


# --- Sensor History Models ---

class SensorHistoryRequest(BaseModel):
    """Request body for a sensor history download. Presence is checked by the route."""
    sensor_index: Optional[Union[int, str]] = Field(None, example=12345)
    api_key: Optional[str] = None
    start_timestamp: Optional[Union[int, str]] = Field(
        None,
        description="Unix seconds or ISO 8601",
        example="2024-06-01T00:00:00Z"
    )
    end_timestamp: Optional[Union[int, str]] = Field(None, example="2024-06-02T00:00:00Z")
    fields: Optional[List[str]] = Field(
        None,
        description="PurpleAir field names to request",
        example=["pm2.5_atm", "humidity", "temperature"]
    )


class SensorHistoryResponse(BaseModel):
    success: bool
    filename: str
    data_points: int
    data: Dict[str, Any]
    json_content: str
    csv_content: str


# --- System Models ---

class ServiceStatus(BaseModel):
    """Service health/status response."""
    status: str
    service_ready: bool
    points_loaded: int
