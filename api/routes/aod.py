# routes/aod.py
# Endpoints for the AOD contour map

from fastapi import APIRouter, HTTPException, Query

from models import ContourResponse, PointValue, PointListResponse, RegionInfo
from config import MAX_RESOLUTION, MAX_POINTS_RETURNED
from services.aod_data import AODContourService
from services.interpolator import InterpolationError

router = APIRouter(prefix="/aod", tags=["AOD"])

# Set by main.py on startup
service: AODContourService = None


def set_dependencies(svc: AODContourService):
    """Called by main.py to inject dependencies."""
    global service
    service = svc


def _require_service():
    if service is None:
        raise HTTPException(503, "Service starting up, try again shortly")


@router.get("/contour", response_model=ContourResponse)
def contour(
    resolution: int = Query(None, ge=1, le=MAX_RESOLUTION),
    influence_radius: float = Query(None, gt=0),
    epsilon: float = Query(None, gt=0)
):
    """
    Interpolated AOD grid over the region, ready for a contour plot.

    Each node is an inverse-distance weighted mean of the points within
    influence_radius degrees. Nodes with nothing in range are null.
    Leave the parameters out to use the configured defaults.
    """
    _require_service()

    try:
        return service.contour(resolution, influence_radius, epsilon)
    except InterpolationError as e:
        raise HTTPException(400, str(e))


@router.get("/value", response_model=PointValue)
def value_at(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180)
):
    """Interpolated AOD at a single coordinate inside the region."""
    _require_service()

    result = service.get_value_at_coord(lat, lon)
    if "error" in result:
        raise HTTPException(400, result)

    return result


@router.get("/points", response_model=PointListResponse)
async def points(limit: int = Query(1000, ge=1, le=MAX_POINTS_RETURNED)):
    """
    Raw AOD points inside the region.

    Note: Response is capped at `limit` points to avoid huge payloads.
    """
    _require_service()
    return service.points(limit)


@router.get("/region", response_model=RegionInfo)
async def region():
    """Region bounds, outline as GeoJSON and its area."""
    _require_service()
    return service.region_info()
