# routes/sensor_history.py
# Proxy endpoint for downloading PurpleAir sensor history

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from models import SensorHistoryRequest, SensorHistoryResponse
from services import purpleair

router = APIRouter(prefix="/sensor-history", tags=["Sensor History"])


@router.post("/download", response_model=SensorHistoryResponse)
def download(req: SensorHistoryRequest):
    """
    Fetch a sensor's history from PurpleAir and return it ready to save.

    Rows come back sorted oldest first, alongside a suggested filename and
    the same data as pretty-printed JSON and as CSV.

    Plain `def` so the blocking upstream call runs in the threadpool.
    """
    try:
        return purpleair.fetch_sensor_history(
            req.sensor_index,
            req.api_key,
            req.start_timestamp,
            req.end_timestamp,
            req.fields
        )
    except purpleair.SensorHistoryError as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.message})
    except Exception as e:
        print(f"Error downloading data: {e}")
        return JSONResponse(status_code=500, content={"error": str(e) or "Failed to download data"})
