# main.py
# Application entry point

"""
Air Quality Dashboard Service
=============================
REST API behind the air quality dashboard.

The service exposes two feature groups:
1. AOD contour - interpolates scattered AOD readings over Texas onto a grid
2. Sensor history - proxies PurpleAir history downloads

Run with:
    uvicorn main:app --reload --port 8000
"""

import time
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import API_TITLE, API_VERSION, AOD_DATA_PATH
from models import ServiceStatus
from services.aod_data import AODContourService
from routes import aod, sensor_history


# Create the app
app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    description="Interpolates AOD readings into contour grids and proxies PurpleAir sensor history downloads.",
    docs_url="/docs"
)

# Allow frontend to call us
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global state - populated on startup
contour_service = None


@app.on_event("startup")
async def startup():
    """Load the AOD points when the app starts."""
    global contour_service

    print("=" * 50)
    print(f"Starting {API_TITLE} v{API_VERSION}")
    print("=" * 50)

    start = time.time()
    try:
        contour_service = AODContourService()
    except FileNotFoundError:
        # Still serve the map, it just shows "no data in region"
        print(f"WARNING: {AOD_DATA_PATH} not found, starting with no AOD points")
        contour_service = AODContourService(samples=[])

    # Wire up the routes with dependencies
    aod.set_dependencies(contour_service)

    print(f"Ready in {time.time() - start:.1f}s")
    print("=" * 50)


# Mount the routers
app.include_router(aod.router)
app.include_router(sensor_history.router)


# Root endpoint
@app.get("/", tags=["System"])
async def root():
    """API overview."""
    return {
        "service": API_TITLE,
        "version": API_VERSION,
        "docs": "/docs",
        "endpoints": {
            "aod": [
                "GET /aod/contour",
                "GET /aod/value?lat=&lon=",
                "GET /aod/points",
                "GET /aod/region"
            ],
            "sensor_history": [
                "POST /sensor-history/download"
            ]
        }
    }


@app.get("/status", response_model=ServiceStatus, tags=["System"])
async def status():
    """Check if the service is ready."""
    return {
        "status": "ok" if contour_service else "starting",
        "service_ready": contour_service is not None,
        "points_loaded": len(contour_service.samples) if contour_service else 0
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
