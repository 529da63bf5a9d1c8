# config.py
# App configuration and constants

import os

# Data paths - can be overridden via environment variables
AOD_DATA_PATH = os.getenv("AOD_DATA_PATH", "data/AOD_points.json")
AOD_VALUE_FIELD = "AOD"

# Texas, roughly. Fixed region the contour map is drawn over.
REGION_BOUNDS = {
    "min_lat": 25.8,
    "max_lat": 36.5,
    "min_lon": -106.6,
    "max_lon": -93.5
}

# IDW interpolation parameters
GRID_RESOLUTION = int(os.getenv("GRID_RESOLUTION", "100"))  # 101 x 101 nodes
INFLUENCE_RADIUS = float(os.getenv("INFLUENCE_RADIUS", "0.5"))  # degrees
IDW_EPSILON = float(os.getenv("IDW_EPSILON", "0.01"))  # keeps 1/d finite at d=0

# Caps on what a single request may ask for
MAX_RESOLUTION = 500
MAX_POINTS_RETURNED = 5000

# PurpleAir sensor history proxy
PURPLEAIR_API_URL = os.getenv("PURPLEAIR_API_URL", "https://api.purpleair.com/v1")
PURPLEAIR_TIMEOUT = float(os.getenv("PURPLEAIR_TIMEOUT", "60"))
PURPLEAIR_AVERAGE = 0  # real-time rows, no averaging
TIMESTAMP_FIELDS = ("time_stamp", "timestamp")

# API metadata
API_TITLE = "Air Quality Dashboard Service"
API_VERSION = "1.0.0"
