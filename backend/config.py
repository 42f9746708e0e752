"""Lumina Backend - Configuration & Constants"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root (one level up from backend/)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path)

# ── API Keys ──
GOOGLE_MAPS_API_KEY = os.environ.get("GOOGLE_MAPS_API_KEY", "")

# ── Server ──
APP_HOST = os.environ.get("APP_HOST", "0.0.0.0")
APP_PORT = int(os.environ.get("APP_PORT", "8000"))

# ── Provider endpoints ──
GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
ROUTES_URL = "https://routes.googleapis.com/directions/v2:computeRoutes"
GEOLOCATION_URL = "https://www.googleapis.com/geolocation/v1/geolocate"
HTTP_TIMEOUT = float(os.environ.get("LUMINA_HTTP_TIMEOUT", "15.0"))

# ── Scoring ──
# "sample" returns the fixed demo metrics, "exposure" scores against zones
SCORER = os.environ.get("LUMINA_SCORER", "sample").strip().lower()
ZONES_FILE = os.environ.get("LUMINA_ZONES_FILE", "")

SAMPLE_ROUTE_INFO = {
    "distance": "12.5 km",
    "duration": "28 mins",
    "safetyScore": 87,
    "alternativeRoutes": 3,
}

# Badge thresholds, inclusive lower bounds
SAFE_ROUTE_MIN = 80
MODERATE_RISK_MIN = 60

# Exposure scorer tuning
RISK_TIER_WEIGHTS = {"low": 1.0, "medium": 2.5, "high": 5.0}
EXPOSURE_DECAY_M = 500.0

# ── Map view ──
# Default center - Delhi, India
DEFAULT_CENTER = {"lat": 28.6139, "lng": 77.2090}
DEFAULT_ZOOM = 11
USER_LOCATION_ZOOM = 14
MAP_LOAD_ERROR_MESSAGE = "Error loading Google Maps"

# ── Geolocation ──
GEOLOCATION_TIMEOUT_S = 10.0
GEOLOCATION_MAX_AGE_S = 60.0

# ── User-facing messages ──
MISSING_LOCATIONS_MESSAGE = "Please enter both origin and destination"
UNRESOLVED_LOCATIONS_MESSAGE = "Could not find one or both locations. Please try different addresses."

# Risk level → marker / badge color
RISK_COLORS = {
    "low": "#10B981",     # green
    "medium": "#F59E0B",  # amber
    "high": "#EF4444",    # red
}
NEUTRAL_COLOR = "#6B7280"  # gray

# Reference safety zones (Delhi sample set)
SEED_SAFETY_ZONES = [
    {"id": "1", "name": "Connaught Place", "riskLevel": "low", "incidents": 2,
     "lastUpdated": "5 min ago", "lat": 28.6315, "lng": 77.2167},
    {"id": "2", "name": "Karol Bagh", "riskLevel": "low", "incidents": 1,
     "lastUpdated": "12 min ago", "lat": 28.6519, "lng": 77.1909},
    {"id": "3", "name": "Lajpat Nagar", "riskLevel": "medium", "incidents": 8,
     "lastUpdated": "3 min ago", "lat": 28.5665, "lng": 77.2431},
    {"id": "4", "name": "Paharganj", "riskLevel": "high", "incidents": 15,
     "lastUpdated": "1 min ago", "lat": 28.6433, "lng": 77.2167},
    {"id": "5", "name": "Khan Market", "riskLevel": "low", "incidents": 0,
     "lastUpdated": "8 min ago", "lat": 28.5984, "lng": 77.2319},
    {"id": "6", "name": "Chandni Chowk", "riskLevel": "medium", "incidents": 4,
     "lastUpdated": "6 min ago", "lat": 28.6506, "lng": 77.2301},
]
