"""
Lumina Route Safety Backend - FastAPI
Modular entry point. All logic is split across:
  config.py, models.py, errors.py, providers.py, readiness.py, zones.py,
  geocoding.py, directions.py, scoring.py, geolocation.py, map_view.py,
  coordinator.py, routes.py
"""

import logging

logging.basicConfig(level=logging.INFO)

from routes import app  # noqa: F401,E402

if __name__ == "__main__":
    import uvicorn
    from config import APP_HOST, APP_PORT
    uvicorn.run(app, host=APP_HOST, port=APP_PORT)
