#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Uses the local SQLite database and the in-process slot lock unless the
environment says otherwise, so a laptop without Redis can serve bookings.
"""
import os
from pathlib import Path
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("BOOKING_LOCK_BACKEND", "local")

import uvicorn

if __name__ == "__main__":
    print("Starting Jawla booking engine (development)...")
    print(f"Slot lock backend: {os.environ['BOOKING_LOCK_BACKEND']}")
    print("API Docs: http://localhost:8000/docs")

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
