#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Uses DATABASE_URL from the environment or backend/.env; defaults to a local
SQLite file.
"""
import os
from pathlib import Path

import uvicorn

if __name__ == "__main__":
    os.chdir(Path(__file__).parent)
    port = int(os.getenv("PORT", "8000"))

    print(f"Starting travelgraph API at http://localhost:{port}")
    print(f"API Docs: http://localhost:{port}/docs")

    uvicorn.run("travelgraph.main:app", host="0.0.0.0", port=port, reload=True, log_level="info")
