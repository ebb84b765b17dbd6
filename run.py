#!/usr/bin/env python3
# run.py
"""
Development server runner.
For local development only - reloads on code changes.
"""
import os
from pathlib import Path
import sys

project_dir = Path(__file__).parent
sys.path.insert(0, str(project_dir))
os.chdir(project_dir)

import uvicorn

if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "5000"))
    print(f"🚀 Starting ServiceHub API on http://localhost:{port}")
    print(f"📚 API Docs: http://localhost:{port}/docs")

    uvicorn.run("servicehub.main:app", host=host, port=port, reload=True, log_level="info")
