#!/usr/bin/env python3
# run_celery_beat.py
"""
Development Celery beat runner.
Schedules the booking reminder scan.
"""
import os
from pathlib import Path
import subprocess
import sys

project_dir = Path(__file__).parent
sys.path.insert(0, str(project_dir))
os.chdir(project_dir)

if __name__ == "__main__":
    print("🚀 Starting Celery beat…")
    print("⏰ Beat will schedule the booking reminder scan")
    print("")

    cmd = [sys.executable, "-m", "celery", "-A", "servicehub.tasks.celery_app", "beat", "--loglevel=info"]

    subprocess.run(cmd)
