#!/usr/bin/env python3
# run_celery_worker.py
"""
Development Celery worker runner.
Consumes the reminder (notifications) queue plus the default queue.
"""
import os
from pathlib import Path
import subprocess
import sys

project_dir = Path(__file__).parent
sys.path.insert(0, str(project_dir))
os.chdir(project_dir)

if __name__ == "__main__":
    queues = os.getenv("CELERY_QUEUES") or "celery,notifications"
    print("🚀 Starting Celery worker…")
    print(f"📦 Consuming queues: {queues}")
    print("")

    cmd = [
        sys.executable,
        "-m",
        "celery",
        "-A",
        "servicehub.tasks.celery_app",
        "worker",
        "--loglevel=info",
        "--concurrency=2",
        "--max-tasks-per-child=100",
        "--pool=prefork",
        "-Q",
        queues,
    ]

    subprocess.run(cmd)
