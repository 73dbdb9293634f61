#!/usr/bin/env python3
"""Run the User Records API with uvicorn."""
from __future__ import annotations

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from uvicorn import run

from user_records.core.config import get_settings


if __name__ == "__main__":
    settings = get_settings()
    port = int(sys.argv[1]) if len(sys.argv) > 1 else settings.port
    run("user_records.main:app", host=settings.host, port=port, log_level=settings.log_level.lower())
