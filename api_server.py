#!/usr/bin/env python
"""
API server entry point

Run with ``python api_server.py`` or ``uvicorn thamel_loyalty.main:app``.
"""
import os
import sys

# Add src to Python path (relative to api_server.py)
src_path = os.path.join(os.path.dirname(__file__), "src")
if os.path.exists(src_path) and src_path not in sys.path:
    sys.path.insert(0, src_path)

import uvicorn

from thamel_loyalty.config import config
from thamel_loyalty.main import app  # noqa: F401


if __name__ == "__main__":
    uvicorn.run("thamel_loyalty.main:app", host="0.0.0.0", port=config.PORT)
