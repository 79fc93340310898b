"""
Serverless entry point.

Serverless hosts call the ASGI app for every request to /api/*; it is the
same application uvicorn serves, so routes are not duplicated here. Use the
postgres backend (DATABASE_URL pointing at Supabase) since the function
filesystem does not persist between invocations.
"""

import os
import sys

# Make the backend package importable when the project is not installed
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "backend"))

from newsroom.main import app  # noqa: E402

__all__ = ["app"]
