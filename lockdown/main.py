"""Entry point. Loads .env, wires the protection engine and serves the API."""
import os
from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_DIR = os.path.dirname(BASE_DIR)
load_dotenv(os.path.join(PROJECT_DIR, ".env"))

import logging

from lockdown.api.app import create_app
from lockdown.bootstrap import build_protection

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# CORS origins from env (comma-separated); none by default.
_allowed = os.environ.get("ALLOWED_ORIGINS", "").strip()
allow_origins = [o.strip() for o in _allowed.split(",") if o.strip()]

protection = build_protection()
app = create_app(protection, allow_origins=allow_origins)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "lockdown.main:app",
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "8000")),
    )
