"""Runtime settings, read from the environment (and a local .env file)."""

import os

from dotenv import load_dotenv

load_dotenv()

API_URL = os.getenv("DEVCONNECT_API_URL", "http://localhost:5000/api").rstrip("/")
API_TOKEN = os.getenv("DEVCONNECT_TOKEN") or None
REQUEST_TIMEOUT = int(os.getenv("DEVCONNECT_TIMEOUT", "10"))
PAGE_SIZE = int(os.getenv("DEVCONNECT_PAGE_SIZE", "10"))
LOG_LEVEL = os.getenv("DEVCONNECT_LOG_LEVEL", "WARNING").upper()
