"""
main.py
========
Central entry point for the CallShield service.

Run with:
    uvicorn main:app --reload
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()  # Load .env before any module reads env vars

# Configure logging for the entire application
logging.basicConfig(
    level=os.getenv("CALLSHIELD_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Keep transport chatter out of the call log.
for _noisy_logger_name in (
    "aiohttp.access",
    "aiohttp.client",
    "uvicorn.access",
    "pydub.converter",
):
    logging.getLogger(_noisy_logger_name).setLevel(logging.WARNING)

from callshield.api.events import app  # noqa: F401, E402

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
