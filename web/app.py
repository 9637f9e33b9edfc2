"""
FastAPI application setup for the SRI assessment web service.
"""

from dotenv import load_dotenv
from fastapi import FastAPI

from assessment_platform.logging_setup import configure_logging

from . import __version__ as WEB_VERSION
from .routes import router

# Load .env file (if present) so SRI_ASSESSMENT_* settings are available via os.environ
load_dotenv()
configure_logging()

# App
app = FastAPI(
    title="sri-assessment",
    description="Adaptive sexuality and relationships self-assessment",
    version=WEB_VERSION,
)

# Include API routes
app.include_router(router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": WEB_VERSION}
