import os
import logging
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import metrics
from .config import ShowcaseConfig
from .pipeline import pipeline_router

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = ShowcaseConfig.from_env()
    logger.info(
        f"Showcase service starting (image={config.image_model}, "
        f"analysis={config.analysis_model}, video={config.video_model})"
    )
    if not config.gemini_api_key:
        logger.warning("GEMINI_API_KEY not set, image and analysis routes will fail")
    yield
    logger.info("Showcase service shutting down...")


app = FastAPI(
    title="Atelier Showcase API",
    description="Fashion sketch to technical drawing, 3D render and showcase videos.",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(pipeline_router)


@app.get("/health")
def health_check():
    """Verify the service is running and credentials are configured."""
    config = ShowcaseConfig.from_env()
    gemini_key = config.gemini_api_key
    return {
        "status": "ok",
        "gemini_api_key_set": bool(gemini_key),
        "gemini_key_prefix": gemini_key[:8] + "..." if gemini_key else "MISSING",
        "veo_api_key_set": bool(config.veo_api_key),
    }


@app.get("/metrics")
def metrics_endpoint():
    """Return a snapshot of all service metrics."""
    return metrics.get_snapshot()


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    uvicorn.run("atelier.main:app", host="0.0.0.0", port=port, reload=True)
