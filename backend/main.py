"""
Image Remix Studio Backend
==========================
FastAPI backend that proxies image generation requests to the AI gateway.
"""

import logging
import os
import sys
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

# Add project root to path so we can import studio
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from studio.generation import GenerationError, generate
from studio.presets import list_presets

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("studio.backend")

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


def get_allowed_origins() -> list[str]:
    raw = os.environ.get("CORS_ALLOW_ORIGINS", "*")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(title="Image Remix Studio API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=CORS_ALLOW_HEADERS,
)

# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------

@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError):
    logger.error("Error in generate-image: %s", exc.message)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error in %s", request.url.path)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning("Rejected malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse({"error": "Missing images array or prompt"}, status_code=400)

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class GenerateImageRequest(BaseModel):
    # Kept loose so missing/empty fields reach the proxy's own validation
    images: list | None = Field(default=None)
    prompt: str | None = Field(default=None)

# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.get("/api/presets")
async def presets():
    return list_presets()


@app.post("/api/generate-image")
def generate_image(req: GenerateImageRequest):
    image_url = generate(req.images, req.prompt)
    return {"imageUrl": image_url}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.environ.get("HOST", "0.0.0.0"), port=int(os.environ.get("PORT", "8000")))
