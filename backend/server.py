import logging
import sys
from contextlib import asynccontextmanager
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

# Load env vars
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))

from poster_core.config_manager import ConfigManager  # noqa: E402
from poster_core.errors import ConfigurationError, PosterFlowError, ValidationError  # noqa: E402
from poster_core.packaging.models import (  # noqa: E402
    PLACEHOLDER_RECOMMENDATION,
    PLACEHOLDER_TAGS,
    GeneratedPosterFields,
)
from poster_core.pipeline import PosterPipeline  # noqa: E402
from poster_core.utils.logger import setup_logger  # noqa: E402


# Bridge loguru to standard logging
class InterceptHandler(logging.Handler):
    def emit(self, record):
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


# --- Configuration (read once per process) ---
@lru_cache
def get_config_manager() -> ConfigManager:
    return ConfigManager()


def get_pipeline(config_manager: ConfigManager = Depends(get_config_manager)) -> PosterPipeline:
    # Checked before any request work so a missing key never reaches the network
    if not config_manager.has_credential:
        raise ConfigurationError("Generation API key is not configured; set GEMINI_API_KEY in .env.")
    return PosterPipeline(config_manager)


@asynccontextmanager
async def lifespan(app: FastAPI):
    cm = get_config_manager()
    setup_logger(cm.paths, secrets=[cm.generation.api_key])
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logging.getLogger("uvicorn").handlers = [InterceptHandler()]
    logging.getLogger("uvicorn.access").handlers = [InterceptHandler()]
    if not cm.has_credential:
        logger.warning("GEMINI_API_KEY is not set; generation requests will fail.")
    yield


# --- App Configuration ---
app = FastAPI(title="PosterFlow Backend", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Data Models ---
class AnalyzeRequest(BaseModel):
    url: Optional[str] = None


class ShareRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(PosterFlowError)
async def pipeline_error_handler(request: Request, exc: PosterFlowError):
    status_code = 400 if isinstance(exc, ValidationError) else 500
    logger.error(f"{request.url.path} failed: {exc}")
    return _error(status_code, str(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"{request.url.path} rejected malformed body: {exc.errors()}")
    return _error(400, "Invalid request body.")


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unexpected error on {request.url.path}")
    return _error(500, "Generation failed, please retry.")


# --- Routes ---
@app.post("/api/analyze")
async def analyze(req: AnalyzeRequest, pipeline: PosterPipeline = Depends(get_pipeline)):
    if not req.url or not req.url.strip():
        raise ValidationError("Please provide a video URL.")

    logger.info(f"Analyzing video: {req.url}")
    result = await pipeline.run(req.url)

    body = {"success": True, "data": result.poster_fields.model_dump()}
    if result.share_text:
        body["shareText"] = result.share_text
    return body


@app.post("/api/generate-share")
async def generate_share(req: ShareRequest, pipeline: PosterPipeline = Depends(get_pipeline)):
    if not req.title or not req.description:
        raise ValidationError("Please provide both a title and a description.")

    logger.info(f"Generating share text for: {req.title}")
    poster = GeneratedPosterFields(
        title=req.title,
        description=req.description,
        tags=[tag for tag in (req.tags or []) if tag] or list(PLACEHOLDER_TAGS),
        recommendation=PLACEHOLDER_RECOMMENDATION,
    )
    share_text = await pipeline.generate_share_text(poster)
    return {"success": True, "shareText": share_text}


@app.get("/health")
async def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
