import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from app.api.study_guides import router as study_guides_router
from app.core.config import settings
from app.core.logging import configure_logging
from app.services.errors import (
    InvalidInput,
    ModelBackendError,
    TranscriptUnavailable,
    UpstreamInvalidResponse,
)

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="ScholarSync API", version="0.1.0")

# The browser extension calls from its own origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(study_guides_router)


# -----------------------
# Error mapping
# -----------------------
@app.exception_handler(InvalidInput)
async def _invalid_input(_request: Request, exc: InvalidInput) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(RequestValidationError)
async def _invalid_body(_request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        fields.append(".".join(loc) or "body")
    return JSONResponse(status_code=400, content={"error": f"Missing or invalid field(s): {', '.join(fields)}"})


@app.exception_handler(TranscriptUnavailable)
async def _transcript_unavailable(_request: Request, exc: TranscriptUnavailable) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": exc.message})


@app.exception_handler(UpstreamInvalidResponse)
async def _upstream_invalid(_request: Request, exc: UpstreamInvalidResponse) -> JSONResponse:
    return JSONResponse(status_code=502, content={"error": exc.message, "raw": exc.raw})


@app.exception_handler(ModelBackendError)
async def _backend_error(request: Request, exc: ModelBackendError) -> JSONResponse:
    logger.error(f"Error in {request.url.path}: {exc.message}")
    return JSONResponse(status_code=500, content={"error": exc.message})


@app.exception_handler(Exception)
async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error in {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# -----------------------
# Health
# -----------------------
class HealthResponse(BaseModel):
    ok: bool
    service: str
    version: str
    provider: str


@app.get("/", response_class=PlainTextResponse)
def root() -> str:
    return "ScholarSync backend is running"


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(ok=True, service="api", version=app.version, provider=settings.provider)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.port)
