import logging
import logging.config

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_settings
from app.routers.colors import limiter, router as colors_router
from app.services.cache import ResponseCache

settings = get_settings()

logging.config.dictConfig(
    {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "format": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
            },
        },
        "root": {"level": settings.log_level.upper(), "handlers": ["console"]},
    }
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Palettely – CSS Color Extraction API",
    description="Fetches a URL, reads its stylesheets, and returns the colors it uses.",
    version="1.0.0",
)

# Shared state injected into the routers
app.state.settings = settings
app.state.cache = ResponseCache(ttl=settings.cache_ttl_seconds, max_entries=settings.cache_max_entries)

# Rate-limiting state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    missing_url = any(
        err.get("type") == "missing" and tuple(err.get("loc", ()))[-1:] in (("url",), ("body",))
        for err in errors
    )
    url_errors = [err for err in errors if "url" in tuple(err.get("loc", ()))]
    if missing_url:
        content = {"error": "URL is required"}
    elif url_errors:
        content = {"error": "Invalid URL provided", "message": str(url_errors[0].get("msg", ""))}
    else:
        first = errors[0] if errors else {}
        content = {"error": "Invalid request body", "message": str(first.get("msg", ""))}
    logger.warning("Rejected request to %s: %s", request.url.path, content["error"])
    return JSONResponse(status_code=400, content=content)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception for %s", request.url)
    return JSONResponse(status_code=500, content={"error": "An unexpected error occurred."})


app.include_router(colors_router)


@app.get("/", summary="Health check")
async def root() -> dict:
    return {"message": "Hello from Palettely"}
