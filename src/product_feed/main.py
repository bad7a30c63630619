# src/product_feed/main.py
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.routing import Match

from product_feed.api.dependencies import get_http_client
from product_feed.api.v1.router import api_router
from product_feed.core.config import get_settings
from product_feed.core.metrics import REQUEST_COUNT
from product_feed.core.rate_limit import limiter

logger = logging.getLogger(__name__)

settings = get_settings()

_UNMATCHED_PATH = "unmatched"


def route_template(request: Request) -> str:
    """
    Liefert das Pfad-Template der passenden Route, z.B. /api/v1/products/{category}.
    Kategorienamen landen so nicht als eigene Label-Werte in den Metriken.
    """
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", _UNMATCHED_PATH)
    return _UNMATCHED_PATH


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        REQUEST_COUNT.labels(
            method=request.method,
            path=route_template(request),
            status_code=str(response.status_code),
        ).inc()
        return response


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Shared Client einmal anlegen; alle Feed-Clients teilen seinen Connection-Pool
    client = get_http_client()
    app.state.http_client = client
    logger.info(
        "Serving %d categories from %s (cache %s, max %d entries)",
        len(settings.categories),
        settings.base_url,
        "enabled" if settings.cache_enabled else "disabled",
        settings.cache_max_size,
    )
    try:
        yield
    finally:
        await client.aclose()
        # Nächster Start (z.B. erneuter TestClient) bekommt einen frischen Client
        get_http_client.cache_clear()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

app.add_middleware(MetricsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    expose_headers=["X-Error-Kind"],
)

app.include_router(api_router)


@app.get("/healthz", tags=["Health"])
async def health_check() -> dict[str, str]:
    return {"status": "ok", "version": settings.app_version}


@app.get("/readyz", tags=["Health"])
async def readiness_check(request: Request) -> dict[str, str]:
    client = getattr(request.app.state, "http_client", None)
    if client is None or client.is_closed:
        return {"status": "starting"}
    return {"status": "ready"}


@app.get("/metrics", tags=["Monitoring"])
async def metrics_endpoint() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
