from fastapi import FastAPI, WebSocket, Response, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
import logging
import os
import time
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from . import pubsub
from .routes import (
    inventory,
    requests,
    teams,
    comments,
    audit,
)

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

dsn = os.getenv("SENTRY_DSN")
if dsn:
    sentry_sdk.init(dsn=dsn, integrations=[FastApiIntegration()])

REQUEST_COUNT = Counter("request_count", "Total requests", ["method", "endpoint"])
REQUEST_LATENCY = Histogram(
    "request_latency_seconds", "Request latency", ["endpoint"]
)

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

app = FastAPI(title="Sample Desk API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, lambda r, e: Response("Too Many Requests", status_code=429))
if os.getenv("TESTING") != "1":
    app.add_middleware(SlowAPIMiddleware)


@app.middleware("http")
async def record_metrics(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    REQUEST_COUNT.labels(request.method, endpoint).inc()
    REQUEST_LATENCY.labels(endpoint).observe(time.time() - start)
    return response

@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

app.include_router(inventory.router)
app.include_router(requests.router)
app.include_router(teams.router)
app.include_router(comments.router)
app.include_router(audit.router)


def iter_api_routes(routes=None, prefix=""):
    """Yield (path, route) for every endpoint, descending into included routers."""

    for route in app.routes if routes is None else routes:
        path = getattr(route, "path", None) or getattr(route, "prefix", "")
        if not path.startswith(prefix):
            path = prefix + path
        if hasattr(route, "dependant"):
            yield path, route
        children = getattr(route, "routes", None)
        if children:
            yield from iter_api_routes(children, path if not hasattr(route, "dependant") else prefix)


def audit_routes():
    from .auth import get_current_actor

    public_paths = {
        "/metrics",
    }
    checked = 0
    for path, route in iter_api_routes():
        if path.startswith("/api") and path not in public_paths:
            calls = [dep.call for dep in route.dependant.dependencies]
            if get_current_actor not in calls:
                raise RuntimeError(f"Route {path} missing actor resolution")
            checked += 1
    if not checked:
        raise RuntimeError("No /api routes found to check for actor resolution")


audit_routes()


@app.websocket("/ws/teams/{team_id}")
async def team_events(websocket: WebSocket, team_id: str):
    await websocket.accept()
    async for message in pubsub.iter_team_events(team_id):
        await websocket.send_text(message)
