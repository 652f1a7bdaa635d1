"""
Collector HTTP surface.

    POST /heartbeat   accept a liveness assertion ("Heartbeat received")
    GET  /status      aggregate status, "ONLINE" or "OFFLINE"
    GET  /            418 teapot page
    anything else     404
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse

from api.models import LivenessAssertion
from core.errors import AuthenticationError, ValidationError
from core.settings import Settings
from core.utils import epoch_seconds
from monitoring.registry import LivenessRegistry
from monitoring.verifier import HeartbeatVerifier

logger = logging.getLogger("liveness.api")

TEAPOT_BODY = """<!DOCTYPE html>
<html>
<head>
    <title>418 I'm a teapot</title>
    <style>
        body {
            text-align: center;
            padding: 50px;
            font-family: "Arial", sans-serif;
            background-color: #f3f3f3;
        }

        h1 {
            font-size: 50px;
        }

        .message {
            font-size: 20px;
        }
    </style>
</head>
<body>
    <h1>418</h1>
    <div class="message">
        I can't brew coffee, but I can brew tea.
    </div>
</body>
</html>"""


def _client_identity(request: Request, trust_forwarded_for: bool) -> str:
    if trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
        if forwarded:
            return forwarded
    return request.client.host if request.client else "unknown"


def create_app(settings=None, registry=None, verifier=None, public_key=None, clock=epoch_seconds):
    """Build the collector app around an explicitly owned registry.

    Handlers reach the registry and verifier through ``app.state``; nothing is
    shared through module globals, so each app (and each test) is isolated.
    """
    settings = settings or Settings(server=True)
    if registry is None:
        registry = LivenessRegistry(
            offline_timeout=settings.offline_timeout,
            zombie_timeout=settings.zombie_timeout,
        )
    if verifier is None:
        verifier = HeartbeatVerifier(
            registry,
            public_key=public_key,
            digest=settings.digest,
            timeout=settings.timeout,
            clock=clock,
        )

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        if verifier.authenticated:
            logger.info("Signature verification enabled (digest %s)", verifier.digest)
        else:
            logger.warning("No public key configured; accepting unsigned heartbeats")
        yield

    app = FastAPI(
        title="Liveness Monitor",
        description="Collects signed heartbeats and reports aggregate ONLINE/OFFLINE status.",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.verifier = verifier
    app.state.clock = clock

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled exception on %s (request %s)", request.url.path, request_id)
            response = JSONResponse(
                status_code=500,
                content={"detail": "Internal server error", "request_id": request_id},
            )
        duration_ms = (time.perf_counter() - start) * 1000.0
        response.headers["X-Request-ID"] = request_id
        logger.debug(
            "%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, duration_ms
        )
        return response

    @app.exception_handler(RequestValidationError)
    async def malformed_body_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": "Malformed heartbeat"})

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(request: Request, exc: AuthenticationError):
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    @app.get("/", response_class=HTMLResponse)
    def teapot():
        return HTMLResponse(content=TEAPOT_BODY, status_code=418)

    @app.post("/heartbeat", response_class=PlainTextResponse)
    def heartbeat(assertion: LivenessAssertion, request: Request):
        identity = _client_identity(request, request.app.state.settings.trust_forwarded_for)
        body = request.app.state.verifier.accept(assertion, identity)
        return PlainTextResponse(body)

    @app.get("/status", response_class=PlainTextResponse)
    def status(request: Request):
        now = request.app.state.clock()
        return PlainTextResponse(request.app.state.registry.status(now).value)

    return app
