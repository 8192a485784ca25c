from __future__ import annotations

import logging
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from stereoscope.config import get_settings
from stereoscope.middleware import StereoscopeMiddleware

logger = logging.getLogger("stereoscope.api")


def _validate_runtime_configuration(settings) -> None:
    errors = settings.configuration_errors()
    if not errors:
        return

    for error in errors:
        logger.error("invalid_configuration error=%s", error)
    raise RuntimeError("Invalid Stereoscope configuration; see logs for details")


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    _validate_runtime_configuration(settings)
    logger.info("Stereoscope demo startup complete expand_path=%s", settings.expand_path)
    yield


app = FastAPI(
    title="Stereoscope Demo",
    version="0.1.0",
    description="A fake JSON API to demonstrate the Stereoscope HTML exploration middleware.",
    lifespan=lifespan,
)
app.add_middleware(StereoscopeMiddleware)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID", "").strip() or uuid.uuid4().hex
    start = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        duration_ms = (time.perf_counter() - start) * 1000.0
        logger.exception(
            "request_failed method=%s path=%s request_id=%s duration_ms=%.2f",
            request.method,
            request.url.path,
            request_id,
            duration_ms,
        )
        raise

    duration_ms = (time.perf_counter() - start) * 1000.0
    response.headers["X-Request-ID"] = request_id
    logger.info(
        "request_completed method=%s path=%s status=%s request_id=%s duration_ms=%.2f",
        request.method,
        request.url.path,
        response.status_code,
        request_id,
        duration_ms,
    )
    return response


def _absolute(request: Request, path: str) -> str:
    return str(request.base_url).rstrip("/") + path


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/")
def index(request: Request) -> dict[str, str]:
    return {
        "explanation": "A fake API to demonstrate Stereoscope",
        "list": _absolute(request, "/list"),
        "associations": _absolute(request, "/associations"),
        "uri_template": _absolute(request, "/uri_template"),
        "tabular": _absolute(request, "/tabular"),
    }


@app.get("/foo/{subpath:path}")
def echo(subpath: str, request: Request) -> JSONResponse:
    payload: dict[str, object] = dict(request.query_params)
    payload["splat"] = [subpath]
    return JSONResponse(content=payload)


@app.get("/list")
def list_items() -> list[str]:
    return ["Item 1", "Item 2", "Item 3"]


@app.get("/associations")
def associations() -> dict[str, str]:
    return {"foo": "bar", "baz": "buz"}


@app.get("/tabular")
def tabular() -> list[dict[str, object]]:
    return [
        {"id": 1, "name": "Plan 9 from Outer Space", "date": "1959-07-01"},
        {"id": 2, "name": "Bride of the Monster", "date": "1956-05-11"},
        {"id": 3, "name": "Glen or Glenda", "date": "1953-01-01"},
    ]


@app.get("/uri_template")
def uri_template(request: Request) -> dict[str, str]:
    return {"uri": _absolute(request, "/foo/{subpath}?param1={param1}&param2={param2}")}
