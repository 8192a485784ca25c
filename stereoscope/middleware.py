from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import HTMLResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from stereoscope.config import Settings, get_settings
from stereoscope.detection import TEMPLATE_PARAM
from stereoscope.expansion import expansion_response
from stereoscope.negotiation import client_accepts
from stereoscope.page import ResponseMetadata, build_page


logger = logging.getLogger("stereoscope.middleware")

_EXPANSION_METHODS = {"GET", "HEAD"}
_DROPPED_HEADERS = {"content-length", "content-type", "content-encoding"}
_BODYLESS_STATUSES = {204, 304}


def collect_headers(response: Response) -> dict[str, str]:
    headers: dict[str, str] = {}
    for raw_name, raw_value in response.raw_headers:
        name = raw_name.decode("latin-1")
        value = raw_value.decode("latin-1")
        key = next((existing for existing in headers if existing.lower() == name.lower()), name)
        headers[key] = f"{headers[key]}, {value}" if key in headers else value
    return headers


async def read_body(response: Response) -> bytes:
    body = getattr(response, "body", None)
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)

    chunks: list[bytes] = []
    async for chunk in response.body_iterator:
        chunks.append(chunk if isinstance(chunk, bytes) else chunk.encode("utf-8"))
    return b"".join(chunks)


class StereoscopeMiddleware(BaseHTTPMiddleware):
    """Present JSON API responses as explorable HTML pages to browsers.

    The middleware stays out of the way unless the request explicitly
    accepts ``text/html``; API clients get the downstream response untouched.

    Args:
        app: The ASGI application.
        settings: Fixed settings. When omitted, settings are read from the
            environment on every request.
    """

    def __init__(self, app: ASGIApp, *, settings: Settings | None = None) -> None:
        super().__init__(app)
        self._settings = settings

    def _current_settings(self) -> Settings:
        return self._settings if self._settings is not None else get_settings()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        settings = self._current_settings()
        if not settings.enabled or not client_accepts(
            request.headers.get("Accept"), settings.activate_media_type
        ):
            logger.debug("stereoscope_passthrough method=%s path=%s", request.method, request.url.path)
            return await call_next(request)

        if request.url.path == settings.expand_path and request.method.upper() in _EXPANSION_METHODS:
            params = dict(request.query_params)
            return expansion_response(params.get(TEMPLATE_PARAM), params)

        response = await call_next(request)
        if response.status_code < 200 or response.status_code in _BODYLESS_STATUSES:
            return response
        return await self._present(request, response, settings)

    async def _present(self, request: Request, response: Response, settings: Settings) -> Response:
        body = await read_body(response)
        headers = collect_headers(response)
        content_type = response.headers.get("content-type", "")

        meta = ResponseMetadata(
            status_code=response.status_code,
            headers=headers,
            content_type=content_type,
            body=body,
            path=request.url.path,
            url=str(request.url),
        )
        page = build_page(meta, expand_path=settings.expand_path, json_indent=settings.json_indent)

        logger.debug(
            "stereoscope_rendered path=%s status=%s content_type=%s body_bytes=%s",
            meta.path,
            meta.status_code,
            content_type,
            len(body),
        )
        presented = HTMLResponse(content=page, status_code=response.status_code)
        presented.raw_headers.extend(
            (name, value)
            for name, value in response.raw_headers
            if name.decode("latin-1").lower() not in _DROPPED_HEADERS
        )
        return presented
