# Copyright 2026 Justin Cook
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Stateless relay in front of the NVIDIA chat completions API.

The browser-side (or CLI) client posts to this service without a key; the
relay adds the server-held NVIDIA_API_KEY and forwards the body verbatim,
returning the upstream status and body unchanged.
"""

import logging

import requests
from fastapi import APIRouter, FastAPI, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from cv_forge.config import Settings, get_ca_bundle

logger = logging.getLogger(__name__)

RELAY_ROUTE = "/api/nvidia/v1/chat/completions"
_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _forward(url: str, api_key: str, body: bytes, timeout: float) -> requests.Response:
    return requests.post(
        url,
        data=body,
        headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        },
        timeout=timeout,
        verify=get_ca_bundle(),
    )


def build_router(settings_factory=Settings.from_env) -> APIRouter:
    router = APIRouter()

    @router.get("/health", tags=["Health check"], status_code=status.HTTP_200_OK)
    async def health():
        return {"status": "ok"}

    @router.api_route(RELAY_ROUTE, methods=_ALL_METHODS, tags=["Relay"])
    async def relay(request: Request):
        if request.method != "POST":
            return _error(status.HTTP_405_METHOD_NOT_ALLOWED, "Method not allowed")

        # Read per request so a rotated key is picked up without a restart
        settings = settings_factory()
        if not settings.nvidia_api_key:
            logger.error("Relay request rejected: NVIDIA_API_KEY is not set on the server")
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "NVIDIA API key not configured")

        body = await request.body()
        try:
            upstream = await run_in_threadpool(
                _forward, settings.upstream_url, settings.nvidia_api_key, body, settings.timeout
            )
        except requests.RequestException as e:
            logger.error(f"NVIDIA API proxy error: {e}")
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e) or "Internal server error")

        logger.info(f"Relayed request upstream: {upstream.status_code}")
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            media_type=upstream.headers.get("Content-Type", "application/json"),
        )

    return router


def create_app(settings_factory=Settings.from_env) -> FastAPI:
    """
    Configure and create the relay application.
    """
    app = FastAPI(title="CV Forge Relay", docs_url=None, redoc_url=None)
    app.include_router(build_router(settings_factory))

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        # Routing errors (unknown path, unlisted method) use the relay's error shape
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            message = "Method not allowed"
        else:
            message = str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)

    return app
