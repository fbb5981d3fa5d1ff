"""Browser-facing proxy in front of the backend.

The browser never sees the bearer token: login stores it in an http-only
cookie and every ``/api/tasks`` call re-attaches it as an Authorization
header on the way to the backend.
"""

import json
import logging
import sys
from typing import Any, Optional
from urllib.parse import quote

import requests
from fastapi import Body, FastAPI, Request
from fastapi.responses import JSONResponse

from config import ConfigError, GatewaySettings, load_gateway_settings
from logging_setup import setup_logging

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"
COOKIE_MAX_AGE = 60 * 60 * 24 * 7  # 7 days, same as the token


def _internal_error() -> JSONResponse:
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def _strip_token(payload):
    if isinstance(payload, dict):
        payload.pop("token", None)
        data = payload.get("data")
        if isinstance(data, dict):
            data.pop("token", None)
    return payload


def _extract_token(payload) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if isinstance(data, dict) and data.get("token"):
        return data["token"]
    return payload.get("token")


def create_gateway(settings: GatewaySettings, session=None) -> FastAPI:
    """
    Build the gateway app.

    ``session`` is anything with a requests-style ``request(method, url, ...)``
    method; a ``requests.Session`` is created when omitted.
    """
    http = session or requests.Session()
    backend = settings.backend_url.rstrip("/")

    app = FastAPI(title="Task Manager Web Gateway")
    app.state.settings = settings

    def forward(method: str, path: str, **kwargs):
        return http.request(method, backend + path, timeout=settings.timeout, **kwargs)

    @app.post("/api/login")
    def login(body: Any = Body(None)):
        try:
            backend_res = forward("POST", "/auth/login", json=body)
        except requests.RequestException:
            logger.exception("Login API: backend request failed")
            return _internal_error()

        logger.info("Login API: backend responded %s", backend_res.status_code)

        # read text first so a non-JSON backend reply can be reported
        text = backend_res.text
        try:
            payload = json.loads(text)
        except ValueError:
            logger.error("Login API: backend response is not JSON")
            return JSONResponse(
                status_code=backend_res.status_code or 500,
                content={"message": "Backend Error: Invalid JSON response", "details": text[:100]},
            )

        token = _extract_token(payload)
        response = JSONResponse(status_code=backend_res.status_code, content=_strip_token(payload))
        if backend_res.status_code < 400 and token:
            response.set_cookie(
                TOKEN_COOKIE,
                token,
                httponly=True,
                secure=settings.cookie_secure,
                samesite="lax",
                path="/",
                max_age=COOKIE_MAX_AGE,
            )
        return response

    @app.post("/api/signup")
    def signup(body: Any = Body(None)):
        try:
            backend_res = forward("POST", "/auth/signup", json=body)
            payload = backend_res.json()
        except (requests.RequestException, ValueError):
            logger.exception("Signup API: backend request failed")
            return _internal_error()
        return JSONResponse(status_code=backend_res.status_code, content=payload)

    @app.post("/api/logout")
    def logout():
        response = JSONResponse(content={"success": True})
        response.delete_cookie(TOKEN_COOKIE, path="/")
        return response

    @app.api_route("/api/tasks", methods=["GET", "POST", "PUT", "DELETE"])
    def tasks_proxy(request: Request, body: Any = Body(None)):
        params = dict(request.query_params)
        task_id = params.pop("id", None)

        path = "/tasks"
        query = None
        if task_id:
            path += "/" + quote(task_id, safe="")
        elif params:
            query = params

        headers = {"Content-Type": "application/json"}
        token = request.cookies.get(TOKEN_COOKIE)
        if token:
            headers["Authorization"] = f"Bearer {token}"

        kwargs = {"headers": headers, "params": query}
        if request.method not in ("GET", "HEAD") and body is not None:
            kwargs["json"] = body

        try:
            backend_res = forward(request.method, path, **kwargs)
        except requests.RequestException:
            logger.exception("Tasks proxy: backend request failed")
            return _internal_error()

        content = {}
        if "application/json" in (backend_res.headers.get("content-type") or ""):
            try:
                content = backend_res.json()
            except ValueError:
                content = {}
        return JSONResponse(status_code=backend_res.status_code, content=content)

    return app


def run_gateway(env: Optional[dict] = None) -> None:
    import uvicorn

    try:
        settings = load_gateway_settings(env)
    except ConfigError as e:
        setup_logging()
        logger.error("Error: %s", e)
        sys.exit(1)

    setup_logging()
    logger.info("Gateway forwarding to %s", settings.backend_url)
    uvicorn.run(create_gateway(settings), host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    run_gateway()
