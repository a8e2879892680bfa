from __future__ import annotations

import logging
from collections.abc import Sequence
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from urllib.parse import urlencode

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import HTMLResponse, RedirectResponse, Response
from starlette.staticfiles import StaticFiles

from fragkit import __version__
from fragkit.bookmark import StateUrlsMiddleware
from fragkit.config import ensure_install_token, load_config
from fragkit.errors import error_html
from fragkit.home import ensure_fragkit_layout, resolve_fragkit_home
from fragkit.pipeline import DEFAULT_STAGES, PipelineStage, app_config, mount_components
from fragkit.registry import ComponentRegistry
from fragkit.responses import PARTIAL_REQUEST_HEADER

logger = logging.getLogger(__name__)


def _configure_logging(log_path: Path, *, level: str, max_size_mb: int, backup_count: int) -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())
    # Avoid adding duplicate handlers if the app is created more than once.
    if any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        return
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    root.addHandler(file_handler)


def _wants_login_redirect(request: Request) -> bool:
    return request.method in {"GET", "HEAD"} and PARTIAL_REQUEST_HEADER not in request.headers


def create_app(
    registry: ComponentRegistry,
    *,
    routers: Sequence[APIRouter] = (),
    static_dir: Path | None = None,
    title: str = "fragkit",
    stages: tuple[PipelineStage, ...] = DEFAULT_STAGES,
) -> FastAPI:
    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        home = resolve_fragkit_home()
        paths = ensure_fragkit_layout(home)
        config = load_config(paths)
        config = ensure_install_token(paths, config)

        _configure_logging(
            paths.log_path,
            level=config.logging.level,
            max_size_mb=config.logging.max_size_mb,
            backup_count=config.logging.backup_count,
        )
        logger.info("%s starting up (%d components)", title, len(registry.freeze()))
        logger.info("Logs directory: %s", paths.logs_dir)

        app.state.fragkit_home = home
        app.state.fragkit_paths = paths
        app.state.fragkit_config = config
        yield

    app = FastAPI(title=title, version=__version__, lifespan=_lifespan)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} - {response.status_code}")
        return response

    app.add_middleware(StateUrlsMiddleware)

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> HTMLResponse:
        return HTMLResponse(error_html(422, "Request validation failed"), status_code=422)

    async def _render_http_error(request: Request, status_code: int, detail: str) -> Response:
        if status_code == 401 and _wants_login_redirect(request):
            login_path = app_config(request).auth.login_path
            target = f"{login_path}?{urlencode({'redirect': request.url.path})}"
            return RedirectResponse(url=target, status_code=303)
        return HTMLResponse(error_html(status_code, detail), status_code=status_code)

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException) -> Response:
        return await _render_http_error(request, exc.status_code, str(exc.detail))

    @app.exception_handler(StarletteHTTPException)
    async def _starlette_http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> Response:
        detail = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        return await _render_http_error(request, exc.status_code, detail)

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> HTMLResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return HTMLResponse(error_html(500, "Internal server error"), status_code=500)

    if static_dir is not None:
        if static_dir.is_dir():
            app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")
        else:
            logger.warning("Static directory is missing (%s); /static will not be served", static_dir)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    for router in routers:
        app.include_router(router)

    # Collisions surface here, before the server starts accepting requests.
    mount_components(app, registry.freeze(), stages)

    return app
