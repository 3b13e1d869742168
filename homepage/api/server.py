"""
Personal website server.

Renders the site's pages from Jinja2 templates, serves static assets, and hosts the
"Login with Steam" flow. There is no server-side session state: every page resolves
the current user from the `steam_user` cookie on its own.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from jinja2 import TemplateError

from homepage.auth.config import load_auth_config
from homepage.auth.deps import authenticate_request
from homepage.auth.session import clear_session_cookie_kwargs
from homepage.auth.steam import SteamLogin
from homepage.config import SiteConfig, load_site_config
from homepage.core.pages import (
    STATIC_PAGES,
    PageData,
    StaticPage,
    build_home_page,
    build_search_page,
    build_static_page,
)

logger = logging.getLogger(__name__)

TEMPLATE_NAMES = ["home.html", "search.html"] + [p.template for p in STATIC_PAGES]


def _load_templates(directory: str) -> Jinja2Templates:
    templates = Jinja2Templates(directory=directory)
    # Fail at startup, not on the first request, if a template is missing or broken.
    for name in TEMPLATE_NAMES:
        templates.get_template(name)
    return templates


def render_page(request: Request, template: str, page: PageData) -> Response:
    """Render a template; rendering errors are logged and the client gets an empty 500."""
    templates: Jinja2Templates = request.app.state.templates
    try:
        return templates.TemplateResponse(request, template, page.context())
    except TemplateError:
        logger.exception("Template execution error: %s", template)
        return HTMLResponse("", status_code=500)


def _static_page_handler(page: StaticPage) -> Callable[[Request], Response]:
    def handler(request: Request) -> Response:
        return render_page(request, page.template, build_static_page(page, authenticate_request(request)))

    handler.__name__ = "page_" + page.template.split(".", 1)[0]
    return handler


def create_app(steam_login: Optional[SteamLogin] = None, site_cfg: Optional[SiteConfig] = None) -> FastAPI:
    site_cfg = site_cfg or load_site_config()
    # redirect_slashes=False: "/about/" is an unknown path, not a redirect to "/about".
    app = FastAPI(title="Homepage", docs_url=None, redoc_url=None, openapi_url=None, redirect_slashes=False)
    app.state.templates = _load_templates(site_cfg.templates_dir)
    # One login controller (and its nonce store / discovery cache) per process.
    app.state.steam_login = steam_login or SteamLogin()

    app.mount("/static", StaticFiles(directory=site_cfg.static_dir), name="static")

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all incoming HTTP requests."""
        start_time = time.time()
        logger.debug("%s %s", request.method, request.url.path)
        try:
            response = await call_next(request)
            process_time = time.time() - start_time
            logger.debug("%s %s - %d (%.3fs)", request.method, request.url.path, response.status_code, process_time)
            return response
        except Exception as e:
            process_time = time.time() - start_time
            logger.exception("%s %s - ERROR after %.3fs: %s", request.method, request.url.path, process_time, str(e))
            raise

    @app.get("/healthz")
    def healthz() -> Dict[str, Any]:
        return {"ok": True}

    @app.get("/", response_class=HTMLResponse)
    def home(request: Request) -> Response:
        return render_page(request, "home.html", build_home_page(authenticate_request(request)))

    @app.get("/search", response_class=HTMLResponse)
    def search(request: Request, q: str = Query("")) -> Response:
        return render_page(request, "search.html", build_search_page(q, authenticate_request(request)))

    for page in STATIC_PAGES:
        app.add_api_route(page.path, _static_page_handler(page), methods=["GET"], response_class=HTMLResponse)

    @app.get("/login")
    def login(request: Request) -> Response:
        return request.app.state.steam_login.handle(request)

    @app.get("/logout")
    def logout() -> Response:
        cfg = load_auth_config()
        resp = RedirectResponse(url="/", status_code=302)
        resp.headers["Cache-Control"] = "no-store"
        resp.set_cookie(**clear_session_cookie_kwargs(cfg))
        return resp

    @app.get("/api/time")
    def current_time() -> Dict[str, str]:
        return {"time": datetime.now().strftime("%Y-%m-%d %H:%M:%S")}

    @app.get("/api/auth/me")
    def auth_me(request: Request) -> Dict[str, Any]:
        user = authenticate_request(request)
        if user is None:
            raise HTTPException(status_code=401, detail="Unauthorized")
        return {"ok": True, "user": user.model_dump()}

    return app


def run(host: str = "0.0.0.0", port: int = 8080) -> None:
    import uvicorn

    # Configure logging for the application
    log_level = load_site_config().log_level
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Map Python logging levels to uvicorn log levels
    uvicorn_log_level = (
        log_level.lower() if log_level.lower() in ["critical", "error", "warning", "info", "debug", "trace"] else "info"
    )

    app = create_app()
    logger.info("Server starting on %s:%d (log_level=%s)", host, port, log_level)
    uvicorn.run(app, host=host, port=port, log_level=uvicorn_log_level)
