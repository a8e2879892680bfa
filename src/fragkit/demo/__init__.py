"""Demo application: counter, greeter and a user table sharing one URL.

Each component keeps its state in the query string and in cookies, and
partial updates preserve the other components' parameters.
"""

from __future__ import annotations

from fastapi import FastAPI

from fragkit.app import create_app
from fragkit.demo.components import STATIC_DIR, registry
from fragkit.demo.pages import router
from fragkit.demo.store import UserStore


def create_demo_app() -> FastAPI:
    app = create_app(registry, routers=[router], static_dir=STATIC_DIR, title="fragkit demo")
    app.state.user_store = UserStore()
    return app


__all__ = ["create_demo_app"]
