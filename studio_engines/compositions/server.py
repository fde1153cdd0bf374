from __future__ import annotations

from fastapi import FastAPI

from studio_engines.compositions.router import router as compositions_router


def create_app() -> FastAPI:
    app = FastAPI(title="Composition Engines")
    app.include_router(compositions_router)
    return app
