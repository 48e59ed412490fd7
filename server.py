# server.py
"""HTTP entry point: one POST per stage, state carried in the continuation token."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from core.llm_interface import LLMService
from orchestration.stage_controller import StageController
from utils.logging import setup_logging

logger = structlog.get_logger(__name__)

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


def create_app(llm_service: LLMService | None = None) -> FastAPI:
    """Build the app; an injected ``llm_service`` is used as-is and not closed."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service = llm_service or LLMService()
        app.state.controller = StageController(service)
        logger.info("Workshop server started")
        try:
            yield
        finally:
            if llm_service is None:
                await service.aclose()
            logger.info("Workshop server stopped")

    app = FastAPI(title="Narrative Workshop API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=CORS_ALLOW_HEADERS,
    )

    async def _handle(request: Request, stage: str | None) -> JSONResponse:
        try:
            body: Any = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return JSONResponse({"error": "Request body must be valid JSON"}, 400)
        if stage is None:
            stage = body.get("stage", 1) if isinstance(body, dict) else 1
        controller: StageController = request.app.state.controller
        status_code, payload = await controller.dispatch(stage, body)
        return JSONResponse(payload, status_code=status_code)

    @app.post("/workshop")
    async def workshop(request: Request, stage: str | None = Query(default=None)):
        return await _handle(request, stage)

    @app.post("/")
    async def workshop_root(request: Request, stage: str | None = Query(default=None)):
        return await _handle(request, stage)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    setup_logging()
    uvicorn.run(app, host=settings.SERVER_HOST, port=settings.SERVER_PORT)
