#!/usr/bin/env python3
"""
CardioView - FastAPI text backend
Keeps the Gemini API key server-side and proxies prompts from the viewer.
"""

import logging
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import load_config
from .text_service import ChatRequest, GeminiTextService, TextServiceProto

logger = logging.getLogger(__name__)


def _default_text_service(model: str) -> Optional[TextServiceProto]:
    try:
        return GeminiTextService(model=model)
    except ValueError as e:
        logger.warning("%s. /api/chat route will not work.", e)
        return None


def create_app(text_service: Optional[TextServiceProto] = None, model: str = "gemini-2.5-flash") -> FastAPI:
    """
    Build the backend application.

    Args:
        text_service: Generation backend; defaults to Gemini from GEMINI_API_KEY
        model: Gemini model name used for the default backend
    """
    app = FastAPI(title="CardioView Text Backend")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.text_service = text_service if text_service is not None else _default_text_service(model)

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "message": "CardioView backend running",
            "timestamp": datetime.now().isoformat(),
        }

    @app.post("/api/chat")
    async def chat(request: ChatRequest):
        if not request.prompt.strip():
            return JSONResponse(status_code=400, content={"error": "El prompt es requerido"})

        service = app.state.text_service
        if service is None:
            return JSONResponse(status_code=500, content={
                "success": False,
                "error": "Error al procesar la solicitud",
                "details": "GEMINI_API_KEY not configured",
            })

        logger.info("💬 Chat request (force_json=%s)", request.force_json)
        result = await service.chat(request)
        if not result.success:
            logger.error("❌ Chat failed: %s", result.details or result.error)
            return JSONResponse(status_code=500, content=result.model_dump(exclude_none=True))

        return {"success": True, "data": result.data}

    return app


def main():
    """Run the backend with uvicorn."""
    import uvicorn

    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    cfg = load_config()
    app = create_app(model=cfg.text_service.model)
    logger.info("🚀 CardioView backend on http://%s:%d", cfg.server.host, cfg.server.port)
    uvicorn.run(app, host=cfg.server.host, port=cfg.server.port)


if __name__ == "__main__":
    main()
