"""
Clients for the LLM text service that writes clinical notes and quiz cases.
"""
import asyncio
import json
import logging
import os
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import aiohttp
import google.generativeai as genai
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_INSTRUCTION = "Eres un asistente médico experto en anatomía cardíaca."


class TextServiceError(Exception):
    """Transport or protocol failure talking to the text service."""


class ChatRequest(BaseModel):
    prompt: str = ""
    system_instruction: Optional[str] = None
    force_json: bool = False


class ChatResponse(BaseModel):
    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    details: Optional[str] = None


@runtime_checkable
class TextServiceProto(Protocol):
    """Abstract protocol for text generation backends."""

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Send one prompt; failures come back as ``success=False``, never raised."""
        ...


def decode_payload(text: str) -> Dict[str, Any]:
    """
    Parse model output as a JSON object, or wrap plain text as ``{"text": ...}``.
    """
    try:
        parsed = json.loads(text)
    except ValueError:
        return {"text": text}
    if isinstance(parsed, dict):
        return parsed
    return {"text": text}


class BackendTextService:
    """Text service that goes through the CardioView backend (``POST /api/chat``)."""

    def __init__(self, base_url: str, timeout_s: float = 60.0):
        """
        Initialize the client.

        Args:
            base_url: Backend root such as ``http://localhost:3001``
            timeout_s: Total timeout per request
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    async def chat(self, request: ChatRequest) -> ChatResponse:
        try:
            return await self._post(request)
        except asyncio.TimeoutError:
            logger.error("❌ Text service timed out (%.0f seconds)", self.timeout_s)
            return ChatResponse(success=False, error=f"Timed out after {self.timeout_s:.0f} seconds")
        except (aiohttp.ClientError, ValueError, TextServiceError) as e:
            logger.error("❌ Text service error: %s", e)
            return ChatResponse(success=False, error=str(e))

    async def _post(self, request: ChatRequest) -> ChatResponse:
        async with aiohttp.ClientSession() as session:
            async with session.post(
                f"{self.base_url}/api/chat",
                json=request.model_dump(),
                timeout=aiohttp.ClientTimeout(total=self.timeout_s)
            ) as response:
                if response.status >= 400:
                    raise TextServiceError(f"Backend error: {response.status} {response.reason}")
                payload = await response.json()

        return ChatResponse.model_validate(payload)


class GeminiTextService:
    """Text service that calls Google Gemini directly."""

    def __init__(self, api_key: Optional[str] = None, model: str = "gemini-2.5-flash"):
        api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        if not api_key:
            raise ValueError("GEMINI_API_KEY not found in environment variables")

        genai.configure(api_key=api_key)
        self.model_name = model

    async def chat(self, request: ChatRequest) -> ChatResponse:
        try:
            model = genai.GenerativeModel(
                self.model_name,
                system_instruction=request.system_instruction or DEFAULT_SYSTEM_INSTRUCTION
            )
            generation_config = None
            if request.force_json:
                generation_config = genai.GenerationConfig(response_mime_type="application/json")

            response = await model.generate_content_async(
                request.prompt,
                generation_config=generation_config
            )
            return ChatResponse(success=True, data=decode_payload(response.text or ""))
        except Exception as e:
            logger.error("❌ Gemini error: %s", e)
            return ChatResponse(success=False, error="Error al procesar la solicitud", details=str(e))
