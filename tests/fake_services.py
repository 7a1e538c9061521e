"""
In-memory text service and recognizer for tests.
"""
import asyncio
from typing import List, Optional

from cardioview.text_service import ChatRequest, ChatResponse

VIGNETTE = "Paciente de 68 años con síncope de esfuerzo y soplo sistólico eyectivo."

CLINICAL_DATA = {
    "physiology": "Conduce sangre oxigenada a la circulación sistémica.",
    "pathology": "Estenosis, disección.",
    "symptoms": "Angina, síncope, disnea.",
    "diagnosis": "Ecocardiograma.",
    "treatment": "Reemplazo valvular.",
    "pearl": "Tríada clásica de la estenosis.",
}


class FakeTextService:
    """Answers vignette prompts with text and JSON prompts with clinical data."""

    def __init__(self, vignette: str = VIGNETTE, success: bool = True):
        self.vignette = vignette
        self.success = success
        self.requests: List[ChatRequest] = []
        self.gate: Optional[asyncio.Event] = None

    async def chat(self, request: ChatRequest) -> ChatResponse:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()

        if not self.success:
            return ChatResponse(success=False, error="Error al procesar la solicitud", details="boom")
        if request.force_json:
            return ChatResponse(success=True, data=dict(CLINICAL_DATA))
        return ChatResponse(success=True, data={"text": self.vignette})


class FakeRecognizer:
    """Records start/stop calls and exposes the callbacks it was given."""

    def __init__(self, fail_with=None):
        self.fail_with = fail_with
        self.start_calls = 0
        self.stop_calls = 0
        self.close_calls = 0
        self.on_text = None
        self.on_error = None

    def start(self, on_text, on_error):
        if self.fail_with is not None:
            raise self.fail_with
        self.start_calls += 1
        self.on_text = on_text
        self.on_error = on_error

    def stop(self):
        self.stop_calls += 1

    def close(self):
        self.close_calls += 1
