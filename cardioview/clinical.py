"""
Clinical context and quiz vignettes generated for a catalog entry.

Both helpers degrade gracefully: a transport failure or a malformed payload
yields a clearly labelled placeholder instead of an exception, so the detail
panel always has something to show.
"""
import json
import logging

from pydantic import BaseModel, ValidationError

from .text_service import ChatRequest, TextServiceProto

logger = logging.getLogger(__name__)


class MedicalData(BaseModel):
    """Structured clinical notes for one anatomical structure."""
    physiology: str
    pathology: str
    symptoms: str  # clinical presentation
    diagnosis: str  # diagnostic modality
    treatment: str  # management
    pearl: str  # high-yield fact


CONTEXT_SYSTEM_INSTRUCTION = "Eres un profesor experto en cardiología. Responde siempre en formato JSON válido."

CONTEXT_PROMPT = """
Actúa como un profesor experto en cardiología preparando a un estudiante para el examen MIR o USMLE.
El estudiante está revisando la estructura: "{label}".
Genera un objeto JSON válido (sin markdown) con las siguientes claves en ESPAÑOL:
{{
  "physiology": "Función hemodinámica normal (conciso, máx 20 palabras).",
  "pathology": "2 patologías frecuentes (ej. Estenosis, Insuficiencia).",
  "symptoms": "Presentación clínica típica (ej. Disnea, Síncope, Angina).",
  "diagnosis": "Método diagnóstico principal o hallazgo físico (ej. Soplo sistólico en foco aórtico).",
  "treatment": "Manejo o tratamiento de primera línea general.",
  "pearl": "Un 'Dato Clave' (High Yield) indispensable para exámenes."
}}
"""

QUIZ_SYSTEM_INSTRUCTION = "Eres un profesor de medicina que crea casos clínicos desafiantes."

QUIZ_PROMPT = """
Genera una viñeta clínica corta y desafiante (estilo examen MIR/USMLE) sobre un paciente con patología en: "{label}".
NO menciones el nombre de la estructura.
Describe la edad del paciente, síntomas clave, y hallazgos a la auscultación o imagen.
El objetivo es que el estudiante deduzca la estructura afectada.
Longitud máxima: 50 palabras. Idioma: ESPAÑOL.
"""

CONNECTION_FALLBACK = MedicalData(
    physiology="Error de conexión.",
    pathology="No se pudieron recuperar los datos.",
    symptoms="Verifica conexión.",
    diagnosis="Verifica conexión.",
    treatment="Verifica conexión.",
    pearl="Verifica tu API Key o el backend.",
)

QUIZ_FALLBACK = "Identifica esta estructura anatómica."
QUIZ_EMPTY_FALLBACK = "Identifica la estructura asociada con esta área basándote en la anatomía."


def format_error_fallback(raw: str) -> MedicalData:
    return MedicalData(
        physiology="Error de formato",
        pathology="Intente nuevamente",
        symptoms="-",
        diagnosis="-",
        treatment="-",
        pearl=raw,
    )


def strip_code_fences(text: str) -> str:
    """Remove markdown ```json fences that models sometimes add."""
    return text.replace("```json", "").replace("```", "").strip()


def parse_medical_data(raw: str) -> MedicalData:
    """
    Parse model output into MedicalData.

    Args:
        raw: JSON text, possibly wrapped in markdown fences

    Returns:
        Parsed data, or the format-error placeholder carrying ``raw``
    """
    try:
        return MedicalData.model_validate(json.loads(strip_code_fences(raw)))
    except (ValueError, ValidationError) as e:
        logger.warning("⚠️ Malformed clinical payload: %s", e)
        return format_error_fallback(raw)


async def get_clinical_context(service: TextServiceProto, part_label: str) -> MedicalData:
    """Fetch structured clinical notes for a structure."""
    response = await service.chat(ChatRequest(
        prompt=CONTEXT_PROMPT.format(label=part_label),
        system_instruction=CONTEXT_SYSTEM_INSTRUCTION,
        force_json=True
    ))

    if not response.success or response.data is None:
        logger.error("❌ Clinical context failed for %s: %s", part_label, response.error)
        return CONNECTION_FALLBACK

    raw = response.data.get("text") or json.dumps(response.data, ensure_ascii=False)
    return parse_medical_data(raw)


async def get_quiz_question(service: TextServiceProto, part_label: str) -> str:
    """Fetch a short clinical vignette that points at a structure without naming it."""
    response = await service.chat(ChatRequest(
        prompt=QUIZ_PROMPT.format(label=part_label),
        system_instruction=QUIZ_SYSTEM_INSTRUCTION,
        force_json=False
    ))

    if not response.success or response.data is None:
        logger.error("❌ Quiz vignette failed for %s: %s", part_label, response.error)
        return QUIZ_FALLBACK

    return response.data.get("text") or QUIZ_EMPTY_FALLBACK
