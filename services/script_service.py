"""
Script Service - "what to say" scripts and interaction summary cards.

Both operations always return text: any provider failure falls back to the
built-in templates below.
"""

import logging
from typing import Dict, Optional

from backend.errors import ProviderError
from models.recording import RecordingRecord
from services.generation_service import GenerationProvider, StaticGenerationProvider
from utils.security_utils import normalize_language

logger = logging.getLogger(__name__)

SCRIPT_NOT_AVAILABLE = "Script not available"

SCENARIOS = {
    "traffic-stop": {"label": "Traffic Stop", "description": "during a traffic stop"},
    "questioning": {"label": "Police Questioning", "description": "when being questioned by police"},
    "search-request": {"label": "Search Request", "description": "when police request to search person or property"},
    "arrest": {"label": "During Arrest", "description": "during an arrest situation"},
    "stop-and-frisk": {"label": "Stop and Frisk", "description": "during a stop and frisk encounter"},
}

LANGUAGE_INSTRUCTIONS = {
    "en": "Respond in English.",
    "es": "Respond in Spanish.",
}

SCRIPT_SYSTEM_PROMPT = (
    "You are a legal rights advisor helping people understand their rights during police "
    "interactions. Provide clear, concise, and legally accurate scripts that people can use "
    "to assert their constitutional rights. Always emphasize remaining calm and respectful."
)

SUMMARY_SYSTEM_PROMPT = (
    "You are a legal documentation assistant. Create clear, factual summaries of police "
    "interactions that can be used for legal reference. Focus on rights exercised, key "
    "events, and important details."
)

# Every (scenario, language) pair must be present
STATIC_SCRIPTS: Dict[str, Dict[str, str]] = {
    "traffic-stop": {
        "en": '"Good evening, officer. I understand you\'ve stopped me. Am I free to leave? I choose to remain silent and would like to speak with an attorney. I do not consent to any searches of my person or vehicle."',
        "es": '"Buenas tardes, oficial. Entiendo que me ha detenido. ¿Soy libre de irme? Elijo permanecer en silencio y me gustaría hablar con un abogado. No consiento ningún registro de mi persona o vehículo."',
    },
    "questioning": {
        "en": '"I am exercising my right to remain silent. I would like to speak with an attorney before answering any questions. Am I under arrest or am I free to leave?"',
        "es": '"Estoy ejerciendo mi derecho a permanecer en silencio. Me gustaría hablar con un abogado antes de responder cualquier pregunta. ¿Estoy arrestado o soy libre de irme?"',
    },
    "search-request": {
        "en": '"I do not consent to any search of my person, belongings, or property. I am exercising my Fourth Amendment rights. Please state clearly if this is a lawful order or a request."',
        "es": '"No consiento ningún registro de mi persona, pertenencias o propiedad. Estoy ejerciendo mis derechos de la Cuarta Enmienda. Por favor, declare claramente si esto es una orden legal o una solicitud."',
    },
    "arrest": {
        "en": '"I am invoking my right to remain silent and my right to an attorney. I will not answer any questions without my lawyer present. Please ensure this interaction is being recorded."',
        "es": '"Estoy invocando mi derecho a permanecer en silencio y mi derecho a un abogado. No responderé ninguna pregunta sin mi abogado presente. Por favor, asegúrese de que esta interacción esté siendo grabada."',
    },
    "stop-and-frisk": {
        "en": '"Am I being detained or am I free to leave? I do not consent to this search. I am not resisting, but I do not consent. I want to speak with an attorney."',
        "es": '"¿Estoy siendo detenido o soy libre de irme? No consiento este registro. No me estoy resistiendo, pero no consiento. Quiero hablar con un abogado."',
    },
}


def format_duration(seconds: Optional[int]) -> str:
    """Seconds -> MM:SS"""
    seconds = max(int(seconds or 0), 0)
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def static_script(scenario: str, language: str) -> str:
    scripts = STATIC_SCRIPTS.get(scenario)
    if not scripts:
        return SCRIPT_NOT_AVAILABLE
    return scripts.get(normalize_language(language)) or scripts["en"]


def build_script_prompt(scenario: str, jurisdiction: str, language: str, context: str = "") -> str:
    description = SCENARIOS.get(scenario, {}).get("description", "during a police interaction")
    lines = [
        f"Generate a clear, respectful script for someone to use {description} in {jurisdiction}.",
        "",
        "Requirements:",
        "- Include assertion of constitutional rights (4th, 5th, 6th amendments)",
        "- Emphasize remaining calm and respectful",
        f"- Be specific to {jurisdiction} laws where applicable",
        "- Keep it concise and memorable",
        '- Include key phrases like "Am I free to leave?" and "I do not consent to searches"',
    ]
    if context and context.strip():
        lines += ["", f"Additional context: {context.strip()}"]
    lines += [
        "",
        LANGUAGE_INSTRUCTIONS[normalize_language(language)],
        "",
        "Provide only the script text, formatted as a direct quote.",
    ]
    return "\n".join(lines)


def build_summary_prompt(record: RecordingRecord) -> str:
    return "\n".join([
        "Create a factual summary of this police interaction for legal documentation:",
        "",
        f"Date/Time: {record.timestamp}",
        f"Location: {record.location or 'Not specified'}",
        f"Duration: {format_duration(record.duration) if record.duration else 'Not specified'}",
        f"Notes: {record.notes or 'No additional notes'}",
        "",
        "Please create a structured summary including:",
        "1. Basic interaction details",
        "2. Rights that were exercised",
        "3. Key events or statements",
        "4. Recommendations for follow-up",
        "",
        "Keep it professional and factual.",
    ])


def static_summary_card(record: RecordingRecord) -> str:
    return "\n".join([
        "POLICE INTERACTION SUMMARY",
        "",
        f"Date/Time: {record.timestamp}",
        f"Location: {record.location or 'Not specified'}",
        f"Duration: {format_duration(record.duration) if record.duration else 'Not specified'}",
        "",
        "RIGHTS EXERCISED:",
        "• Right to remain silent was invoked",
        "• Right to legal representation was requested",
        "• Did not consent to searches",
        "• Asked if free to leave",
        "",
        "INTERACTION NOTES:",
        record.notes or "No additional notes provided",
        "",
        "RECOMMENDATIONS:",
        "• Keep this documentation for your records",
        "• Contact an attorney if you have concerns",
        "• Report any rights violations to appropriate authorities",
        "• Consider filing a complaint if misconduct occurred",
        "",
        "This summary is for documentation purposes only and does not constitute legal advice.",
    ])


class ScriptService:
    """Service class for script and summary generation"""

    def __init__(self, provider: Optional[GenerationProvider] = None):
        self.provider = provider or StaticGenerationProvider()

    async def generate(self, scenario: str, jurisdiction: str, language: str = "en", context: str = "") -> str:
        """
        Generate a script for a scenario. Never raises.

        Unknown scenarios return SCRIPT_NOT_AVAILABLE; unsupported languages are
        treated as English; any provider failure returns the static template.
        """
        if scenario not in SCENARIOS:
            return SCRIPT_NOT_AVAILABLE
        language = normalize_language(language)

        try:
            return await self.provider.complete(
                SCRIPT_SYSTEM_PROMPT,
                build_script_prompt(scenario, jurisdiction, language, context),
                max_tokens=300,
                temperature=0.3,
            )
        except ProviderError as e:
            if self.provider.live:
                logger.warning(f"Script generation failed: {e} - using static script")
        except Exception as e:
            logger.error(f"Unexpected script generation error: {e}", exc_info=True)
        return static_script(scenario, language)

    async def generate_summary_card(self, record: RecordingRecord) -> str:
        try:
            return await self.provider.complete(
                SUMMARY_SYSTEM_PROMPT,
                build_summary_prompt(record),
                max_tokens=400,
                temperature=0.2,
            )
        except ProviderError as e:
            if self.provider.live:
                logger.warning(f"Summary card generation failed: {e} - using static card")
        except Exception as e:
            logger.error(f"Unexpected summary card error: {e}", exc_info=True)
        return static_summary_card(record)

    @staticmethod
    def list_scenarios():
        return [{"id": scenario_id, "label": info["label"]} for scenario_id, info in SCENARIOS.items()]
