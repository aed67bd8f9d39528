"""
Advice generation through Google Gemini (google-generativeai SDK).

Requires GEMINI_API_KEY; without it FallbackAdviceGenerator is used and
every request receives FALLBACK_ADVICE.
"""

import logging

import google.generativeai as genai

from agriadvisor.errors import UpstreamDegraded, scrub_secrets
from agriadvisor.outcome import Outcome

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-1.5-flash"

# Degraded-mode contract: generic guidance returned when the model is unavailable.
FALLBACK_ADVICE = (
    "Based on the current weather, today is a good day for fieldwork. "
    "Market prices for soybeans are strong. Consider scouting your fields "
    "for pests and planning your harvest schedule accordingly."
)


class AdviceGenerator:
    """Interface: generate(prompt) -> Outcome[str]. Never raises."""

    def generate(self, prompt: str) -> Outcome[str]:
        raise NotImplementedError

    @property
    def is_live(self) -> bool:
        return False


class FallbackAdviceGenerator(AdviceGenerator):

    def generate(self, prompt: str) -> Outcome[str]:
        logger.info("Advice model disabled; fallback advice used")
        return Outcome.fallback(FALLBACK_ADVICE)


class GeminiAdviceGenerator(AdviceGenerator):
    """Send the prompt to a Gemini model and return its text verbatim."""

    def __init__(self, api_key: str, model_name: str = DEFAULT_MODEL):
        self.api_key = api_key
        self.model_name = model_name
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(model_name)

    @property
    def is_live(self) -> bool:
        return True

    def generate(self, prompt: str) -> Outcome[str]:
        try:
            text = self._complete(prompt)
        except UpstreamDegraded as e:
            logger.warning("Gemini fallback advice used: %s", e.reason)
            return Outcome.fallback(FALLBACK_ADVICE)

        logger.info(
            "Gemini (%s) returned %d chars of advice", self.model_name, len(text)
        )
        return Outcome.provider(text)

    def _complete(self, prompt: str) -> str:
        logger.info("Sending prompt to Gemini (first 50 chars): %s...", prompt[:50])
        try:
            response = self.model.generate_content(prompt)
            # .text raises ValueError when the candidate was blocked or empty
            text = response.text
        except Exception as e:
            reason = scrub_secrets(f"{type(e).__name__}: {e}", [self.api_key])
            raise UpstreamDegraded("gemini", reason) from e

        if not text or not text.strip():
            raise UpstreamDegraded("gemini", "empty response")
        return text
