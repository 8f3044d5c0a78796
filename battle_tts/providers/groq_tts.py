# battle_tts/providers/groq_tts.py

"""Groq PlayAI speech (fast, and the only vendor that can do the CYPHER-9000 robot voice)."""
import logging
import random
from typing import Optional

from ..config import Settings
from ..models import TTSGenerationOptions
from .base import ROBOT_CHARACTER_ID, ProviderError, TTSProviderClient, clean_text

logger = logging.getLogger(__name__)


def apply_robot_voice_effects(text: str) -> str:
    """Turn punctuation into explicit pause/emphasis tokens for mechanical cadence."""
    robot_text = text.replace(".", ". [pause]")
    robot_text = robot_text.replace("!", ". [emphasis]")
    robot_text = robot_text.replace("?", ". [query]")
    return f"[processing] {robot_text} [systems_online]"


class GroqTTSClient(TTSProviderClient):
    name = "groq"
    audio_mime_type = "audio/wav"
    character_voices = {
        "razor": "Cheyenne-PlayAI",  # Sharp and cutting
        "venom": "Thunder-PlayAI",   # Intense and powerful
        "silk": "Basil-PlayAI",      # Smooth and controlled
        "cypher": "Fritz-PlayAI",    # Deep, authoritative robot
    }
    male_voices = ["Fritz-PlayAI", "Thunder-PlayAI", "Basil-PlayAI", "Cillian-PlayAI", "Calum-PlayAI"]
    female_voices = ["Celeste-PlayAI", "Cheyenne-PlayAI", "Gail-PlayAI", "Indigo-PlayAI", "Deedee-PlayAI"]

    def _headers(self):
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    def prepare_text(self, text: str, character_id: str) -> str:
        if character_id == ROBOT_CHARACTER_ID:
            logger.info("groq: CYPHER-9000 robotic effects active")
            return clean_text(apply_robot_voice_effects(text), keep_style_tags=True)
        return clean_text(text)

    async def _request_audio(self, text: str, voice: str, speed: float, params: TTSGenerationOptions) -> bytes:
        payload = {
            "model": self.settings.GROQ_TTS_MODEL,
            "voice": voice,
            "input": text,
            "response_format": "wav",
            "speed": speed,
        }
        return await self._post_for_audio(f"{self.settings.GROQ_BASE_URL}/audio/speech", self._headers(), payload)

    async def test_credential(self) -> bool:
        try:
            audio = await self._post_for_audio(
                f"{self.settings.GROQ_BASE_URL}/audio/speech",
                self._headers(),
                {"model": self.settings.GROQ_TTS_MODEL, "voice": "Fritz-PlayAI", "input": "Test connection", "response_format": "wav"},
            )
            return len(audio) > 0
        except ProviderError as e:
            logger.warning(f"Groq credential test failed: {e}")
            return False


def create_groq_tts(api_key: str, rng: Optional[random.Random] = None, timeout: Optional[float] = None, settings: Optional[Settings] = None) -> GroqTTSClient:
    return GroqTTSClient(api_key, rng=rng, timeout=timeout, settings=settings)
