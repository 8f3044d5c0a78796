# battle_tts/providers/openai_tts.py

"""OpenAI speech endpoint, the general-purpose last resort of the system chain."""
import logging
import random
from typing import Optional

import httpx

from ..config import Settings
from ..models import TTSGenerationOptions
from .base import TTSProviderClient

logger = logging.getLogger(__name__)


class OpenAITTSClient(TTSProviderClient):
    name = "openai"
    audio_mime_type = "audio/mpeg"
    character_voices = {
        "razor": "nova",
        "venom": "onyx",
        "silk": "echo",
        "cypher": "fable",
    }
    male_voices = ["onyx", "echo", "fable"]
    female_voices = ["nova", "shimmer", "alloy"]

    def _headers(self):
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    async def _request_audio(self, text: str, voice: str, speed: float, params: TTSGenerationOptions) -> bytes:
        payload = {
            "model": self.settings.OPENAI_TTS_MODEL,
            "voice": voice,
            "input": text,
            "response_format": "mp3",
            "speed": speed,
        }
        return await self._post_for_audio(f"{self.settings.OPENAI_BASE_URL}/audio/speech", self._headers(), payload)

    async def test_credential(self) -> bool:
        client = self._get_http_client()
        try:
            response = await client.get(f"{self.settings.OPENAI_BASE_URL}/models", headers=self._headers())
            return response.status_code == 200
        except httpx.RequestError as e:
            logger.warning(f"OpenAI credential test failed: {e}")
            return False


def create_openai_tts(api_key: str, rng: Optional[random.Random] = None, timeout: Optional[float] = None, settings: Optional[Settings] = None) -> OpenAITTSClient:
    return OpenAITTSClient(api_key, rng=rng, timeout=timeout, settings=settings)
