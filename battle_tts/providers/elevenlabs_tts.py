# battle_tts/providers/elevenlabs_tts.py

"""ElevenLabs premium voices."""
import logging
import random
from typing import Dict, Optional

import httpx

from ..config import Settings
from ..models import TTSGenerationOptions
from .base import TTSProviderClient, clamp

logger = logging.getLogger(__name__)

# ElevenLabs only accepts a narrow speed window
ELEVENLABS_MIN_SPEED = 0.7
ELEVENLABS_MAX_SPEED = 1.2

# (stability, style exaggeration) per delivery style
STYLE_VOICE_SETTINGS: Dict[str, tuple] = {
    "aggressive": (0.3, 0.8),
    "confident": (0.5, 0.5),
    "smooth": (0.7, 0.3),
    "intense": (0.35, 0.7),
    "playful": (0.45, 0.6),
}


class ElevenLabsTTSClient(TTSProviderClient):
    name = "elevenlabs"
    audio_mime_type = "audio/mpeg"
    character_voices = {
        "razor": "AZnzlk1XvdvUeBnXmlld",  # Domi
        "venom": "VR6AewLTigWG4xSOukaG",  # Arnold
        "silk": "ErXwobaYiN019PkySvjV",   # Antoni
        "cypher": "pNInz6obpgDQGcFmaJgB", # Adam
    }
    male_voices = [
        "pNInz6obpgDQGcFmaJgB", # Adam
        "ErXwobaYiN019PkySvjV", # Antoni
        "VR6AewLTigWG4xSOukaG", # Arnold
        "TxGEqnHWrfWFTfGW9XjX", # Josh
        "yoZ06aMxZJJ28mfd3POQ", # Sam
    ]
    female_voices = [
        "21m00Tcm4TlvDq8ikWAM", # Rachel
        "AZnzlk1XvdvUeBnXmlld", # Domi
        "EXAVITQu4vr4xnxL3LfY", # Bella
        "MF3mGyEYCl7XYWbV7PIt", # Elli
    ]

    def _headers(self):
        return {"xi-api-key": self.api_key, "Content-Type": "application/json", "Accept": "audio/mpeg"}

    def calculate_speed(self, character_id: str, params: TTSGenerationOptions) -> float:
        return clamp(super().calculate_speed(character_id, params), ELEVENLABS_MIN_SPEED, ELEVENLABS_MAX_SPEED)

    async def _request_audio(self, text: str, voice: str, speed: float, params: TTSGenerationOptions) -> bytes:
        style_key = params.voice_style.value if params.voice_style else "confident"
        stability, style = STYLE_VOICE_SETTINGS[style_key]
        payload = {
            "text": text,
            "model_id": self.settings.ELEVENLABS_MODEL,
            "voice_settings": {
                "stability": stability,
                "similarity_boost": 0.75,
                "style": style,
                "use_speaker_boost": True,
                "speed": speed,
            },
        }
        return await self._post_for_audio(f"{self.settings.ELEVENLABS_BASE_URL}/text-to-speech/{voice}", self._headers(), payload)

    async def test_credential(self) -> bool:
        client = self._get_http_client()
        try:
            response = await client.get(f"{self.settings.ELEVENLABS_BASE_URL}/user", headers={"xi-api-key": self.api_key})
            return response.status_code == 200
        except httpx.RequestError as e:
            logger.warning(f"ElevenLabs credential test failed: {e}")
            return False


def create_elevenlabs_tts(api_key: str, rng: Optional[random.Random] = None, timeout: Optional[float] = None, settings: Optional[Settings] = None) -> ElevenLabsTTSClient:
    return ElevenLabsTTSClient(api_key, rng=rng, timeout=timeout, settings=settings)
