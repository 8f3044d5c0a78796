# battle_tts/providers/myshell_tts.py

"""MyShell TTS, optionally with voice cloning of the character's reference voice."""
import logging
import random
from typing import Any, Dict, Optional

from ..config import Settings
from ..models import TTSGenerationOptions
from .base import ProviderError, TTSProviderClient

logger = logging.getLogger(__name__)


class MyShellTTSClient(TTSProviderClient):
    name = "myshell"
    audio_mime_type = "audio/mpeg"
    character_voices = {
        "razor": "rap-razor-female",
        "venom": "rap-venom-male",
        "silk": "rap-silk-male",
        "cypher": "rap-cypher-robot",
    }
    male_voices = ["en-us-male-deep", "en-us-male-street", "en-us-male-smooth"]
    female_voices = ["en-us-female-bold", "en-us-female-edgy", "en-us-female-smooth"]

    def __init__(self, api_key: str, voice_cloning: bool = False, rng: Optional[random.Random] = None, timeout: Optional[float] = None, settings: Optional[Settings] = None):
        super().__init__(api_key, rng=rng, timeout=timeout, settings=settings)
        self.voice_cloning = voice_cloning

    def _headers(self):
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    def _payload(self, text: str, voice: str, speed: float) -> Dict[str, Any]:
        return {
            "text": text,
            "voice_id": voice,
            "speed": speed,
            "voice_cloning": self.voice_cloning,
            "format": "mp3",
        }

    async def _request_audio(self, text: str, voice: str, speed: float, params: TTSGenerationOptions) -> bytes:
        if self.voice_cloning:
            logger.info(f"myshell: voice cloning enabled for voice {voice}")
        return await self._post_for_audio(f"{self.settings.MYSHELL_BASE_URL}/tts", self._headers(), self._payload(text, voice, speed))

    async def test_credential(self) -> bool:
        try:
            audio = await self._post_for_audio(
                f"{self.settings.MYSHELL_BASE_URL}/tts",
                self._headers(),
                self._payload("Test connection", self.male_voices[0], 1.0),
            )
            return len(audio) > 0
        except ProviderError as e:
            logger.warning(f"MyShell credential test failed: {e}")
            return False


def create_myshell_tts(api_key: str, voice_cloning: bool = False, rng: Optional[random.Random] = None, timeout: Optional[float] = None, settings: Optional[Settings] = None) -> MyShellTTSClient:
    return MyShellTTSClient(api_key, voice_cloning=voice_cloning, rng=rng, timeout=timeout, settings=settings)
