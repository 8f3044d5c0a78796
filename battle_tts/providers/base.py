# battle_tts/providers/base.py

"""
Shared pieces of the vendor TTS clients: error types, character voice rules,
speed model, text cleanup and the HTTP round-trip that turns a vendor
response into a self-contained data URL.
"""
import base64
import logging
import random
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from ..config import Settings, settings as default_settings
from ..models import GenerationResult, TTSGenerationOptions, estimate_duration

logger = logging.getLogger(__name__)


class TTSError(Exception):
    """Base exception for all TTS errors."""
    pass


class ProviderError(TTSError):
    def __init__(self, provider: str, message: str, original_exception: Optional[Exception] = None):
        self.provider = provider
        self.message = message
        self.original_exception = original_exception
        super().__init__(f"Provider '{provider}' error: {message}" + (f" (Original: {type(original_exception).__name__})" if original_exception else ""))


ROBOT_CHARACTER_ID = "cypher"

CHARACTER_BASE_SPEEDS: Dict[str, float] = {
    "cypher": 0.75, # Slow, mechanical robot
    "venom": 0.9,   # Menacing, deliberate
    "razor": 1.1,   # Quick, sharp delivery
    "silk": 1.0,    # Smooth, natural pace
}

STYLE_SPEED_MODIFIERS: Dict[str, float] = {
    "aggressive": 1.2,
    "confident": 1.0,
    "smooth": 0.95,
    "intense": 1.15,
    "playful": 1.1,
}

MIN_SPEED = 0.5
MAX_SPEED = 2.0

_STYLE_TAG_RE = re.compile(r"\[.*?\]")
_EMPHASIS_RE = re.compile(r"\*.*?\*")
_WHITESPACE_RE = re.compile(r"\s+")


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def calculate_speed(character_id: str, voice_style: Optional[str] = None, speed_multiplier: Optional[float] = None) -> float:
    """Character base speed x style modifier x user slider, clamped to [0.5, 2.0]."""
    base_speed = CHARACTER_BASE_SPEEDS.get(character_id, 1.0)
    style_key = getattr(voice_style, "value", voice_style) or "confident"
    style_modifier = STYLE_SPEED_MODIFIERS.get(style_key, 1.0)
    multiplier = speed_multiplier if speed_multiplier is not None else 1.0
    return clamp(base_speed * style_modifier * multiplier, MIN_SPEED, MAX_SPEED)


def describe_speed(speed: float) -> str:
    if speed <= 0.7: return "very slow/robotic"
    if speed <= 0.9: return "slow/deliberate"
    if speed <= 1.1: return "normal pace"
    if speed <= 1.3: return "fast/energetic"
    return "very fast/rapid-fire"


def clean_text(text: str, keep_style_tags: bool = False) -> str:
    """Drop emphasis markers (and style tags unless kept) and collapse whitespace."""
    if not keep_style_tags:
        text = _STYLE_TAG_RE.sub("", text)
    text = _EMPHASIS_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def to_data_url(audio_bytes: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(audio_bytes).decode('utf-8')}"


class TTSProviderClient(ABC):
    """
    One vendor's speech API bound to one API key.

    Subclasses declare their voice tables and implement `_request_audio` and
    `test_credential`. The HTTP handle is created on first use.
    """

    name: str = "base"
    audio_mime_type: str = "audio/mpeg"
    character_voices: Dict[str, str] = {}
    male_voices: List[str] = []
    female_voices: List[str] = []

    def __init__(
        self,
        api_key: str,
        rng: Optional[random.Random] = None,
        timeout: Optional[float] = None,
        settings: Optional[Settings] = None,
    ):
        if not api_key:
            raise ProviderError(self.name, "API key is required.")
        self.api_key = api_key
        # Base URLs and model names come from here
        self.settings = settings or default_settings
        self.rng = rng or random.Random(self.settings.VOICE_SEED)
        self.timeout = timeout or self.settings.VENDOR_TIMEOUT
        self._http_client: Optional[httpx.AsyncClient] = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None and not self._http_client.is_closed:
            await self._http_client.aclose()
        self._http_client = None

    def select_voice(self, character_id: str, gender: Optional[str] = None) -> str:
        if character_id in self.character_voices:
            return self.character_voices[character_id]
        voices = self.female_voices if (gender or "male").lower() == "female" else self.male_voices
        return self.rng.choice(voices)

    def prepare_text(self, text: str, character_id: str) -> str:
        return clean_text(text)

    def calculate_speed(self, character_id: str, params: TTSGenerationOptions) -> float:
        return calculate_speed(character_id, params.voice_style, params.speed_multiplier)

    async def synthesize(self, text: str, character_id: str, params: Optional[TTSGenerationOptions] = None) -> GenerationResult:
        params = params or TTSGenerationOptions(character_id=character_id)
        logger.info(f"{self.name} TTS generating for {character_id}: '{text[:50]}...'")

        prepared = self.prepare_text(text, character_id)
        if not prepared:
            raise ProviderError(self.name, "Nothing left to synthesize after text cleanup.")

        voice = self.select_voice(character_id, params.gender)
        speed = self.calculate_speed(character_id, params)
        style = params.voice_style.value if params.voice_style else "confident"
        logger.info(f"{self.name}: voice={voice}, speed={speed:.2f}x ({describe_speed(speed)}), style={style}")

        audio_bytes = await self._request_audio(prepared, voice, speed, params)
        logger.info(f"{self.name} TTS success: {len(audio_bytes)} bytes")
        return GenerationResult(
            audio_url=to_data_url(audio_bytes, self.audio_mime_type),
            duration=estimate_duration(text),
        )

    async def _post_for_audio(self, url: str, headers: Dict[str, str], payload: Dict[str, Any]) -> bytes:
        """POST a synthesis request and return the raw audio body."""
        client = self._get_http_client()
        try:
            response = await client.post(url, headers=headers, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProviderError(self.name, f"HTTP {e.response.status_code}: {e.response.text[:200]}", e)
        except httpx.RequestError as e:
            raise ProviderError(self.name, f"Request failed: {e}", e)

        content_type = response.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            raise ProviderError(self.name, f"Expected audio but got JSON: {response.text[:200]}")
        if not response.content:
            raise ProviderError(self.name, "Provider returned no audio data.")
        return response.content

    @abstractmethod
    async def _request_audio(self, text: str, voice: str, speed: float, params: TTSGenerationOptions) -> bytes: pass

    @abstractmethod
    async def test_credential(self) -> bool: pass
