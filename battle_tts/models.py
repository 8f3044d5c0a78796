# battle_tts/models.py

from enum import Enum
from typing import Optional, List
from datetime import datetime

from pydantic import BaseModel, Field

from .config import TTSService


class VoiceStyle(str, Enum):
    AGGRESSIVE = "aggressive"
    CONFIDENT = "confident"
    SMOOTH = "smooth"
    INTENSE = "intense"
    PLAYFUL = "playful"


# Rough speaking rate used everywhere a duration has to be guessed from text
CHARS_PER_SECOND = 15


def estimate_duration(text: str) -> int:
    return len(text) // CHARS_PER_SECOND


class User(BaseModel):
    id: str
    preferred_tts_service: Optional[TTSService] = Field(None, description="Unset means the configured default")
    openai_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None
    elevenlabs_api_key: Optional[str] = None
    myshell_api_key: Optional[str] = None

    def api_key_for(self, service: TTSService) -> Optional[str]:
        """Return the user's own key for a vendor, if they stored one."""
        key_map = {
            TTSService.OPENAI: self.openai_api_key,
            TTSService.GROQ: self.groq_api_key,
            TTSService.ELEVENLABS: self.elevenlabs_api_key,
            TTSService.MYSHELL: self.myshell_api_key,
        }
        return key_map.get(service) or None


class TTSGenerationOptions(BaseModel):
    character_id: str = Field(..., description="Voice persona, e.g. 'razor' or 'cypher'")
    character_name: Optional[str] = None
    gender: Optional[str] = Field(None, description="'male' or 'female'; picks the random voice pool")
    voice_style: Optional[VoiceStyle] = None
    speed_multiplier: float = Field(1.0, gt=0, description="User speed slider value")


class GenerationResult(BaseModel):
    audio_url: str = Field(..., description="data: URL with the audio, or '' when no audio is available")
    duration: int = Field(..., ge=0, description="Estimated duration in seconds")

    @classmethod
    def silent(cls, text: str) -> "GenerationResult":
        """The 'no audio' result; callers keep going without sound."""
        return cls(audio_url="", duration=estimate_duration(text))

    @property
    def has_audio(self) -> bool:
        return bool(self.audio_url)


# --- HTTP request/response models ---

class GenerateTTSRequest(TTSGenerationOptions):
    text: str = Field(..., min_length=1, description="Verse to speak")
    user_id: str

    def to_options(self) -> TTSGenerationOptions:
        return TTSGenerationOptions(**self.model_dump(exclude={"text", "user_id"}))


class UserTTSSettingsUpdate(BaseModel):
    preferred_tts_service: Optional[TTSService] = None
    openai_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None
    elevenlabs_api_key: Optional[str] = None
    myshell_api_key: Optional[str] = None


class APIKeyTestResponse(BaseModel):
    service: str
    valid: bool


class ClearInstancesResponse(BaseModel):
    cleared: int


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    system_services: List[str]
    default_tts_service: str
