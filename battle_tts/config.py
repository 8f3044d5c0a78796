# battle_tts/config.py

import logging
from enum import Enum
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class TTSService(str, Enum):
    SYSTEM = "system"
    OPENAI = "openai"
    GROQ = "groq"
    ELEVENLABS = "elevenlabs"
    MYSHELL = "myshell"


VENDOR_SERVICES: List[TTSService] = [s for s in TTSService if s is not TTSService.SYSTEM]


class Settings(BaseSettings):
    LOG_LEVEL: str = "INFO"
    VENDOR_TIMEOUT: float = Field(default=30.0, gt=0) # Upper bound for a single vendor attempt, in seconds

    DEFAULT_TTS_SERVICE: TTSService = TTSService.MYSHELL
    # Voice cloning first, then premium quality, then fast, then general
    SYSTEM_FALLBACK_SERVICES: List[TTSService] = [
        TTSService.MYSHELL,
        TTSService.ELEVENLABS,
        TTSService.GROQ,
        TTSService.OPENAI,
    ]
    # Characters whose voice only works on one vendor (CYPHER-9000 is the robot)
    FORCED_CHARACTER_SERVICES: Dict[str, TTSService] = {"cypher": TTSService.GROQ}
    # When True an unknown user ends the request with silent audio instead of
    # falling through to the system services
    STRICT_USER_LOOKUP: bool = False

    VOICE_SEED: Optional[int] = None # Seed for the random fallback voice choice
    MYSHELL_VOICE_CLONING: bool = True

    # System-wide credentials, used only when the user has no key for the vendor
    OPENAI_API_KEY: Optional[str] = None
    GROQ_API_KEY: Optional[str] = None
    ELEVENLABS_API_KEY: Optional[str] = None
    MYSHELL_API_KEY: Optional[str] = None

    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_TTS_MODEL: str = "tts-1"

    GROQ_BASE_URL: str = "https://api.groq.com/openai/v1"
    GROQ_TTS_MODEL: str = "playai-tts"

    ELEVENLABS_BASE_URL: str = "https://api.elevenlabs.io/v1"
    ELEVENLABS_MODEL: str = "eleven_multilingual_v2"

    MYSHELL_BASE_URL: str = "https://api.myshell.ai/v1"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def system_api_key(self, service: TTSService) -> Optional[str]:
        key_map = {
            TTSService.OPENAI: self.OPENAI_API_KEY,
            TTSService.GROQ: self.GROQ_API_KEY,
            TTSService.ELEVENLABS: self.ELEVENLABS_API_KEY,
            TTSService.MYSHELL: self.MYSHELL_API_KEY,
        }
        return key_map.get(service) or None

    def available_system_services(self) -> List[TTSService]:
        return [s for s in self.SYSTEM_FALLBACK_SERVICES if self.system_api_key(s)]


settings = Settings()


# Configure logging
log_level_to_set = settings.LOG_LEVEL.upper()
if not hasattr(logging, log_level_to_set):
    logging.warning(f"Invalid LOG_LEVEL '{log_level_to_set}' in battle_tts settings. Defaulting to INFO.")
    log_level_to_set = "INFO"

logging.basicConfig(
    level=getattr(logging, log_level_to_set),
    format="%(asctime)s - %(name)s (BATTLE_TTS) - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)
