from ..config import TTSService
from .base import (
    ProviderError,
    TTSError,
    TTSProviderClient,
    calculate_speed,
    clean_text,
    describe_speed,
)
from .elevenlabs_tts import ElevenLabsTTSClient, create_elevenlabs_tts
from .groq_tts import GroqTTSClient, create_groq_tts
from .myshell_tts import MyShellTTSClient, create_myshell_tts
from .openai_tts import OpenAITTSClient, create_openai_tts

# Vendor -> factory(api_key, **mode_flags, rng=..., timeout=..., settings=...)
PROVIDER_FACTORIES = {
    TTSService.OPENAI: create_openai_tts,
    TTSService.GROQ: create_groq_tts,
    TTSService.ELEVENLABS: create_elevenlabs_tts,
    TTSService.MYSHELL: create_myshell_tts,
}

__all__ = [
    "PROVIDER_FACTORIES",
    "ProviderError",
    "TTSError",
    "TTSProviderClient",
    "calculate_speed",
    "clean_text",
    "describe_speed",
    "ElevenLabsTTSClient",
    "GroqTTSClient",
    "MyShellTTSClient",
    "OpenAITTSClient",
    "create_elevenlabs_tts",
    "create_groq_tts",
    "create_myshell_tts",
    "create_openai_tts",
]
