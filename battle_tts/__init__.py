"""Per-user TTS vendor selection and fallback for AI rap battles."""

from .config import Settings, TTSService, settings
from .instance_cache import ProviderInstanceCache
from .models import GenerationResult, TTSGenerationOptions, User, VoiceStyle
from .storage import MemoryStorage, UserNotFoundError
from .tts_manager import TTSContext, UserTTSManager, build_context

__all__ = [
    "Settings",
    "TTSService",
    "settings",
    "ProviderInstanceCache",
    "GenerationResult",
    "TTSGenerationOptions",
    "User",
    "VoiceStyle",
    "MemoryStorage",
    "UserNotFoundError",
    "TTSContext",
    "UserTTSManager",
    "build_context",
]
