# battle_tts/tts_manager.py

"""
Per-user TTS selection: which vendor speaks a verse, with which credential,
and what happens when it fails.

Order of attempts for one request:
  1. forced vendor for special characters (CYPHER-9000 -> Groq)
  2. the user's preferred vendor (user key, else system key)
  3. the system fallback chain (system keys only)
  4. silent result, so the battle continues without sound
"""
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .config import Settings, TTSService, settings as default_settings
from .fallback import FallbackStep, first_success
from .instance_cache import ProviderInstanceCache
from .models import GenerationResult, TTSGenerationOptions, User
from .storage import MemoryStorage, UserNotFoundError, UserStorage

logger = logging.getLogger(__name__)


class UserTTSManager:
    def __init__(
        self,
        storage: UserStorage,
        cache: Optional[ProviderInstanceCache] = None,
        settings: Optional[Settings] = None,
    ):
        self.storage = storage
        self.settings = settings or default_settings
        if cache is None:
            cache = ProviderInstanceCache(
                rng=random.Random(self.settings.VOICE_SEED),
                timeout=self.settings.VENDOR_TIMEOUT,
                settings=self.settings,
            )
        self.cache = cache

    def _mode_flags(self, service: TTSService) -> Dict[str, Any]:
        if service == TTSService.MYSHELL:
            return {"voice_cloning": self.settings.MYSHELL_VOICE_CLONING}
        return {}

    async def _synthesize_with(
        self, service: TTSService, api_key: str, text: str, options: TTSGenerationOptions
    ) -> GenerationResult:
        client = self.cache.get_instance(service, api_key, **self._mode_flags(service))
        return await client.synthesize(text, options.character_id, options)

    def _vendor_step(
        self,
        label: str,
        service: TTSService,
        user_key: Optional[str],
        text: str,
        options: TTSGenerationOptions,
    ) -> FallbackStep[GenerationResult]:
        api_key = user_key or self.settings.system_api_key(service)
        source = "user's" if user_key else "system"
        return FallbackStep(
            name=f"{label} {service.value} TTS ({source} key)",
            precondition=lambda: bool(api_key),
            attempt=lambda: self._synthesize_with(service, api_key, text, options),
            skip_reason=f"no {service.value} API key available (user or system)",
        )

    async def _load_user(self, user_id: str) -> Optional[User]:
        user = await self.storage.get_user(user_id)
        if user is None:
            if self.settings.STRICT_USER_LOOKUP:
                raise UserNotFoundError(user_id)
            logger.warning(f"User {user_id} not found, skipping user-specific TTS paths")
        return user

    def user_steps(self, user: User, text: str, options: TTSGenerationOptions) -> List[FallbackStep[GenerationResult]]:
        """Character override first, then the single preferred vendor."""
        steps: List[FallbackStep[GenerationResult]] = []

        forced = self.settings.FORCED_CHARACTER_SERVICES.get(options.character_id)
        if forced is not None and forced != TTSService.SYSTEM:
            logger.info(f"Character {options.character_id} is locked to {forced.value} TTS")
            steps.append(self._vendor_step("Forced", forced, user.api_key_for(forced), text, options))

        preferred = user.preferred_tts_service or self.settings.DEFAULT_TTS_SERVICE
        logger.info(f"User {user.id} prefers: {preferred.value} TTS")
        if preferred != TTSService.SYSTEM:
            steps.append(self._vendor_step("Preferred", preferred, user.api_key_for(preferred), text, options))
        return steps

    def system_steps(self, text: str, options: TTSGenerationOptions) -> List[FallbackStep[GenerationResult]]:
        return [
            self._vendor_step("System", service, None, text, options)
            for service in self.settings.SYSTEM_FALLBACK_SERVICES
            if service != TTSService.SYSTEM
        ]

    async def generate_tts(self, text: str, user_id: str, options: TTSGenerationOptions) -> GenerationResult:
        """Speak `text` for a user. Never raises; worst case is the silent result."""
        timeout = self.settings.VENDOR_TIMEOUT
        try:
            logger.info(f"Generating TTS for user {user_id}, character {options.character_id}")
            user = await self._load_user(user_id)
            if user is not None:
                result = await first_success(self.user_steps(user, text, options), timeout=timeout)
                if result is not None:
                    return result

            logger.info("Falling back to system TTS services")
            result = await first_success(self.system_steps(text, options), timeout=timeout)
            if result is not None:
                return result
            logger.info("No working TTS services available - continuing with silent mode")
        except UserNotFoundError as e:
            logger.error(f"TTS aborted: {e}")
        except Exception as e:
            logger.error(f"All TTS services failed for user {user_id}: {e}", exc_info=True)
        return self._silent_result(text)

    @staticmethod
    def _silent_result(text: Any) -> GenerationResult:
        try:
            return GenerationResult.silent(text)
        except TypeError:
            logger.warning(f"Cannot estimate duration for {type(text).__name__} text, reporting 0s")
            return GenerationResult(audio_url="", duration=0)

    async def test_user_api_key(self, user_id: str, service: TTSService) -> bool:
        """Check that the user's own key for a vendor works."""
        user = await self.storage.get_user(user_id)
        if user is None:
            return False
        api_key = user.api_key_for(service)
        if not api_key:
            return False

        try:
            instance = self.cache.get_instance(service, api_key, **self._mode_flags(service))
            if service == TTSService.OPENAI:
                result = await instance.synthesize("Test", "test")
                return result.has_audio
            return await instance.test_credential()
        except Exception as e:
            logger.error(f"API key test failed for {service.value}: {e}")
            return False

    def clear_user_instances(self, user_id: str) -> int:
        # Instances are not tracked per user, so any key change clears everything
        logger.info(f"Credentials changed for user {user_id}, clearing all cached TTS clients")
        return self.cache.invalidate_all()


@dataclass
class TTSContext:
    """Everything a request handler needs, built once at startup."""
    storage: MemoryStorage
    cache: ProviderInstanceCache
    manager: UserTTSManager

    async def aclose(self) -> None:
        await self.cache.aclose()


def build_context(app_settings: Optional[Settings] = None, storage: Optional[MemoryStorage] = None) -> TTSContext:
    app_settings = app_settings or default_settings
    storage = storage if storage is not None else MemoryStorage()
    cache = ProviderInstanceCache(
        rng=random.Random(app_settings.VOICE_SEED),
        timeout=app_settings.VENDOR_TIMEOUT,
        settings=app_settings,
    )
    manager = UserTTSManager(storage, cache=cache, settings=app_settings)
    return TTSContext(storage=storage, cache=cache, manager=manager)
