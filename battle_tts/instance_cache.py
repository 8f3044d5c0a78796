# battle_tts/instance_cache.py

"""Memoized provider clients, one per (vendor, API key, mode flags)."""
import logging
import random
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

from .config import Settings, TTSService, settings as default_settings
from .providers import PROVIDER_FACTORIES, TTSProviderClient

logger = logging.getLogger(__name__)

CacheKey = Tuple[TTSService, str, Tuple[Tuple[str, Hashable], ...]]


class ProviderInstanceCache:
    """
    Process-wide store of warm provider clients.

    No eviction and no TTL: the key space is bounded by the credentials seen
    during the process lifetime. Two concurrent misses on one key may both
    construct a client; the last one stored wins, which is harmless.
    The cache does not know which user a key belongs to, so credential
    changes invalidate at vendor or whole-cache granularity.

    Invalidated clients may still be serving an in-flight request, so they
    are parked and closed together with the live ones in `aclose()`.
    """

    def __init__(
        self,
        factories: Optional[Dict[TTSService, Callable[..., TTSProviderClient]]] = None,
        rng: Optional[random.Random] = None,
        timeout: Optional[float] = None,
        settings: Optional[Settings] = None,
    ):
        self.factories = dict(factories or PROVIDER_FACTORIES)
        self.settings = settings or default_settings
        self.rng = rng or random.Random(self.settings.VOICE_SEED)
        self.timeout = timeout
        self._instances: Dict[CacheKey, TTSProviderClient] = {}
        self._retired: List[TTSProviderClient] = []

    @staticmethod
    def make_key(service: TTSService, api_key: str, mode_flags: Dict[str, Any]) -> CacheKey:
        return (TTSService(service), api_key, tuple(sorted(mode_flags.items())))

    def get_instance(self, service: TTSService, api_key: str, **mode_flags: Any) -> TTSProviderClient:
        key = self.make_key(service, api_key, mode_flags)
        instance = self._instances.get(key)
        if instance is None:
            factory = self.factories.get(key[0])
            if factory is None:
                raise ValueError(f"No TTS client factory registered for '{key[0].value}'")
            instance = factory(api_key, rng=self.rng, timeout=self.timeout, settings=self.settings, **mode_flags)
            self._instances[key] = instance
            logger.debug(f"Created {key[0].value} TTS client (cache size now {len(self._instances)})")
        return instance

    def invalidate(self, service: Optional[TTSService] = None) -> int:
        """Drop cached clients for one vendor, or all of them when no vendor is given."""
        if service is None:
            stale = list(self._instances)
        else:
            stale = [k for k in self._instances if k[0] == service]
        for k in stale:
            self._retired.append(self._instances.pop(k))
        scope = service.value if service is not None else "all vendors"
        logger.info(f"Cleared {len(stale)} cached TTS client(s) ({scope})")
        return len(stale)

    def invalidate_all(self) -> int:
        return self.invalidate(None)

    async def aclose(self) -> None:
        clients = self._retired + list(self._instances.values())
        self._retired = []
        for instance in clients:
            await instance.aclose()

    def __len__(self) -> int:
        return len(self._instances)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._instances
