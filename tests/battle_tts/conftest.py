"""Pytest fixtures for the battle_tts tests."""
import asyncio
import random
import sys
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import pytest

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from battle_tts.config import Settings, TTSService, VENDOR_SERVICES
from battle_tts.instance_cache import ProviderInstanceCache
from battle_tts.models import GenerationResult, TTSGenerationOptions, User
from battle_tts.providers import ProviderError
from battle_tts.storage import MemoryStorage
from battle_tts.tts_manager import UserTTSManager


HANG = "hang" # outcome marker: the fake vendor never answers in time


@dataclass
class VendorCall:
    service: TTSService
    api_key: str
    text: str
    character_id: str
    params: Optional[TTSGenerationOptions]
    mode_flags: Dict[str, Any]


class FakeTTSClient:
    """Stands in for a vendor client; records every call in its registry."""

    def __init__(self, service: TTSService, api_key: str, mode_flags: Dict[str, Any], registry: "FakeVendorRegistry"):
        self.service = service
        self.api_key = api_key
        self.mode_flags = mode_flags
        self.registry = registry
        self.closed = False

    async def synthesize(self, text, character_id, params=None):
        self.registry.calls.append(VendorCall(self.service, self.api_key, text, character_id, params, self.mode_flags))
        outcome = self.registry.outcomes.get(self.service)
        if outcome == HANG:
            await asyncio.sleep(5)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, GenerationResult):
            return outcome
        return GenerationResult(audio_url=f"data:audio/mpeg;base64,{self.service.value}", duration=len(text) // 15)

    async def test_credential(self):
        outcome = self.registry.credential_ok.get(self.service, True)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def aclose(self):
        self.closed = True


class FakeVendorRegistry:
    def __init__(self):
        self.calls: List[VendorCall] = []
        self.outcomes: Dict[TTSService, Union[Exception, GenerationResult, str]] = {}
        self.credential_ok: Dict[TTSService, Union[bool, Exception]] = {}
        self.created: List[FakeTTSClient] = []

    def fail(self, *services: TTSService) -> None:
        for service in services:
            self.outcomes[service] = ProviderError(service.value, "simulated outage")

    def factories(self):
        return {service: self._factory_for(service) for service in VENDOR_SERVICES}

    def _factory_for(self, service: TTSService):
        def factory(api_key, rng=None, timeout=None, settings=None, **mode_flags):
            client = FakeTTSClient(service, api_key, mode_flags, self)
            client.settings = settings
            self.created.append(client)
            return client
        return factory

    @property
    def services_called(self) -> List[TTSService]:
        return [c.service for c in self.calls]


NO_SYSTEM_KEYS = {
    "OPENAI_API_KEY": None,
    "GROQ_API_KEY": None,
    "ELEVENLABS_API_KEY": None,
    "MYSHELL_API_KEY": None,
}

ALL_SYSTEM_KEYS = {
    "OPENAI_API_KEY": "sys-openai",
    "GROQ_API_KEY": "sys-groq",
    "ELEVENLABS_API_KEY": "sys-elevenlabs",
    "MYSHELL_API_KEY": "sys-myshell",
}


@pytest.fixture
def make_settings():
    """Settings isolated from the process environment and any .env file."""
    def _make(**overrides) -> Settings:
        values: Dict[str, Any] = dict(NO_SYSTEM_KEYS)
        values["VOICE_SEED"] = 1234
        values.update(overrides)
        return Settings(_env_file=None, **values)
    return _make


@pytest.fixture
def vendors():
    return FakeVendorRegistry()


@pytest.fixture
def storage():
    return MemoryStorage({
        "u1": User(id="u1"),
        "keyed": User(
            id="keyed",
            preferred_tts_service=TTSService.ELEVENLABS,
            elevenlabs_api_key="user-elevenlabs",
            groq_api_key="user-groq",
        ),
    })


@pytest.fixture
def make_manager(make_settings, vendors, storage):
    def _make(**setting_overrides) -> UserTTSManager:
        manager_settings = make_settings(**setting_overrides)
        cache = ProviderInstanceCache(factories=vendors.factories(), rng=random.Random(0), settings=manager_settings)
        return UserTTSManager(storage, cache=cache, settings=manager_settings)
    return _make


@pytest.fixture
def options():
    return TTSGenerationOptions(character_id="silk", gender="male", voice_style="smooth")
