"""Tests for the vendor TTS clients and their shared helpers."""
import base64
import json
import random

import httpx
import pytest
import respx

from battle_tts.config import settings
from battle_tts.models import TTSGenerationOptions, VoiceStyle
from battle_tts.providers import (
    ElevenLabsTTSClient,
    GroqTTSClient,
    MyShellTTSClient,
    OpenAITTSClient,
    ProviderError,
    calculate_speed,
    clean_text,
    create_groq_tts,
    create_myshell_tts,
    describe_speed,
)
from battle_tts.providers.groq_tts import apply_robot_voice_effects

GROQ_SPEECH_URL = f"{settings.GROQ_BASE_URL}/audio/speech"
OPENAI_SPEECH_URL = f"{settings.OPENAI_BASE_URL}/audio/speech"
MYSHELL_TTS_URL = f"{settings.MYSHELL_BASE_URL}/tts"
WAV_BYTES = b"RIFF$\x00\x00\x00WAVEfmt fake-audio"
MP3_BYTES = b"ID3\x04\x00fake-mp3"


def sent_json(route):
    return json.loads(route.calls.last.request.content)


class TestSpeedModel:

    def test_defaults_to_normal_speed(self):
        assert calculate_speed("unknown") == 1.0

    def test_multiplies_character_style_and_slider(self):
        assert calculate_speed("razor", VoiceStyle.AGGRESSIVE, 1.0) == pytest.approx(1.32)
        assert calculate_speed("venom", "smooth", 1.2) == pytest.approx(0.9 * 0.95 * 1.2)

    def test_clamps_to_bounds(self):
        assert calculate_speed("cypher", "smooth", 0.1) == 0.5
        assert calculate_speed("razor", "aggressive", 5.0) == 2.0

    def test_unknown_style_counts_as_neutral(self):
        assert calculate_speed("silk", "mumble", 1.0) == 1.0

    @pytest.mark.parametrize("speed, label", [
        (0.5, "very slow/robotic"),
        (0.8, "slow/deliberate"),
        (1.0, "normal pace"),
        (1.25, "fast/energetic"),
        (1.8, "very fast/rapid-fire"),
    ])
    def test_describe_speed(self, speed, label):
        assert describe_speed(speed) == label


class TestTextCleanup:

    def test_strips_style_tags_and_emphasis(self):
        assert clean_text("[intro]  Yo *drops mic*   I'm   back\n[outro]") == "Yo I'm back"

    def test_can_keep_style_tags(self):
        assert clean_text("[pause] stay *loud* here", keep_style_tags=True) == "[pause] stay here"

    def test_robot_effects(self):
        assert apply_robot_voice_effects("Hi. Wow! Why?") == (
            "[processing] Hi. [pause] Wow. [emphasis] Why. [query] [systems_online]"
        )


class TestVoiceSelection:

    def test_known_characters_use_fixed_voices(self):
        client = GroqTTSClient("key")
        assert client.select_voice("razor") == "Cheyenne-PlayAI"
        assert client.select_voice("cypher", gender="female") == "Fritz-PlayAI"

    def test_random_voice_respects_gender(self):
        client = OpenAITTSClient("key", rng=random.Random(1))
        for _ in range(10):
            assert client.select_voice("newcomer", "female") in OpenAITTSClient.female_voices
            assert client.select_voice("newcomer", None) in OpenAITTSClient.male_voices

    def test_seeded_random_source_is_deterministic(self):
        picks_a = [GroqTTSClient("k", rng=random.Random(42)).select_voice("x") for _ in range(3)]
        picks_b = [GroqTTSClient("k", rng=random.Random(42)).select_voice("x") for _ in range(3)]
        assert picks_a == picks_b

    def test_missing_api_key_is_rejected(self):
        with pytest.raises(ProviderError):
            create_groq_tts("")


class TestGroqClient:

    @pytest.mark.asyncio
    async def test_synthesize_returns_wav_data_url(self):
        client = create_groq_tts("gsk_test")
        params = TTSGenerationOptions(character_id="razor", voice_style="aggressive")
        text = "Step in the ring *flex* [hype] and feel the sting"

        with respx.mock:
            route = respx.post(GROQ_SPEECH_URL).respond(200, content=WAV_BYTES, headers={"content-type": "audio/wav"})
            result = await client.synthesize(text, "razor", params)

        body = sent_json(route)
        assert body["model"] == settings.GROQ_TTS_MODEL
        assert body["voice"] == "Cheyenne-PlayAI"
        assert body["input"] == "Step in the ring and feel the sting"
        assert body["response_format"] == "wav"
        assert body["speed"] == pytest.approx(1.32)
        assert route.calls.last.request.headers["authorization"] == "Bearer gsk_test"
        assert result.audio_url == "data:audio/wav;base64," + base64.b64encode(WAV_BYTES).decode()
        assert result.duration == len(text) // 15
        await client.aclose()

    @pytest.mark.asyncio
    async def test_cypher_keeps_robot_markers(self):
        client = create_groq_tts("gsk_test")

        with respx.mock:
            route = respx.post(GROQ_SPEECH_URL).respond(200, content=WAV_BYTES, headers={"content-type": "audio/wav"})
            result = await client.synthesize("yo", "cypher", TTSGenerationOptions(character_id="cypher"))

        body = sent_json(route)
        assert body["input"] == "[processing] yo [systems_online]"
        assert body["voice"] == "Fritz-PlayAI"
        assert body["speed"] == pytest.approx(0.75)
        assert result.duration == 0

    @pytest.mark.asyncio
    async def test_http_error_raises_provider_error(self):
        client = create_groq_tts("gsk_bad")

        with respx.mock:
            respx.post(GROQ_SPEECH_URL).respond(401, json={"error": "invalid api key"})
            with pytest.raises(ProviderError) as exc_info:
                await client.synthesize("hello there", "silk")

        assert exc_info.value.provider == "groq"
        assert "401" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_network_error_raises_provider_error(self):
        client = create_groq_tts("gsk_test")

        with respx.mock:
            respx.post(GROQ_SPEECH_URL).mock(side_effect=httpx.ConnectTimeout("timed out"))
            with pytest.raises(ProviderError) as exc_info:
                await client.synthesize("hello there", "silk")

        assert isinstance(exc_info.value.original_exception, httpx.ConnectTimeout)

    @pytest.mark.asyncio
    async def test_json_body_is_malformed_audio(self):
        client = create_groq_tts("gsk_test")

        with respx.mock:
            respx.post(GROQ_SPEECH_URL).respond(200, json={"status": "queued"})
            with pytest.raises(ProviderError):
                await client.synthesize("hello there", "silk")

    @pytest.mark.asyncio
    async def test_empty_text_after_cleanup_is_rejected_without_a_request(self):
        client = create_groq_tts("gsk_test")

        with respx.mock(assert_all_called=False) as mock:
            route = mock.post(GROQ_SPEECH_URL).respond(200, content=WAV_BYTES)
            with pytest.raises(ProviderError):
                await client.synthesize("[beat drops] *silence*", "silk")

        assert not route.called

    @pytest.mark.asyncio
    async def test_credential_check(self):
        client = create_groq_tts("gsk_test")

        with respx.mock:
            respx.post(GROQ_SPEECH_URL).respond(200, content=WAV_BYTES, headers={"content-type": "audio/wav"})
            assert await client.test_credential() is True

        with respx.mock:
            respx.post(GROQ_SPEECH_URL).respond(403, text="forbidden")
            assert await client.test_credential() is False


class TestOpenAIClient:

    @pytest.mark.asyncio
    async def test_synthesize_sends_mp3_request(self):
        client = OpenAITTSClient("sk-test", rng=random.Random(0))

        with respx.mock:
            route = respx.post(OPENAI_SPEECH_URL).respond(200, content=MP3_BYTES, headers={"content-type": "audio/mpeg"})
            result = await client.synthesize("Venom in the veins", "venom", TTSGenerationOptions(character_id="venom", speed_multiplier=1.5))

        body = sent_json(route)
        assert body["voice"] == "onyx"
        assert body["model"] == settings.OPENAI_TTS_MODEL
        assert body["speed"] == pytest.approx(1.35)
        assert result.audio_url.startswith("data:audio/mpeg;base64,")

    @pytest.mark.asyncio
    async def test_credential_check_uses_models_endpoint(self):
        client = OpenAITTSClient("sk-test")

        with respx.mock:
            respx.get(f"{settings.OPENAI_BASE_URL}/models").respond(200, json={"data": []})
            assert await client.test_credential() is True

        with respx.mock:
            respx.get(f"{settings.OPENAI_BASE_URL}/models").respond(401, json={"error": "bad key"})
            assert await client.test_credential() is False


class TestElevenLabsClient:

    @pytest.mark.asyncio
    async def test_voice_id_in_path_and_speed_in_vendor_range(self):
        client = ElevenLabsTTSClient("xi-test")
        url = f"{settings.ELEVENLABS_BASE_URL}/text-to-speech/{ElevenLabsTTSClient.character_voices['razor']}"

        with respx.mock:
            route = respx.post(url).respond(200, content=MP3_BYTES, headers={"content-type": "audio/mpeg"})
            await client.synthesize("Razor sharp", "razor", TTSGenerationOptions(character_id="razor", voice_style="intense"))

        request = route.calls.last.request
        body = json.loads(request.content)
        assert request.headers["xi-api-key"] == "xi-test"
        assert body["model_id"] == settings.ELEVENLABS_MODEL
        assert body["voice_settings"]["speed"] == 1.2
        assert body["voice_settings"]["stability"] == 0.35

    @pytest.mark.asyncio
    async def test_credential_check(self):
        client = ElevenLabsTTSClient("xi-test")

        with respx.mock:
            respx.get(f"{settings.ELEVENLABS_BASE_URL}/user").respond(200, json={"subscription": {}})
            assert await client.test_credential() is True


class TestMyShellClient:

    @pytest.mark.asyncio
    async def test_voice_cloning_flag_is_sent(self):
        client = create_myshell_tts("ms-test", voice_cloning=True)

        with respx.mock:
            route = respx.post(MYSHELL_TTS_URL).respond(200, content=MP3_BYTES, headers={"content-type": "audio/mpeg"})
            result = await client.synthesize("Silk smooth flow", "silk")

        body = sent_json(route)
        assert body["voice_cloning"] is True
        assert body["voice_id"] == MyShellTTSClient.character_voices["silk"]
        assert result.has_audio

    @pytest.mark.asyncio
    async def test_empty_body_is_an_error(self):
        client = create_myshell_tts("ms-test")

        with respx.mock:
            respx.post(MYSHELL_TTS_URL).respond(200, content=b"", headers={"content-type": "audio/mpeg"})
            with pytest.raises(ProviderError):
                await client.synthesize("Silk smooth flow", "silk")
