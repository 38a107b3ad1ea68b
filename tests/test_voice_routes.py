"""
Tests for /api/voice-ai TTS configuration and synthesis endpoints.
"""

import base64
import json

import pytest

from conftest import FAKE_AUDIO


async def _save_config(client, headers, agent_id, **body):
    response = await client.post(
        "/api/voice-ai/tts",
        json={"agent_id": agent_id, "provider": "elevenlabs", **body},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["configuration"]


class TestConfiguration:
    @pytest.mark.asyncio
    async def test_defaults_applied(self, client, seed, auth_headers):
        configuration = await _save_config(client, auth_headers, seed.agent.id, voice_id="v1")

        assert configuration["agent_id"] == seed.agent.id
        assert configuration["organization_id"] == seed.clinic.id
        assert configuration["language_code"] == "en-US"
        assert configuration["speaking_rate"] == 1.0
        assert configuration["pitch"] == 0.0
        assert configuration["volume_gain_db"] == 0.0
        assert configuration["is_active"] is True

    @pytest.mark.asyncio
    async def test_second_save_updates_in_place(self, client, seed, auth_headers):
        first = await _save_config(client, auth_headers, seed.agent.id, voice_id="v1")
        second = await _save_config(
            client, auth_headers, seed.agent.id, voice_id="v2", speaking_rate=1.25
        )

        assert second["id"] == first["id"]
        assert second["voice_id"] == "v2"
        assert second["speaking_rate"] == 1.25

        response = await client.get(f"/api/voice-ai/tts/{seed.agent.id}", headers=auth_headers)
        configurations = response.json()["configurations"]
        assert len(configurations) == 1
        assert configurations[0]["voice_id"] == "v2"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "field,value",
        [("speaking_rate", 5.0), ("speaking_rate", 0.1), ("pitch", 25), ("volume_gain_db", 20)],
    )
    async def test_out_of_range_rejected(self, client, seed, auth_headers, field, value):
        response = await client.post(
            "/api/voice-ai/tts",
            json={"agent_id": seed.agent.id, "provider": "elevenlabs", field: value},
            headers=auth_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_provider_required(self, client, seed, auth_headers):
        response = await client.post(
            "/api/voice-ai/tts", json={"agent_id": seed.agent.id}, headers=auth_headers
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_agent_from_other_organization(self, client, seed, auth_headers):
        response = await client.post(
            "/api/voice-ai/tts",
            json={"agent_id": seed.other_agent.id, "provider": "elevenlabs"},
            headers=auth_headers,
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_list_is_scoped(self, client, seed, auth_headers, headers_for):
        await _save_config(client, auth_headers, seed.agent.id)
        response = await client.get(
            f"/api/voice-ai/tts/{seed.agent.id}", headers=headers_for(seed.other_user.id)
        )
        assert response.status_code == 200
        assert response.json()["configurations"] == []


class TestSynthesize:
    @pytest.mark.asyncio
    async def test_default_voice(self, client, seed, auth_headers, elevenlabs_requests, metrics):
        response = await client.post(
            "/api/voice-ai/tts/synthesize", json={"text": "Hello"}, headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["provider"] == "elevenlabs"
        assert data["format"] == "audio/mpeg"
        assert base64.b64decode(data["audio"]) == FAKE_AUDIO
        assert elevenlabs_requests[0].url.path.endswith("/21m00Tcm4TlvDq8ikWAM")

    @pytest.mark.asyncio
    async def test_agent_voice(self, client, seed, auth_headers, elevenlabs_requests, metrics):
        await _save_config(
            client, auth_headers, seed.agent.id, voice_id="clinic-voice", config={"stability": 0.1}
        )

        response = await client.post(
            "/api/voice-ai/tts/synthesize",
            json={"text": "Your refill is ready", "agent_id": seed.agent.id},
            headers=auth_headers,
        )

        assert response.status_code == 200
        request = elevenlabs_requests[0]
        assert request.url.path.endswith("/clinic-voice")
        assert json.loads(request.content)["voice_settings"]["stability"] == 0.1

    @pytest.mark.asyncio
    async def test_unimplemented_provider(self, client, seed, auth_headers, metrics):
        await _save_config(client, auth_headers, seed.agent.id, provider="azure")
        response = await client.post(
            "/api/voice-ai/tts/synthesize",
            json={"text": "Hello", "agent_id": seed.agent.id},
            headers=auth_headers,
        )
        assert response.status_code == 502
        assert response.json()["error"] == "Azure TTS not yet implemented"

    @pytest.mark.asyncio
    async def test_text_required(self, client, seed, auth_headers):
        response = await client.post(
            "/api/voice-ai/tts/synthesize", json={"text": ""}, headers=auth_headers
        )
        assert response.status_code == 422


class TestVoices:
    @pytest.mark.asyncio
    async def test_lists_elevenlabs_voices(self, client, seed, auth_headers):
        response = await client.get("/api/voice-ai/tts/elevenlabs/voices", headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"voices": [{"voice_id": "abc", "name": "Rachel"}]}


class TestTTSTest:
    @pytest.mark.asyncio
    async def test_without_agent(self, client, seed, auth_headers, elevenlabs_requests, metrics):
        response = await client.post(
            "/api/voice-ai/tts/test", json={"text": "Testing"}, headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "TTS test successful"
        assert data["provider"] == "elevenlabs"
        assert elevenlabs_requests[0].url.path.endswith("/21m00Tcm4TlvDq8ikWAM")

    @pytest.mark.asyncio
    async def test_voice_override(self, client, seed, auth_headers, elevenlabs_requests, metrics):
        await _save_config(client, auth_headers, seed.agent.id, voice_id="stored-voice")

        response = await client.post(
            "/api/voice-ai/tts/test",
            json={"text": "Testing", "agent_id": seed.agent.id, "voice_id": "override-voice"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert elevenlabs_requests[0].url.path.endswith("/override-voice")

    @pytest.mark.asyncio
    async def test_unknown_provider(self, client, seed, auth_headers):
        response = await client.post(
            "/api/voice-ai/tts/test",
            json={"text": "Testing", "provider": "espeak"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Unsupported TTS provider: espeak"
