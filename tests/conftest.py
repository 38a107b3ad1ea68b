"""
MedVoice Test Suite - Shared Fixtures
"""

import os

# Settings are read at import time by the gateway; configure before importing medvoice.
os.environ["SECURITY_JWT_SECRET_KEY"] = "medvoice-test-signing-key-9f3c2a7b5e1d4c68"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "testing"
os.environ["LLM_MOCK_RESPONSES"] = "false"

from types import SimpleNamespace  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from medvoice.core.providers import LLMResponse, Usage  # noqa: E402
from medvoice.core.settings import LLMSettings, TTSSettings  # noqa: E402
from medvoice.data.postgres import (  # noqa: E402
    close_database,
    get_session_factory,
    init_database,
)
from medvoice.data.repositories import (  # noqa: E402
    AgentRepository,
    OrganizationRepository,
    UserRepository,
)
from medvoice.gateway.app import create_app  # noqa: E402
from medvoice.gateway.auth import get_jwt_service  # noqa: E402
from medvoice.observability.metrics import init_metrics  # noqa: E402
from medvoice.services.ai_service import AIService, get_ai_service  # noqa: E402
from medvoice.services.tts_service import TTSService, get_tts_service  # noqa: E402

FAKE_AUDIO = b"ID3-fake-mpeg-bytes"


# ============================================================
# Fakes
# ============================================================


class FakeChatProvider:
    """Stands in for an SDK-backed provider; records every call."""

    def __init__(self, reply: str = "Sure, Tuesday at 10am works.", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []

    async def chat(self, messages, system=None, temperature=0.7, max_tokens=1000, functions=None):
        self.calls.append(
            {
                "messages": messages,
                "system": system,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "functions": functions,
            }
        )
        if self.error is not None:
            raise self.error
        return LLMResponse(
            content=self.reply,
            finish_reason="stop",
            usage=Usage(input_tokens=12, output_tokens=8),
            model="gpt-4-0613",
        )

    async def close(self):
        pass


class FakeProviderPool:
    def __init__(self, provider: FakeChatProvider):
        self.provider = provider
        self.requested: list[tuple] = []

    def get_provider(self, provider_name, model=None):
        self.requested.append((provider_name, model))
        return self.provider

    async def close_all(self):
        pass


def make_llm_settings(**overrides) -> LLMSettings:
    values = {
        "openai_api_key": "sk-test-openai",
        "openai_organization_id": None,
        "anthropic_api_key": None,
        "mock_responses": False,
    }
    values.update(overrides)
    return LLMSettings(**values)


def make_tts_settings(**overrides) -> TTSSettings:
    values = {"elevenlabs_api_key": "xi-test-key"}
    values.update(overrides)
    return TTSSettings(**values)


# ============================================================
# Database
# ============================================================


@pytest_asyncio.fixture
async def database():
    """Fresh in-memory database per test."""
    engine = await init_database("sqlite+aiosqlite:///:memory:")
    yield engine
    await close_database()


@pytest.fixture
def session_factory(database):
    return get_session_factory()


@pytest_asyncio.fixture
async def seed(session_factory):
    """Two organizations, a user in each, an agent in the first, and an orphan user."""
    async with session_factory() as session:
        orgs = OrganizationRepository(session)
        users = UserRepository(session)
        agents = AgentRepository(session)

        clinic = await orgs.create("Riverside Family Clinic")
        other = await orgs.create("Lakeside Dental")

        user = await users.create("frontdesk@riverside.test", organization_id=clinic.id)
        other_user = await users.create("admin@lakeside.test", organization_id=other.id)
        orphan = await users.create("orphan@nowhere.test")

        agent = await agents.create(
            clinic.id,
            "Reception",
            type="front_desk",
            provider="openai",
            system_prompt="Be concise.",
            temperature=0.4,
            max_tokens=300,
            greeting_message="Thanks for calling Riverside, how can I help?",
            fallback_message="Sorry, our assistant is offline. Please hold.",
            business_hours={"mon-fri": "8-17"},
        )
        prompt_agent = await agents.create(
            clinic.id,
            "Triage",
            type="triage_nurse",
            provider="openai",
            system_prompt="Ask about symptoms first.",
        )
        bare_agent = await agents.create(clinic.id, "Bare")
        other_agent = await agents.create(other.id, "Lakeside Reception")

        await session.commit()

    return SimpleNamespace(
        clinic=clinic,
        other=other,
        user=user,
        other_user=other_user,
        orphan=orphan,
        agent=agent,
        prompt_agent=prompt_agent,
        bare_agent=bare_agent,
        other_agent=other_agent,
    )


# ============================================================
# Services
# ============================================================


@pytest.fixture
def chat_provider():
    return FakeChatProvider()


@pytest.fixture
def provider_pool(chat_provider):
    return FakeProviderPool(chat_provider)


@pytest.fixture
def ai_service(provider_pool):
    return AIService(settings=make_llm_settings(), pool=provider_pool)


@pytest.fixture
def elevenlabs_requests():
    return []


@pytest.fixture
def elevenlabs_transport(elevenlabs_requests):
    def handler(request: httpx.Request) -> httpx.Response:
        elevenlabs_requests.append(request)
        if request.url.path.endswith("/voices"):
            return httpx.Response(200, json={"voices": [{"voice_id": "abc", "name": "Rachel"}]})
        if "/text-to-speech/" in request.url.path:
            return httpx.Response(200, content=FAKE_AUDIO, headers={"content-type": "audio/mpeg"})
        return httpx.Response(404, json={"detail": {"message": "not found"}})

    return httpx.MockTransport(handler)


@pytest_asyncio.fixture
async def tts_service(elevenlabs_transport):
    service = TTSService(settings=make_tts_settings(), transport=elevenlabs_transport)
    yield service
    await service.close()


# ============================================================
# HTTP
# ============================================================


@pytest.fixture
def app(database, ai_service, tts_service):
    application = create_app()
    application.dependency_overrides[get_ai_service] = lambda: ai_service
    application.dependency_overrides[get_tts_service] = lambda: tts_service
    return application


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def headers_for():
    """Build an Authorization header for a user id."""

    def _headers(user_id: str) -> dict[str, str]:
        token = get_jwt_service().create_access_token(user_id)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def auth_headers(seed, headers_for):
    return headers_for(seed.user.id)


@pytest.fixture
def metrics():
    """Fresh global metrics registry."""
    return init_metrics()
