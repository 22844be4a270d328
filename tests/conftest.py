"""Pytest configuration and fixtures for Snowgoose tests."""

import json
import os
import sys
import tempfile
from typing import Any, AsyncGenerator, Dict, Generator, List, Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

# Settings are read at import time, so the environment is prepared first
_TMP_DIR = tempfile.mkdtemp(prefix="snowgoose-tests-")
os.environ["DATABASE_PATH"] = os.path.join(_TMP_DIR, "app.db")
os.environ["STORAGE_BACKEND"] = "local"
os.environ["MEDIA_DIR"] = os.path.join(_TMP_DIR, "media")
os.environ["DOLLARS_PER_CREDIT"] = "0.10"
os.environ["SUPABASE_URL"] = "http://supabase.test"
os.environ["SUPABASE_SERVICE_KEY"] = "test-service-key"
for _key in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GOOGLE_API_KEY", "OPENROUTER_API_KEY"):
    os.environ.pop(_key, None)

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from snowgoose.adapters.base import AIRequestOptions, VendorAdapter, VendorConfig
from snowgoose.adapters.factory import AIVendorFactory
from snowgoose.db import Database
from snowgoose.main import app
from snowgoose.services.auth import AuthProvider
from snowgoose.services.container import Services, build_services, get_services
from snowgoose.services.storage import ObjectStorage

BASE_URL = "http://test"

FAKE_VENDOR = "fake"
VALID_TOKEN = "token-alice"
BROKE_TOKEN = "token-bob"

# Small 1x1 red PNG in base64
RED_PIXEL_PNG = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8z8DwHwAFBQIAX8jx0gAAAABJRU5ErkJggg=="


class FakeAuthProvider(AuthProvider):
    """Resolves a fixed set of tokens."""

    def __init__(self, tokens: Dict[str, str]):
        self.tokens = tokens

    async def resolve(self, access_token: str) -> Optional[str]:
        return self.tokens.get(access_token)


class FakeStorage(ObjectStorage):
    """Records uploads; payloads listed in ``fail_on`` raise."""

    def __init__(self):
        self.uploads: List[Dict[str, Any]] = []
        self.fail_on: set = set()

    async def upload(self, base64_data: str, mime_type: str, owner: Optional[str] = None) -> str:
        if base64_data in self.fail_on:
            raise RuntimeError("storage unavailable")
        self.uploads.append({"data": base64_data, "mime_type": mime_type, "owner": owner})
        return f"https://storage.test/{len(self.uploads)}"


class FakeAdapter(VendorAdapter):
    """Replays a scripted event list. Exception items are raised."""

    vendor_name = FAKE_VENDOR
    script: List[Any] = []
    calls: List[AIRequestOptions] = []
    closed: int = 0

    @classmethod
    def reset(cls, script: Optional[List[Any]] = None) -> None:
        cls.script = list(script or [])
        cls.calls = []
        cls.closed = 0

    async def stream_response(self, options: AIRequestOptions):
        FakeAdapter.calls.append(options)
        try:
            for item in FakeAdapter.script:
                if isinstance(item, BaseException):
                    raise item
                yield item
        finally:
            FakeAdapter.closed += 1


def parse_frames(body: str) -> List[Dict[str, Any]]:
    """Split a stream body into decoded frames."""
    return [json.loads(frame) for frame in body.split("\n\n") if frame.strip()]


async def collect(agen) -> List[Any]:
    """Drain an async generator into a list."""
    return [item async for item in agen]


@pytest.fixture
def db(tmp_path) -> Generator[Database, None, None]:
    """Fresh SQLite database on a temp file."""
    database = Database(tmp_path / "test.db")
    database.connect()
    yield database
    database.close()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def fake_adapter() -> Generator[type, None, None]:
    """Register the scripted adapter under the fake vendor."""
    FakeAdapter.reset()
    AIVendorFactory.register_adapter(FAKE_VENDOR, FakeAdapter)
    AIVendorFactory.set_vendor_config(FAKE_VENDOR, VendorConfig(api_key="test-key"))
    yield FakeAdapter
    AIVendorFactory._adapters.pop(FAKE_VENDOR, None)
    AIVendorFactory._vendor_configs.pop(FAKE_VENDOR, None)


@pytest_asyncio.fixture
async def seed(db: Database) -> Dict[str, Any]:
    """Vendor, two models and two users (one with credits, one without)."""
    from snowgoose.db import APIVendorRepository, ModelRepository, UserRepository

    vendor = await APIVendorRepository(db).create(FAKE_VENDOR)
    models = ModelRepository(db)
    chat_model = await models.create(
        api_name="fake-chat",
        name="Fake Chat",
        api_vendor_id=vendor.id,
        is_vision=True,
        is_thinking=True,
        input_token_cost=1.0,
        output_token_cost=2.0,
    )
    image_model = await models.create(
        api_name="fake-image",
        name="Fake Image",
        api_vendor_id=vendor.id,
        is_image_generation=True,
        is_web_search=True,
        paid_only=True,
    )
    users = UserRepository(db)
    alice = await users.create(auth_id="auth-alice", username="alice", credit_balance=10.0)
    bob = await users.create(auth_id="auth-bob", username="bob", credit_balance=0.0)
    return {
        "vendor": vendor,
        "chat_model": chat_model,
        "image_model": image_model,
        "alice": alice,
        "bob": bob,
    }


@pytest.fixture
def services(db: Database, storage: FakeStorage, seed) -> Services:
    """Services wired to the temp database and in-process fakes."""
    auth = FakeAuthProvider({VALID_TOKEN: "auth-alice", BROKE_TOKEN: "auth-bob"})
    return build_services(db=db, storage=storage, auth=auth)


@pytest.fixture
def client(services: Services) -> Generator[TestClient, None, None]:
    """Create synchronous test client."""
    app.dependency_overrides[get_services] = lambda: services
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(services: Services) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    app.dependency_overrides[get_services] = lambda: services
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=BASE_URL) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict:
    """Headers for a user with credits."""
    return {
        "Authorization": f"Bearer {VALID_TOKEN}",
        "Content-Type": "application/json",
    }


@pytest.fixture
def broke_headers() -> dict:
    """Headers for a user with a zero balance."""
    return {
        "Authorization": f"Bearer {BROKE_TOKEN}",
        "Content-Type": "application/json",
    }


@pytest.fixture
def simple_chat_request(seed) -> dict:
    """Minimal chat stream request."""
    return {
        "modelId": seed["chat_model"].id,
        "responseHistory": [{"role": "user", "content": "Say 'test' and nothing else"}],
        "maxTokens": 100,
    }
