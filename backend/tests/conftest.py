"""
Shared fixtures.

Environment is set before any jobpilot import so the cached settings and the
module-level engine point at a throwaway SQLite file.
"""
import json
import os
import tempfile
import uuid

_db_dir = tempfile.mkdtemp(prefix="jobpilot-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["GEMINI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient


class FakeLLMClient:
    """Stands in for TextGenerationClient; replies from a queue and records calls."""

    def __init__(self):
        self.responses = []
        self.error = None
        self.calls = []

    def queue(self, response):
        if not isinstance(response, str):
            response = json.dumps(response)
        self.responses.append(response)

    async def generate(self, system_prompt, user_prompt, temperature, json_mode=False):
        self.calls.append({
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "temperature": temperature,
            "json_mode": json_mode,
        })
        if self.error is not None:
            raise self.error
        if self.responses:
            return self.responses.pop(0)
        return "{}"


@pytest.fixture
def fake_llm():
    return FakeLLMClient()


@pytest.fixture
def api(fake_llm):
    from jobpilot.main import app
    from jobpilot.services.llm import get_llm_client

    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    from jobpilot.services.auth import create_access_token

    token = create_access_token(f"user-{uuid.uuid4().hex[:12]}")
    return {"Authorization": f"Bearer {token}"}
