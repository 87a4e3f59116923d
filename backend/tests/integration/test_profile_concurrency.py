"""Concurrent writes against one profile, run on the shared SQLite database."""

import asyncio
import json
import uuid

import httpx
import pytest
from sqlalchemy import func, select

from jobpilot.database import async_session_maker, init_db
from jobpilot.models import Profile
from jobpilot.services.profile_store import ProfileRepository

RESUME_OUTPUT = {
    "summary": "Backend engineer",
    "workExperience": [{"company": "Acme", "title": "Engineer", "description": "Built X. Shipped Y."}],
    "education": [],
    "skills": ["Python", "SQL"],
}


class SlowLLMClient:
    """Replies with a fixed resume after a delay so two requests overlap."""

    def __init__(self, delay=0.3):
        self.delay = delay

    async def generate(self, system_prompt, user_prompt, temperature, json_mode=False):
        await asyncio.sleep(self.delay)
        return json.dumps(RESUME_OUTPUT)


@pytest.fixture
async def async_api():
    from jobpilot.main import app
    from jobpilot.services.llm import get_llm_client

    await init_db()
    app.dependency_overrides[get_llm_client] = lambda: SlowLLMClient()
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.mark.integration
async def test_simultaneous_uploads_for_new_user(async_api, auth_headers):
    async def upload():
        return await async_api.post(
            "/api/profile/resume",
            files={"file": ("resume.txt", b"Jane Doe\nEngineer at Acme", "text/plain")},
            headers=auth_headers,
        )

    responses = await asyncio.gather(upload(), upload())

    assert sorted(r.status_code for r in responses) == [200, 409]
    conflict = next(r for r in responses if r.status_code == 409)
    assert "detail" in conflict.json()

    profile = await async_api.get("/api/profile", headers=auth_headers)
    assert profile.json()["version"] == 2
    assert profile.json()["skills"] == ["Python", "SQL"]


@pytest.mark.integration
async def test_get_or_create_loads_row_inserted_by_another_session(monkeypatch):
    await init_db()
    user_id = f"user-{uuid.uuid4().hex[:12]}"

    async with async_session_maker() as session:
        await ProfileRepository(session).get_or_create(user_id)

    async with async_session_maker() as session:
        repo = ProfileRepository(session)
        real_get = repo.get
        calls = []

        async def get_missing_first(uid):
            calls.append(uid)
            if len(calls) == 1:
                return None
            return await real_get(uid)

        monkeypatch.setattr(repo, "get", get_missing_first)

        profile = await repo.get_or_create(user_id)

        assert len(calls) == 2
        assert profile.user_id == user_id
        assert profile.version == 1
        count = await session.scalar(select(func.count()).select_from(Profile).where(Profile.user_id == user_id))
        assert count == 1
