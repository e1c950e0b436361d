import json
import os
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("ANTHROPIC_API_KEY", "test-key")

from tests.helpers import SUMMARY, make_quiz  # noqa: E402


@pytest.fixture()
def upload_dir(tmp_path, monkeypatch):
    from app.core.config import settings
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", path)
    return path


@pytest.fixture()
def store():
    from app.services.session_store import session_store
    yield session_store
    for session_id in list(session_store._sessions):
        session_store.end(session_id)


@pytest.fixture(scope="session")
def app():
    import main as main_module
    return main_module.app


@pytest.fixture()
def client(app, upload_dir, store):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def fake_ai():
    """Replace the Anthropic call with canned replies keyed by prompt content."""
    quiz_reply = json.dumps(make_quiz())

    async def reply(prompt, system_prompt="", max_tokens=2000, temperature=0.7):
        if "Summary:" in prompt:
            return SUMMARY
        if '"questions"' in prompt:
            return quiz_reply
        return "Photosynthesis turns light into chemical energy stored as sugar."

    with patch("app.services.ai_service.generate_content", new=AsyncMock(side_effect=reply)) as mock:
        yield mock
