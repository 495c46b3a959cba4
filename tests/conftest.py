"""
Pytest configuration and fixtures
"""
import os
import tempfile

import pytest

# Configure the app before anything under app/ is imported
_db_dir = tempfile.mkdtemp(prefix="promptforge-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["JWT_SECRET"] = "test-secret"
for key in ("OPENAI_API_KEY", "CLAUDE_API_KEY", "GEMINI_API_KEY", "DEEPSEEK_API_KEY"):
    os.environ[key] = "test-key"

from fastapi.testclient import TestClient  # noqa: E402

from app.core.db import Base, SessionLocal, engine, init_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services import generation_service  # noqa: E402
from app.services.rate_limit import rate_limiter  # noqa: E402
from app.services.security import create_access_token, get_password_hash  # noqa: E402
from app.utils.llm_client import Completion, ProviderError  # noqa: E402
from app.utils.seed_db import seed_pricing  # noqa: E402

PASSWORD = "correct-horse-battery"


@pytest.fixture
def db():
    """Fresh schema and pricing rows for every test."""
    Base.metadata.drop_all(bind=engine)
    init_db()
    session = SessionLocal()
    seed_pricing(session)
    rate_limiter.reset()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    def _make_user(email="alice@example.com", role="user", is_active=True, name="Alice"):
        user = User(
            email=email,
            name=name,
            hashed_password=get_password_hash(PASSWORD),
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", role="admin", name="Admin")


def headers_for(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def user_headers(user):
    return headers_for(user)


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


def fake_generator(provider, text=None, input_tokens=1000, output_tokens=500, fail=False):
    async def _generate(system_prompt, user_message, model=None):
        if fail:
            raise ProviderError(provider, "upstream exploded")
        return Completion(
            provider=provider,
            model=model,
            text=text or f"{provider} prompt",
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )

    return _generate


@pytest.fixture
def fake_providers(monkeypatch):
    """Replace all three generators; pass provider names that should fail."""

    def _install(*failing):
        for provider in ("gemini", "claude", "deepseek"):
            monkeypatch.setitem(
                generation_service.GENERATORS,
                provider,
                fake_generator(provider, fail=provider in failing),
            )

    _install()
    return _install


@pytest.fixture
def auth_headers():
    return headers_for
