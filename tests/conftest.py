import httpx
import pytest
from httpx import ASGITransport

PROXY = "https://proxy.test/?url="


@pytest.fixture
def mock_env(monkeypatch):
    monkeypatch.setenv("PROXY_URLS", f'["{PROXY}"]')
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")


@pytest.fixture
async def client(mock_env):
    from app.main import app, lifespan

    async with lifespan(app):
        async with httpx.AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as c:
            yield c
