from unittest.mock import MagicMock

import pytest
import requests

import app as functions_app
import web_app


def fake_response(status=200, payload=None, text=""):
    r = MagicMock()
    r.status_code = status
    r.ok = 200 <= status < 300
    r.text = text
    if isinstance(payload, Exception):
        r.json.side_effect = payload
    else:
        r.json.return_value = payload
    return r


@pytest.fixture
def neynar():
    """Fake requests session standing in for the Neynar API."""
    session = MagicMock(spec=requests.Session)
    session.get.return_value = fake_response(200, {"result": {"users": []}})
    return session


@pytest.fixture
def client(neynar):
    a = functions_app.app
    saved = dict(a.config)
    a.config.update(
        TESTING=True,
        NEYNAR_API_KEY="test-key",
        NEYNAR_SESSION=neynar,
        FUNCTIONS_BASE_URL="https://fn.example",
        FRAME_IMAGE_URL="https://img.example/og.png",
    )
    with a.test_client() as c:
        yield c
    a.config.clear()
    a.config.update(saved)


@pytest.fixture
def proxy():
    session = MagicMock()
    session.post.return_value = fake_response(404, {"error": "User not found"})
    return session


@pytest.fixture
def web(proxy):
    a = web_app.app
    saved = dict(a.config)
    a.config.update(TESTING=True, PROFILE_PROXY_URL=None, PROFILE_PROXY_SESSION=proxy)
    with a.test_client() as c:
        yield c
    a.config.clear()
    a.config.update(saved)
