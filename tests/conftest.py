import json

import httpx
import pytest
from fastapi.testclient import TestClient

from reel_recipes.app.core.config import Settings, get_settings
from reel_recipes.app.main import create_app

RealAsyncClient = httpx.AsyncClient

_MAIL_VARS = ("MAIL_HOST", "MAIL_USER", "MAIL_PASSWORD", "FROM_MAIL", "TO_MAIL")


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    monkeypatch.setenv("ENABLE_SERVER_API", "true")
    monkeypatch.setenv("OPENAI_API_KEY", "test-openai-key")
    monkeypatch.setenv("OPENAI_BASE_URL", "https://llm.test/v1")
    monkeypatch.setenv("DATOCMS_API_TOKEN", "test-dato-token")
    monkeypatch.setenv("DATOCMS_BASE_URL", "https://cms.test")
    monkeypatch.setenv("DATOCMS_DEDUPE", "false")
    monkeypatch.setenv("RECIPE_FORMAT", "html")
    for name in _MAIL_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mock_http(monkeypatch):
    """Route every httpx.AsyncClient through ``handler`` and record the requests."""

    def install(handler):
        requests = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        def client_factory(*args, **kwargs):
            kwargs.pop("transport", None)
            return RealAsyncClient(*args, transport=httpx.MockTransport(recording_handler), **kwargs)

        monkeypatch.setattr(httpx, "AsyncClient", client_factory)
        return requests

    return install


def instagram_page(payload) -> str:
    body = payload if isinstance(payload, str) else json.dumps(payload)
    return f"""
    <html>
      <head>
        <title>Instagram</title>
        <script type="application/ld+json">{body}</script>
      </head>
      <body><div id="root"></div></body>
    </html>
    """


def post_json(caption="2 cups flour, 1 egg. Mix and bake at 350F for 20 minutes.", videos=None):
    if videos is None:
        videos = [
            {
                "width": "720",
                "height": "1280",
                "caption": caption,
                "contentUrl": "https://cdn.test/video.mp4",
                "thumbnailUrl": "https://cdn.test/thumb.jpg",
            }
        ]
    return {
        "@context": "https://schema.org",
        "@type": "SocialMediaPosting",
        "author": {"identifier": {"value": "chef.test"}},
        "video": videos,
    }


def llm_completion(recipe: dict) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": json.dumps({"recipe": recipe})}}]}


@pytest.fixture
def app():
    return create_app(get_settings())


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def disabled_client(monkeypatch):
    monkeypatch.setenv("ENABLE_SERVER_API", "false")
    return TestClient(create_app(Settings(_env_file=None)))


@pytest.fixture(name="instagram_page")
def instagram_page_fixture():
    return instagram_page


@pytest.fixture(name="post_json")
def post_json_fixture():
    return post_json


@pytest.fixture(name="llm_completion")
def llm_completion_fixture():
    return llm_completion
