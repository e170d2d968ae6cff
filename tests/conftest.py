import dataclasses

import pytest
from fastapi.testclient import TestClient

from cms.app import create_app
from cms.config import Settings
from cms.docstore import MemoryDocumentStore
from cms.errors import UploadError
from cms.image_host import ImageFile, ImageHostClient


BASE_SETTINGS = Settings(
    database_url="memory://",
    database_name="cms_test",
    image_host="imghippo",
    image_host_api_key="test-key",
    max_upload_bytes=1024,
    jwt_secret="test-secret",
    admin_username="admin",
    admin_password="secret",
    admin_password_hash=None,
    cors_origins=("*",),
    host="127.0.0.1",
    port=4000,
)


def make_settings(**overrides) -> Settings:
    return dataclasses.replace(BASE_SETTINGS, **overrides)


class FakeImageHost(ImageHostClient):
    """Returns predictable URLs; names starting with "bad" fail like a provider error."""

    provider = "fake"

    def __init__(self, max_bytes: int = 1024) -> None:
        super().__init__(api_key="fake", max_bytes=max_bytes)
        self.uploaded = []

    def upload(self, file: ImageFile, title: str = "upload") -> str:
        name = file.name or title
        if len(file.content) > self.max_bytes:
            raise UploadError("too large")
        if name.startswith("bad"):
            raise UploadError("Invalid API key", status=401)
        self.uploaded.append(name)
        return f"https://img.example/{name}"


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.fixture
def image_host():
    return FakeImageHost()


@pytest.fixture
def app(store, image_host):
    return create_app(BASE_SETTINGS, store=store, image_host=image_host)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers(app):
    token = app.state.auth_gate.issue("admin").token
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def client_for_store(image_host):
    def build(db):
        return TestClient(create_app(BASE_SETTINGS, store=db, image_host=image_host))

    return build
