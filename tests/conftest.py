"""Shared fixtures: in-memory Mongo, stubbed media host and vision model."""
import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from dormfix.config import Settings
from dormfix.dependencies import get_classifier, get_db, get_media_gateway
from dormfix.main import create_app
from tests.fakes import FakeMediaGateway, StubClassifier


@pytest.fixture
def settings() -> Settings:
    return Settings(
        mongodb_uri="mongodb://localhost:27017",
        database_name="dormfix_test",
        jwt_secret="test-secret",
        cloudinary_cloud_name="demo",
        cloudinary_api_key="123456",
        cloudinary_api_secret="cloud-secret",
    )


@pytest.fixture
def db():
    return AsyncMongoMockClient()["dormfix_test"]


@pytest.fixture
def media() -> FakeMediaGateway:
    return FakeMediaGateway()


@pytest.fixture
def classifier() -> StubClassifier:
    return StubClassifier()


@pytest.fixture
def app(settings, db, media, classifier):
    test_app = create_app(settings)
    test_app.dependency_overrides[get_db] = lambda: db
    test_app.dependency_overrides[get_media_gateway] = lambda: media
    test_app.dependency_overrides[get_classifier] = lambda: classifier
    return test_app


@pytest.fixture
def client(app):
    # No context manager: the lifespan (real Mongo, HTTP clients) stays off
    return TestClient(app)
