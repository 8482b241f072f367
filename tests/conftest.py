"""
Pytest configuration and fixtures.

Route tests run the real FastAPI app with its services wired to in-memory
doubles through app.state; the lifespan (Firebase, S3) never starts.
"""
import pytest
from fastapi.testclient import TestClient

from fakes import FakeIdentityService, FakeImageStore, InMemoryFirestore
from main import app
from services.posts import PostService


@pytest.fixture
def db():
    return InMemoryFirestore()


@pytest.fixture
def images():
    return FakeImageStore()


@pytest.fixture
def identity(db):
    return FakeIdentityService(db)


@pytest.fixture
def post_service(db, images):
    return PostService(db, images)


@pytest.fixture
def client(db, images, identity, post_service):
    app.state.firestore = db
    app.state.s3_service = images
    app.state.identity_service = identity
    app.state.post_service = post_service
    return TestClient(app)


@pytest.fixture
def signup(client):
    """Register a user over HTTP; returns (user, auth headers)"""

    def _signup(name: str, password: str = "Sup3rSecret!"):
        email = f"{name.lower()}@example.com"
        response = client.post("/users/signup", json={"name": name, "email": email, "password": password})
        assert response.status_code == 201, response.text
        data = response.json()
        return data["user"], {"Authorization": f"Bearer {data['token']}"}

    return _signup
