import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from recipe_api.core.config import Settings
from recipe_api.core.database import Database
from recipe_api.main import create_app
from recipe_api.models.recipe import Recipe

TEST_SECRET = "test-secret"


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        JWT_SECRET=TEST_SECRET,
        ENVIRONMENT="test",
        PROTECTED_PATHS="/favourites",
        CORS_ORIGINS="http://testserver",
    )


@pytest.fixture
def database(settings):
    # One shared in-memory connection so every session sees the same tables
    return Database(
        settings.DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def app(settings, database):
    return create_app(settings, database)


@pytest.fixture
def client(app):
    # Context manager runs the lifespan, which creates the tables
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(client, database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_recipe(db):
    base_time = datetime(2024, 1, 1, tzinfo=timezone.utc)
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "id": str(uuid.uuid4()),
            "title": f"Recipe {counter['n']}",
            "description": "A tasty dish",
            "category": "Main",
            "tags": ["dinner"],
            "ingredients": {"salt": "1 tsp"},
            "instructions": ["Mix", "Cook"],
            "prep_time": 10,
            "cook_time": 20,
            "servings": 2,
            # Strictly increasing so creation order is unambiguous
            "created_at": base_time + timedelta(minutes=counter["n"]),
        }
        fields.update(overrides)
        recipe = Recipe(**fields)
        db.add(recipe)
        db.commit()
        return recipe.id

    return _make


@pytest.fixture
def signup_and_login(client):
    def _login(email="cook@example.com", password="s3cret-pass"):
        client.post("/api/authorisation/signup", json={"email": email, "password": password})
        response = client.post("/api/authorisation/login", json={"email": email, "password": password})
        assert response.status_code == 200
        return response

    return _login


@pytest.fixture
def auth_headers(signup_and_login):
    response = signup_and_login()
    return {"Authorization": f"Bearer {response.cookies['token']}"}


def fetch_recipe(client, recipe_id):
    response = client.get(f"/api/recipes/{recipe_id}")
    assert response.status_code == 200
    return response.json()["recipe"]
