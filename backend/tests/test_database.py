import random
import threading
from unittest.mock import patch

import pytest
from sqlalchemy import text
from sqlalchemy.pool import StaticPool

import recipe_api.core.database as database_module
from recipe_api.core.database import Database
from recipe_api.models.review import Review
from seed_reviews import seed_reviews
from conftest import fetch_recipe


def make_database():
    return Database("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)


def test_engine_is_created_lazily():
    database = make_database()
    assert not database.is_initialized

    session = database.session()
    try:
        assert session.execute(text("SELECT 1")).scalar() == 1
    finally:
        session.close()

    assert database.is_initialized
    assert database.engine is database.engine


def test_concurrent_first_use_creates_one_engine():
    database = make_database()
    real_create_engine = database_module.create_engine
    barrier = threading.Barrier(8)
    engines = []

    with patch.object(database_module, "create_engine", wraps=real_create_engine) as create_engine:
        def first_use():
            barrier.wait()
            engines.append(database.engine)

        threads = [threading.Thread(target=first_use) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    assert create_engine.call_count == 1
    assert len({id(engine) for engine in engines}) == 1


def test_dispose_allows_reinitialisation():
    database = make_database()
    database.create_all()
    database.dispose()
    assert not database.is_initialized
    database.engine
    assert database.is_initialized


def test_app_uses_injected_database(client, database):
    assert client.app.state.database is database
    assert database.is_initialized


def test_seed_reviews(client, db, database, make_recipe):
    fresh = make_recipe()
    reviewed = make_recipe()
    client.post(f"/api/reviews/{reviewed}", json={"username": "a", "rating": 5, "review": "x"})

    seeded = seed_reviews(database, per_recipe=3, rng=random.Random(7))
    assert seeded == 1

    db.expire_all()
    assert db.query(Review).filter(Review.recipe_id == fresh).count() == 3
    assert db.query(Review).filter(Review.recipe_id == reviewed).count() == 1

    ratings = [r.rating for r in db.query(Review).filter(Review.recipe_id == fresh)]
    recipe = fetch_recipe(client, fresh)
    assert recipe["reviewCount"] == 3
    assert recipe["averageRating"] == pytest.approx(sum(ratings) / 3)
