"""
Populate reviews for recipes that have none.

Usage: python seed_reviews.py [--per-recipe 3]
Reads DATABASE_URL from the environment / .env like the API does.
"""

import argparse
import logging
import random
from datetime import timedelta

from recipe_api.core.config import settings
from recipe_api.core.database import Database
from recipe_api.models.recipe import Recipe, utcnow
from recipe_api.models.review import Review
from recipe_api.services.review_aggregation import recompute

logger = logging.getLogger("seed_reviews")

ADJECTIVES = ["hungry", "happy", "spicy", "sweet", "crispy", "busy", "sunny", "salty"]
NOUNS = ["cook", "baker", "foodie", "chef", "taster", "gourmet", "nibbler"]
SENTENCES = [
    "Turned out great on the first try.",
    "A bit too salty for my taste.",
    "The whole family loved it.",
    "Easy to follow and quick to make.",
    "I would add more garlic next time.",
    "Will definitely make this again.",
    "Took longer than the stated cook time.",
]


def fake_review(recipe_id: str, rng: random.Random) -> Review:
    return Review(
        recipe_id=recipe_id,
        username=f"{rng.choice(ADJECTIVES)}_{rng.choice(NOUNS)}{rng.randint(1, 999)}",
        rating=rng.randint(1, 5),
        review=" ".join(rng.sample(SENTENCES, rng.randint(1, 3))),
        date=utcnow() - timedelta(days=rng.randint(0, 89), minutes=rng.randint(0, 1439)),
    )


def seed_reviews(database: Database, per_recipe: int = 3, rng: random.Random | None = None) -> int:
    """Add per_recipe reviews to every recipe without reviews; returns how many recipes were seeded"""
    rng = rng or random.Random()
    db = database.session()
    seeded = 0
    try:
        recipes = db.query(Recipe).all()
        if not recipes:
            logger.info("No recipes found in the database.")
            return 0

        for recipe in recipes:
            if db.query(Review.id).filter(Review.recipe_id == recipe.id).first():
                logger.info(f"Reviews already exist for recipe: {recipe.id}")
                continue

            db.add_all([fake_review(recipe.id, rng) for _ in range(per_recipe)])
            recompute(db, recipe.id)
            db.commit()
            seeded += 1
            logger.info(f"Inserted {per_recipe} reviews for recipe: {recipe.id}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    return seeded


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--per-recipe", type=int, default=3)
    args = parser.parse_args()

    logging.basicConfig(level=settings.LOG_LEVEL)
    database = Database(settings.DATABASE_URL)
    try:
        database.create_all()
        count = seed_reviews(database, per_recipe=args.per_recipe)
        logger.info(f"Reviews created for {count} recipes")
    finally:
        database.dispose()


if __name__ == "__main__":
    main()
