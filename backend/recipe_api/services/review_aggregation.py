"""
Keeps a recipe's averageRating and reviewCount in step with its reviews.

recompute() runs after every review create, update and delete, inside the
same transaction as the review write and before the handler responds.
"""

import logging
from sqlalchemy import exists, func, select, update
from sqlalchemy.orm import Session
from recipe_api.models.recipe import Recipe
from recipe_api.models.review import Review

logger = logging.getLogger(__name__)


def recompute(db: Session, recipe_id: str) -> bool:
    """
    Recalculate the mean rating and review count of a recipe.

    The aggregate read and the recipe write are a single UPDATE with scalar
    subqueries, so there is no gap between reading the reviews and writing
    the recipe in which another request's write could be lost.

    A recipe with no reviews is left untouched: deleting its last review keeps
    the previous averageRating/reviewCount. Returns True when a recipe row was
    updated.
    """
    # Sessions do not autoflush; the pending review write must be visible to the subqueries
    db.flush()

    for_recipe = Review.recipe_id == recipe_id
    stmt = (
        update(Recipe)
        .where(Recipe.id == recipe_id, exists().where(for_recipe))
        .values(
            average_rating=select(func.avg(Review.rating)).where(for_recipe).scalar_subquery(),
            review_count=select(func.count(Review.id)).where(for_recipe).scalar_subquery(),
        )
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)

    if result.rowcount:
        logger.info(f"Recomputed rating aggregates for recipe {recipe_id}")
        return True

    logger.info(f"No reviews left for recipe {recipe_id}; aggregates unchanged")
    return False
