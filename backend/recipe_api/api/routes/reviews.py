import logging
import uuid
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from recipe_api.core.database import get_db
from recipe_api.core.errors import InternalError, NotFoundError, ValidationError
from recipe_api.models.recipe import Recipe, utcnow
from recipe_api.models.review import Review
from recipe_api.services.review_aggregation import recompute

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["reviews"])

REVIEW_NOT_FOUND_MESSAGE = "Review not found"

# Sortable fields for the all-reviews listing; others fall back to rating
REVIEW_SORT_FIELDS = {"rating": Review.rating, "date": Review.date}


class ReviewCreate(BaseModel):
    username: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    review: str


class ReviewUpdate(BaseModel):
    review_id: str = Field(..., alias="reviewId", min_length=1)
    rating: Optional[int] = Field(None, ge=1, le=5)
    review: Optional[str] = None


class BulkReview(ReviewCreate):
    recipe_id: str = Field(..., alias="recipeId", min_length=1)


class BulkReviewCreate(BaseModel):
    reviews: List[BulkReview]


class ReviewResponse(BaseModel):
    id: str
    recipe_id: str
    username: str
    rating: int
    review: str
    date: datetime
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


def serialize_review(review: Review) -> dict:
    return ReviewResponse.model_validate(review).model_dump(by_alias=True, mode="json")


def parse_review_id(review_id: str) -> str:
    try:
        return str(uuid.UUID(review_id))
    except ValueError:
        raise ValidationError("Invalid review ID format")


def commit_or_fail(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to {action}: {e}")
        raise InternalError(f"Failed to {action}", details=str(e))


# REST api
# -----------------------------
# Every write recomputes the recipe's aggregates in the same transaction

@router.get("")
def list_reviews(
    sort_field: str = Query("rating", alias="sortField"),
    sort_order: str = Query("desc", alias="sortOrder"),
    db: Session = Depends(get_db),
):
    """All reviews, sorted by rating or date with date as the tiebreak"""
    column = REVIEW_SORT_FIELDS.get(sort_field, Review.rating)
    primary = column.asc() if sort_order == "asc" else column.desc()
    reviews = db.query(Review).order_by(primary, Review.date.desc()).all()
    return {"success": True, "data": [serialize_review(r) for r in reviews]}


@router.post("")
def bulk_create_reviews(payload: BulkReviewCreate, db: Session = Depends(get_db)):
    """Insert many reviews at once, recomputing each affected recipe once"""
    if not payload.reviews:
        raise ValidationError("Invalid reviews data")

    recipe_ids = {item.recipe_id for item in payload.reviews}
    known = {rid for (rid,) in db.query(Recipe.id).filter(Recipe.id.in_(recipe_ids)).all()}
    missing = recipe_ids - known
    if missing:
        raise NotFoundError(f"Recipe not found: {', '.join(sorted(missing))}")

    for item in payload.reviews:
        db.add(Review(
            recipe_id=item.recipe_id,
            username=item.username,
            rating=item.rating,
            review=item.review,
        ))
    for recipe_id in recipe_ids:
        recompute(db, recipe_id)
    commit_or_fail(db, "insert reviews")

    return {"success": True, "insertedCount": len(payload.reviews)}


@router.get("/{recipe_id}")
def get_recipe_reviews(recipe_id: str, db: Session = Depends(get_db)):
    """Reviews of one recipe, newest first"""
    reviews = (
        db.query(Review)
        .filter(Review.recipe_id == recipe_id)
        .order_by(Review.date.desc())
        .all()
    )
    return {"success": True, "data": [serialize_review(r) for r in reviews]}


@router.post("/{recipe_id}", status_code=status.HTTP_201_CREATED)
def add_review(recipe_id: str, payload: ReviewCreate, db: Session = Depends(get_db)):
    """Add a review and refresh the recipe's averageRating/reviewCount"""
    if not db.query(Recipe.id).filter(Recipe.id == recipe_id).first():
        raise NotFoundError("Recipe not found")

    review = Review(
        recipe_id=recipe_id,
        username=payload.username,
        rating=payload.rating,
        review=payload.review,
    )
    db.add(review)
    recompute(db, recipe_id)
    commit_or_fail(db, "add review")

    return {"success": True, "message": "Review added and recipe updated", "reviewId": review.id}


@router.put("/{recipe_id}")
def update_review(recipe_id: str, payload: ReviewUpdate, db: Session = Depends(get_db)):
    """Edit a review's rating and/or text"""
    review_id = parse_review_id(payload.review_id)
    if payload.rating is None and payload.review is None:
        raise ValidationError("Nothing to update: provide rating or review")

    review = (
        db.query(Review)
        .filter(Review.id == review_id, Review.recipe_id == recipe_id)
        .first()
    )
    if not review:
        raise NotFoundError(REVIEW_NOT_FOUND_MESSAGE)

    if payload.rating is not None:
        review.rating = payload.rating
    if payload.review is not None:
        review.review = payload.review
    review.updated_at = utcnow()
    recompute(db, recipe_id)
    commit_or_fail(db, "update review")

    return {"success": True, "message": "Review updated and recipe updated"}


@router.delete("/{recipe_id}")
def delete_review(
    recipe_id: str,
    review_id: str = Query(..., alias="reviewId"),
    db: Session = Depends(get_db),
):
    """Delete a review; aggregates are left as they were if it was the last one"""
    review_id = parse_review_id(review_id)
    review = (
        db.query(Review)
        .filter(Review.id == review_id, Review.recipe_id == recipe_id)
        .first()
    )
    if not review:
        raise NotFoundError(REVIEW_NOT_FOUND_MESSAGE)

    db.delete(review)
    recompute(db, recipe_id)
    commit_or_fail(db, "delete review")

    return {"success": True, "message": "Review deleted and recipe updated"}
