import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from recipe_api.core.database import get_db
from recipe_api.core.errors import InternalError, NotFoundError, ValidationError
from recipe_api.models.recipe import Recipe
from recipe_api.services.recipe_service import recipe_service
from recipe_api.api.dependencies import PaginationParams

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recipes", tags=["recipes"])

RECIPE_NOT_FOUND_MESSAGE = "Recipe not found"

# Canonical dashed form only; ids are stored as str(uuid4())
UUID_RE = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE)


class RecipeResponse(BaseModel):
    id: str
    title: str
    description: Optional[str]
    category: Optional[str]
    tags: List[str]
    ingredients: Dict[str, Any]
    instructions: List[Any]
    prep_time: Optional[int]
    cook_time: Optional[int]
    servings: Optional[int]
    images: List[Any]
    average_rating: Optional[float]
    review_count: int
    updated_by: Optional[str]
    created_at: datetime

    # Clients expect camelCase keys (averageRating, reviewCount, ...)
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class RecipeDescriptionUpdate(BaseModel):
    description: Optional[str] = None
    userId: Optional[str] = None


def serialize_recipe(recipe: Recipe) -> dict:
    return RecipeResponse.model_validate(recipe).model_dump(by_alias=True, mode="json")


@router.get("")
def list_recipes(
    pagination: PaginationParams = Depends(),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    order: Optional[str] = Query("desc"),
    category: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """List recipes, newest first unless another allowed sort field is given"""
    recipes, total = recipe_service.list_recipes(
        db,
        page=pagination.page,
        limit=pagination.limit,
        sort_by=sort_by,
        order=order,
        category=category,
    )
    return {
        "success": True,
        "recipes": [serialize_recipe(r) for r in recipes],
        "totalNumberOfRecipes": total,
    }


@router.get("/recent")
def recent_recipes(pagination: PaginationParams = Depends(), db: Session = Depends(get_db)):
    """Recipes by creation date, newest first"""
    recipes = recipe_service.recent(db, page=pagination.page, limit=pagination.limit)
    body = {"success": True, "recipes": [serialize_recipe(r) for r in recipes]}
    if not recipes:
        body["message"] = "No recipes found."
    return body


@router.get("/filter")
def filter_by_steps(steps: Optional[str] = None, db: Session = Depends(get_db)):
    """Recipes with exactly `steps` instructions"""
    try:
        step_count = int(steps)
    except (TypeError, ValueError):
        raise ValidationError("Invalid number of steps")

    recipes = recipe_service.filter_by_steps(db, step_count)
    return {"success": True, "recipes": [serialize_recipe(r) for r in recipes]}


@router.get("/{recipe_id}")
def get_recipe(recipe_id: str, db: Session = Depends(get_db)):
    recipe = recipe_service.get(db, recipe_id)
    if not recipe:
        raise NotFoundError(RECIPE_NOT_FOUND_MESSAGE)
    return {"success": True, "recipe": serialize_recipe(recipe)}


@router.put("/{recipe_id}")
def update_description(
    recipe_id: str,
    payload: RecipeDescriptionUpdate,
    db: Session = Depends(get_db),
):
    """Replace a recipe's description, recording who edited it"""
    if not UUID_RE.fullmatch(recipe_id):
        raise ValidationError("Invalid recipe ID format")

    if not payload.description or not payload.userId:
        raise ValidationError("Missing required fields")

    recipe = recipe_service.get(db, recipe_id)
    if not recipe:
        raise NotFoundError(RECIPE_NOT_FOUND_MESSAGE)

    recipe.description = payload.description
    recipe.updated_by = payload.userId
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating recipe {recipe_id}: {e}")
        raise InternalError("Server error", details=str(e))

    return {"success": True, "message": "Recipe updated successfully"}
