from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from recipe_api.core.database import get_db
from recipe_api.core.errors import NotFoundError, ValidationError
from recipe_api.services.recipe_service import recipe_service
from recipe_api.api.dependencies import PaginationParams
from recipe_api.api.routes.recipes import serialize_recipe

router = APIRouter(tags=["filters"])


@router.get("/categories")
def list_categories(db: Session = Depends(get_db)):
    categories = recipe_service.distinct_categories(db)
    return {"success": True, "categories": categories, "total": len(categories)}


@router.get("/Tags")
def list_tags(
    tags: Optional[str] = None,
    match_all: bool = Query(False, alias="matchAll"),
    pagination: PaginationParams = Depends(),
    db: Session = Depends(get_db),
):
    """
    Without `tags`: every tag in use, sorted.
    With `tags=a,b`: recipes carrying any of them (all of them with matchAll=true).
    """
    wanted = [tag for tag in (tags or "").split(",") if tag.strip()]
    if not wanted:
        return {"success": True, "tags": recipe_service.distinct_tags(db)}

    recipes, total = recipe_service.filter_by_tags(
        db, wanted, match_all=match_all, page=pagination.page, limit=pagination.limit
    )
    return {
        "success": True,
        "recipes": [serialize_recipe(r) for r in recipes],
        "total": total,
        "page": pagination.page,
        "limit": pagination.limit,
    }


@router.get("/Ingredients")
def list_ingredients(db: Session = Depends(get_db)):
    ingredients = recipe_service.distinct_ingredients(db)
    if not ingredients:
        raise NotFoundError("No ingredients found")
    return {"success": True, "ingredients": ingredients}


@router.get("/search")
def search(
    search_term: Optional[str] = Query(None, alias="searchTerm"),
    q: Optional[str] = None,
    db: Session = Depends(get_db),
):
    term = (search_term or q or "").strip()
    if not term:
        raise ValidationError("Search term is required")

    results = recipe_service.search(db, term)
    return {"success": True, "results": [serialize_recipe(r) for r in results], "total": len(results)}
