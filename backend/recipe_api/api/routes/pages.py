import json
from typing import Optional
from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.orm import Session
from recipe_api.core.database import get_db
from recipe_api.core.errors import AuthenticationError
from recipe_api.core.middleware import USER_HEADER
from recipe_api.models.recipe import Recipe
from recipe_api.api.routes.favourites import favourites_for

# Page data for the server-rendered views; mounted without the /api prefix
router = APIRouter(tags=["pages"])


def forwarded_user(x_user: Optional[str] = Header(None, alias=USER_HEADER)) -> dict:
    """Identity forwarded by the session middleware"""
    if not x_user:
        raise AuthenticationError()
    try:
        return json.loads(x_user)
    except ValueError:
        raise AuthenticationError()


@router.get("/favourites")
def favourites_page(user: dict = Depends(forwarded_user), db: Session = Depends(get_db)):
    """The signed-in user's favourite recipes with their titles and ratings"""
    favourites = favourites_for(db, user.get("email"))
    recipes = {
        recipe.id: recipe
        for recipe in db.query(Recipe).filter(Recipe.id.in_([f.recipe_id for f in favourites])).all()
    }

    entries = []
    for favourite in favourites:
        recipe = recipes.get(favourite.recipe_id)
        entries.append({
            "recipeId": favourite.recipe_id,
            "title": recipe.title if recipe else None,
            "averageRating": recipe.average_rating if recipe else None,
            "reviewCount": recipe.review_count if recipe else 0,
            "addedAt": favourite.created_at.isoformat(),
        })

    return {
        "success": True,
        "user": {"email": user.get("email"), "userId": user.get("userId")},
        "favourites": entries,
    }


@router.get("/login")
async def login_page(redirect_to: str = Query("/", alias="redirectTo")):
    return {"success": True, "redirectTo": redirect_to}
