import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from recipe_api.core.database import get_db
from recipe_api.core.errors import InternalError, NotFoundError
from recipe_api.models.favourite import Favourite
from recipe_api.models.recipe import Recipe
from recipe_api.api.dependencies import get_current_claims

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/favourites", tags=["favourites"])


class FavouriteRequest(BaseModel):
    recipe_id: str = Field(..., alias="recipeId", min_length=1)


class FavouriteResponse(BaseModel):
    id: str
    user_email: str
    recipe_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


def serialize_favourite(favourite: Favourite) -> dict:
    return FavouriteResponse.model_validate(favourite).model_dump(by_alias=True, mode="json")


def favourites_for(db: Session, user_email: str):
    return (
        db.query(Favourite)
        .filter(Favourite.user_email == user_email)
        .order_by(Favourite.created_at.desc())
        .all()
    )


@router.get("")
def list_favourites(
    action: Optional[str] = None,
    claims: dict = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    """The caller's favourites, newest first, or just their number with action=count"""
    user_email = claims.get("email")
    if action == "count":
        count = db.query(Favourite).filter(Favourite.user_email == user_email).count()
        return {"success": True, "count": count}

    return {"success": True, "favourites": [serialize_favourite(f) for f in favourites_for(db, user_email)]}


@router.post("")
def add_favourite(
    payload: FavouriteRequest,
    claims: dict = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    """Bookmark a recipe; bookmarking it again is not an error"""
    if not db.query(Recipe.id).filter(Recipe.id == payload.recipe_id).first():
        raise NotFoundError("Recipe not found")

    try:
        db.add(Favourite(user_email=claims.get("email"), recipe_id=payload.recipe_id))
        db.commit()
    except IntegrityError:
        # The (user_email, recipe_id) unique constraint rejected a duplicate
        db.rollback()
        return {"success": True, "message": "Recipe already in favourites"}
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error adding to favourites: {e}")
        raise InternalError("Error adding to favourites", details=str(e))

    return {"success": True, "message": "Recipe added to favourites"}


@router.delete("")
def remove_favourite(
    payload: FavouriteRequest = Body(...),
    claims: dict = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    try:
        deleted = (
            db.query(Favourite)
            .filter(
                Favourite.user_email == claims.get("email"),
                Favourite.recipe_id == payload.recipe_id,
            )
            .delete(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error removing from favourites: {e}")
        raise InternalError("Error removing from favourites", details=str(e))

    if deleted == 0:
        raise NotFoundError("Favourite not found")

    return {"success": True, "message": "Recipe removed from favourites"}
