import logging
from datetime import datetime
from typing import Any, List, Optional, Union
from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from recipe_api.core.database import get_db
from recipe_api.core.errors import ConflictError, InternalError, NotFoundError, ValidationError
from recipe_api.models.recipe import utcnow
from recipe_api.models.shopping_list import ShoppingList

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shoppingList", tags=["shopping list"])

LIST_NOT_FOUND_MESSAGE = "Shopping list not found for this user."


class ShoppingItem(BaseModel):
    name: str = Field(..., min_length=1)
    quantity: Union[int, float, str] = 1
    purchased: bool = False

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        # Items are matched by name, so "  Eggs" and "eggs" are the same item
        name = value.strip().lower()
        if not name:
            raise ValueError("name must not be blank")
        return name


class ShoppingListCreate(BaseModel):
    user_id: str = Field(..., alias="userId", min_length=1)
    items: List[ShoppingItem] = Field(..., min_length=1)


class ShoppingListUpdate(ShoppingListCreate):
    append: bool = False
    mark_purchased: bool = Field(False, alias="markPurchased")


class ShoppingListResponse(BaseModel):
    id: str
    user_id: str
    items: List[Any]
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


def get_list_or_404(db: Session, user_id: str) -> ShoppingList:
    shopping_list = db.query(ShoppingList).filter(ShoppingList.user_id == user_id).first()
    if not shopping_list:
        raise NotFoundError(LIST_NOT_FOUND_MESSAGE)
    return shopping_list


def merge_items(existing: List[dict], new_items: List[dict]) -> List[dict]:
    """Append new items after the existing ones, skipping names already on the list"""
    merged = list(existing)
    seen = {item["name"] for item in existing}
    for item in new_items:
        if item["name"] not in seen:
            merged.append(item)
            seen.add(item["name"])
    return merged


def mark_purchased(existing: List[dict], updates: List[ShoppingItem]) -> tuple[List[dict], int]:
    """Set the purchased flag of each named item; returns the new list and how many items matched"""
    flags = {item.name: item.purchased for item in updates}
    matched = 0
    updated = []
    for item in existing:
        if item["name"] in flags:
            item = {**item, "purchased": flags[item["name"]]}
            matched += 1
        updated.append(item)
    return updated, matched


def save(db: Session, shopping_list: ShoppingList, items: List[dict], action: str) -> None:
    # Assign a fresh list so the JSON column change is detected
    shopping_list.items = items
    shopping_list.updated_at = utcnow()
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to {action}: {e}")
        raise InternalError(f"Failed to {action}. Please try again later.", details=str(e))


@router.get("")
def get_shopping_list(
    user_id: Optional[str] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
):
    if not user_id:
        raise ValidationError("User ID is required to fetch the shopping list.")
    shopping_list = db.query(ShoppingList).filter(ShoppingList.user_id == user_id).first()
    if not shopping_list:
        raise NotFoundError("No shopping list found for this user.")
    data = ShoppingListResponse.model_validate(shopping_list).model_dump(by_alias=True, mode="json")
    return {"success": True, "message": "Shopping list retrieved successfully", "data": data}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_shopping_list(payload: ShoppingListCreate, db: Session = Depends(get_db)):
    """Create the user's one shopping list"""
    if db.query(ShoppingList.id).filter(ShoppingList.user_id == payload.user_id).first():
        raise ConflictError("Shopping list for this user already exists.")

    shopping_list = ShoppingList(
        user_id=payload.user_id,
        items=merge_items([], [item.model_dump() for item in payload.items]),
    )
    try:
        db.add(shopping_list)
        db.commit()
        db.refresh(shopping_list)
    except IntegrityError:
        # Concurrent create for the same user hit the unique constraint
        db.rollback()
        raise ConflictError("Shopping list for this user already exists.")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error saving shopping list: {e}")
        raise InternalError("Failed to save shopping list. Please try again later.", details=str(e))

    return {"success": True, "message": "Shopping list saved successfully", "listId": shopping_list.id}


@router.put("")
def update_shopping_list(payload: ShoppingListUpdate, db: Session = Depends(get_db)):
    """
    Update a shopping list in one of three modes:
    markPurchased flips purchased flags by item name, append merges new items
    by name, and otherwise the item list is replaced.
    """
    shopping_list = get_list_or_404(db, payload.user_id)
    new_items = [item.model_dump() for item in payload.items]

    if payload.mark_purchased:
        items, matched = mark_purchased(shopping_list.items or [], payload.items)
        if matched == 0:
            raise NotFoundError("No items were updated. Please check the item names.")
        save(db, shopping_list, items, "mark items as purchased")
        return {"success": True, "message": "Items marked as purchased successfully."}

    if payload.append:
        save(db, shopping_list, merge_items(shopping_list.items or [], new_items), "add new items")
        return {"success": True, "message": "New items added to shopping list successfully."}

    # Replacement still collapses duplicate names within the request
    save(db, shopping_list, merge_items([], new_items), "update shopping list")
    return {"success": True, "message": "Shopping list updated successfully."}


@router.delete("")
def remove_items(payload: ShoppingListCreate = Body(...), db: Session = Depends(get_db)):
    """Remove items by name"""
    shopping_list = get_list_or_404(db, payload.user_id)
    names = {item.name for item in payload.items}

    existing = shopping_list.items or []
    remaining = [item for item in existing if item["name"] not in names]
    if len(remaining) == len(existing):
        raise NotFoundError("No matching items were found to remove.")

    save(db, shopping_list, remaining, "remove items from shopping list")
    return {"success": True, "message": "Specified items removed from shopping list successfully."}
