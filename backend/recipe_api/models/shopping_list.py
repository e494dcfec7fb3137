from sqlalchemy import Column, String, DateTime, JSON
from recipe_api.core.database import Base
from recipe_api.models.recipe import utcnow
from recipe_api.models.user import generate_id


class ShoppingList(Base):
    """
    One shopping list per user.

    items is an ordered JSON list of {"name", "quantity", "purchased"} with
    names already normalized (trimmed, lower-case). Always assign a new list
    to items; in-place mutation is not tracked by the ORM.
    """
    __tablename__ = "shopping_lists"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String, unique=True, index=True, nullable=False)
    items = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
