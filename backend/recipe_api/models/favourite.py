from sqlalchemy import Column, String, DateTime, UniqueConstraint
from recipe_api.core.database import Base
from recipe_api.models.recipe import utcnow
from recipe_api.models.user import generate_id


class Favourite(Base):
    """A user's bookmark of a recipe, keyed by the email in the session token"""
    __tablename__ = "favourites"
    # One record per (user, recipe); a duplicate insert raises IntegrityError
    __table_args__ = (UniqueConstraint("user_email", "recipe_id", name="uq_favourite_user_recipe"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    user_email = Column(String, nullable=False, index=True)
    recipe_id = Column(String(36), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
