from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Float, Text, JSON
from sqlalchemy.orm import relationship, validates
from recipe_api.core.database import Base
from recipe_api.models.user import generate_id


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Recipe(Base):
    """
    A dish entry.

    tags, ingredients, instructions and images are stored as JSON documents.
    average_rating and review_count are derived from the recipe's reviews and
    are only written by the review aggregation routine.
    """
    __tablename__ = "recipes"

    id = Column(String(36), primary_key=True, default=generate_id)
    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True, index=True)
    tags = Column(JSON, nullable=False, default=list)
    # Mapping of ingredient name -> quantity/unit string
    ingredients = Column(JSON, nullable=False, default=dict)
    # Ordered list of steps
    instructions = Column(JSON, nullable=False, default=list)
    # Mirrors len(instructions) so the steps filter can run in the database
    step_count = Column(Integer, nullable=False, default=0, index=True)
    prep_time = Column(Integer, nullable=True)  # minutes
    cook_time = Column(Integer, nullable=True)  # minutes
    servings = Column(Integer, nullable=True)
    images = Column(JSON, nullable=False, default=list)
    average_rating = Column(Float, nullable=True)
    review_count = Column(Integer, nullable=False, default=0)
    updated_by = Column(String, nullable=True)
    # Set in Python so insertion order survives databases with coarse timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    reviews = relationship("Review", back_populates="recipe", cascade="all, delete-orphan")

    @validates("instructions")
    def _sync_step_count(self, key, value):
        self.step_count = len(value or [])
        return value
