from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from recipe_api.core.database import Base
from recipe_api.models.recipe import utcnow
from recipe_api.models.user import generate_id


class Review(Base):
    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=generate_id)
    recipe_id = Column(String(36), ForeignKey("recipes.id"), nullable=False, index=True)
    username = Column(String, nullable=False)
    rating = Column(Integer, nullable=False)  # 1-5
    review = Column(Text, nullable=False, default="")
    date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    recipe = relationship("Recipe", back_populates="reviews")
