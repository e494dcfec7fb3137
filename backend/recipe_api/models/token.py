from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.sql import func
from recipe_api.core.database import Base
from recipe_api.models.user import generate_id


class StoredToken(Base):
    """
    Server-side record of an issued session token.

    Sessions are stateless, so login never writes these; logout removes a
    matching record if one was stored by other tooling.
    """
    __tablename__ = "tokens"

    id = Column(String(36), primary_key=True, default=generate_id)
    token = Column(Text, unique=True, nullable=False)
    user_id = Column(String(36), index=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
