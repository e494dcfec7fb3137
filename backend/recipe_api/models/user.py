import uuid
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from recipe_api.core.database import Base


def generate_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    User model representing application users.

    Created on signup and read on login. Passwords are stored as bcrypt hashes.
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    # Email is the login identifier, unique and indexed for fast lookups
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
