import logging
from datetime import timedelta
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from pydantic import BaseModel, EmailStr, Field
from recipe_api.core.config import Settings
from recipe_api.core.database import get_db
from recipe_api.core.errors import AuthenticationError, ConflictError, InternalError
from recipe_api.core.security import (
    build_session_claims,
    create_access_token,
    get_password_hash,
    verify_password,
)
from recipe_api.models.token import StoredToken
from recipe_api.models.user import User
from recipe_api.api.dependencies import TOKEN_COOKIE, get_settings, verify_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/authorisation", tags=["auth"])

USER_EMAIL_COOKIE = "user_email"
LOGGED_IN_COOKIE = "logged_in"

# Same message for unknown email and wrong password
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


class Credentials(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginCredentials(BaseModel):
    # Not EmailStr: a malformed email is just an unknown user
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


def set_session_cookies(response: Response, token: str, email: str, settings: Settings) -> None:
    """Issue the credential cookie plus the two script-readable convenience cookies"""
    max_age = settings.token_max_age
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )
    # Display-only values; the frontend reads these, so they are not HTTP-only
    response.set_cookie(USER_EMAIL_COOKIE, email, max_age=max_age, path="/", samesite="strict")
    response.set_cookie(LOGGED_IN_COOKIE, "true", max_age=max_age, path="/", samesite="strict")


def clear_session_cookies(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        TOKEN_COOKIE, path="/", httponly=True, secure=settings.is_production, samesite="strict"
    )
    response.delete_cookie(USER_EMAIL_COOKIE, path="/", samesite="strict")
    response.delete_cookie(LOGGED_IN_COOKIE, path="/", samesite="strict")


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(credentials: Credentials, db: Session = Depends(get_db)):
    """Register a new user"""
    # Explicit check gives a clear 409; the unique index below catches concurrent signups
    if db.query(User).filter(User.email == credentials.email).first():
        raise ConflictError("User already exists")

    user = User(email=credentials.email, hashed_password=get_password_hash(credentials.password))
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        raise ConflictError("User already exists")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Signup failed: {e}")
        raise InternalError("Internal Server Error", details=str(e))

    logger.info(f"Registered user {user.id}")
    return {"success": True, "message": "User registered successfully", "userId": user.id}


@router.post("/login")
def login(
    credentials: LoginCredentials,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Verify credentials and issue the session cookies"""
    user = db.query(User).filter(User.email == credentials.email).first()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.warning("Failed login attempt")
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    token = create_access_token(
        build_session_claims(user),
        settings.JWT_SECRET,
        settings.JWT_ALGORITHM,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    set_session_cookies(response, token, user.email, settings)

    logger.info(f"User {user.id} logged in")
    return {"success": True, "message": "Login successful", "userId": user.id}


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Expire the session cookies and drop any stored record of the token"""
    token = request.cookies.get(TOKEN_COOKIE)
    if token:
        try:
            db.query(StoredToken).filter(StoredToken.token == token).delete(synchronize_session=False)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Logout failed: {e}")
            raise InternalError("Internal Server Error", details=str(e))

    clear_session_cookies(response, settings)
    return {"success": True, "message": "Logged out successfully"}


@router.get("/session")
async def session(request: Request, settings: Settings = Depends(get_settings)):
    """Return the claims of the current session cookie"""
    claims = verify_session(request.cookies.get(TOKEN_COOKIE), settings)
    return {"success": True, "user": claims}


# Mounted at /api/get-user-id
user_router = APIRouter(tags=["auth"])


@user_router.get("/get-user-id")
async def get_user_id(request: Request, settings: Settings = Depends(get_settings)):
    claims = verify_session(request.cookies.get(TOKEN_COOKIE), settings)
    return {"success": True, "userId": claims.get("userId")}
