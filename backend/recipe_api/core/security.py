from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext

# CryptContext handles password hashing using bcrypt
# 'deprecated="auto"' allows passlib to handle deprecation warnings automatically
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash using constant-time comparison"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    # bcrypt generates a salt and includes it in the hash
    return pwd_context.hash(password)


def build_session_claims(user) -> dict:
    """Claims carried by a session token: the user id (twice, 'sub' is the JWT standard) and email"""
    return {"sub": str(user.id), "userId": str(user.id), "email": user.email}


def create_access_token(
    data: dict,
    secret: str,
    algorithm: str = "HS256",
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed JWT with issued-at and expiration claims"""
    # Copy data to avoid mutating the original dict
    to_encode = data.copy()

    now = datetime.now(timezone.utc)
    expire = now + (expires_delta if expires_delta is not None else timedelta(hours=1))
    to_encode.update({"iat": now, "exp": expire})

    return jwt.encode(to_encode, secret, algorithm=algorithm)


def decode_access_token(token: Optional[str], secret: str, algorithm: str = "HS256") -> Optional[dict]:
    """Decode and verify a JWT token"""
    if not token:
        return None
    try:
        # Verifies signature and expiration
        return jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError:
        # Expired, tampered, or signed with another secret
        return None
