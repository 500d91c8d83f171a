from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, ExpiredSignatureError, jwt
import bcrypt
import uuid
from config import Settings
from exceptions import AuthError

ROLE_PARTNER = "partner"
ROLE_MEMBER = "member"
ROLE_ADMIN = "admin"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash using bcrypt directly"""
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        # Malformed stored hash or over-long input
        return False


def get_password_hash(password: str, rounds: int = 12) -> str:
    """Generate a salted bcrypt hash; the raw password is never stored"""
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt(rounds=rounds)
    ).decode('utf-8')


def create_access_token(
    settings: Settings,
    subject_id: int,
    email: str,
    role: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Issue a signed, time-boxed bearer token for an account"""
    if expires_delta is None:
        expires_delta = timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    expire = datetime.now(timezone.utc) + expires_delta

    to_encode = {
        "sub": str(subject_id),
        "email": email,
        "role": role,
        "exp": expire,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(settings: Settings, token: str) -> dict:
    """Verify signature and expiry; raises AuthError on any failure"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise AuthError("Token expired")
    except JWTError:
        raise AuthError("Invalid token")

    if not payload.get("sub") or payload.get("role") not in (ROLE_PARTNER, ROLE_MEMBER, ROLE_ADMIN):
        raise AuthError("Invalid token")
    return payload
