from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session
from config import Settings, get_settings
from database import get_session
from models import User, UserRole, Partner, PartnerStatus
from auth import decode_token, ROLE_PARTNER, ROLE_MEMBER, ROLE_ADMIN
from exceptions import AuthError, ForbiddenError
from services.upload_store import UploadStore

security = HTTPBearer(auto_error=False)


@dataclass
class Identity:
    """Who the bearer token says the caller is"""
    id: int
    email: str
    role: str


def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings)
) -> Identity:
    """Validate the bearer token and expose the caller on request.state"""
    if credentials is None:
        raise AuthError("No token provided")

    payload = decode_token(settings, credentials.credentials)
    try:
        subject_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthError("Invalid token")

    identity = Identity(id=subject_id, email=payload.get("email", ""), role=payload["role"])
    # Store identity in request state for activity logging middleware
    request.state.identity = identity
    return identity


def require_partner(
    identity: Identity = Depends(get_current_identity),
    session: Session = Depends(get_session)
) -> Partner:
    if identity.role != ROLE_PARTNER:
        raise ForbiddenError("Partner access required")

    partner = session.get(Partner, identity.id)
    if not partner or partner.status != PartnerStatus.ACTIVE:
        raise AuthError("Partner account not found or not active")
    return partner


def require_member(
    identity: Identity = Depends(get_current_identity),
    session: Session = Depends(get_session)
) -> User:
    if identity.role != ROLE_MEMBER:
        raise ForbiddenError("Member access required")

    user = session.get(User, identity.id)
    if not user:
        raise AuthError("Account not found")
    return user


def require_admin(
    identity: Identity = Depends(get_current_identity),
    session: Session = Depends(get_session)
) -> User:
    if identity.role != ROLE_ADMIN:
        raise ForbiddenError("Admin access required")

    user = session.get(User, identity.id)
    if not user or user.role != UserRole.ADMIN:
        raise AuthError("Account not found")
    return user


def require_account(
    identity: Identity = Depends(get_current_identity),
    session: Session = Depends(get_session)
) -> User:
    """Any member or admin account"""
    if identity.role not in (ROLE_MEMBER, ROLE_ADMIN):
        raise ForbiddenError("Member or admin access required")

    user = session.get(User, identity.id)
    if not user:
        raise AuthError("Account not found")
    return user


def get_upload_store(settings: Settings = Depends(get_settings)) -> UploadStore:
    return UploadStore(settings.UPLOAD_DIR, url_prefix=settings.UPLOAD_URL_PREFIX)
