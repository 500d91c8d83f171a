from fastapi import APIRouter, Depends, Request
from sqlmodel import Session
import logging

from config import Settings, get_settings
from database import get_session
from models import User, UserRole
from schemas import LoginRequest, UserLoginResponse, UserResponse
from auth import create_access_token, ROLE_ADMIN, ROLE_MEMBER
from dependencies import require_account
from rate_limit import limiter
from services.credentials import authenticate_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/login", response_model=UserLoginResponse)
@limiter.limit("10/minute")
def login(
    request: Request,
    credentials: LoginRequest,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings)
):
    """Member or admin login"""
    user = authenticate_user(session, credentials.email, credentials.password)
    role = ROLE_ADMIN if user.role == UserRole.ADMIN else ROLE_MEMBER
    token = create_access_token(settings, user.id, user.email, role)

    logger.info(f"User {user.id} logged in as {role}")
    return UserLoginResponse(token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
def get_current_user_info(current_user: User = Depends(require_account)):
    """Get current member/admin account"""
    return UserResponse.model_validate(current_user)
