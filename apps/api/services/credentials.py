"""Credential store: account lookup by e-mail and password verification"""
import logging

from sqlmodel import Session, select

from auth import verify_password
from exceptions import AuthError
from models import Partner, PartnerStatus, User

logger = logging.getLogger(__name__)


def authenticate_partner(session: Session, email: str, password: str) -> Partner:
    """Only Active partners may log in; unknown and unapproved accounts look the same"""
    partner = session.exec(
        select(Partner)
        .where(Partner.email == email.strip().lower())
        .where(Partner.status == PartnerStatus.ACTIVE)
    ).first()
    if not partner:
        logger.warning(f"Partner login refused for {email}: unknown or not approved")
        raise AuthError("Invalid credentials or account not approved yet")

    if not verify_password(password, partner.password_hash):
        logger.warning(f"Partner login refused for {email}: bad password")
        raise AuthError("Invalid credentials")

    return partner


def authenticate_user(session: Session, email: str, password: str) -> User:
    user = session.exec(select(User).where(User.email == email.strip().lower())).first()
    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"Login refused for {email}")
        raise AuthError("Incorrect email or password")
    return user
