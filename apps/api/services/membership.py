"""
Membership verification
Partners look a member up by membership ID and learn the discount to apply.
"""

import logging
from datetime import date
from typing import Optional

from sqlmodel import Session, select

from config import DiscountPolicy
from exceptions import NotFoundError
from models import User, MembershipStatus
from schemas import MemberCard

logger = logging.getLogger(__name__)


def get_member_by_membership_id(session: Session, membership_id: str) -> User:
    membership_id = (membership_id or "").strip()
    user = None
    if membership_id:
        user = session.exec(select(User).where(User.membership_id == membership_id)).first()
    if not user:
        raise NotFoundError("Membership not found")
    return user


def is_membership_active(user: User, today: Optional[date] = None) -> bool:
    today = today or date.today()
    if user.status != MembershipStatus.ACTIVE:
        return False
    return user.valid_until is None or user.valid_until >= today


def compute_discount(user: User, policy: DiscountPolicy, today: Optional[date] = None) -> float:
    """Discount percentage a partner should grant this member.

    Inactive or expired memberships get nothing. Active ones get the base
    rate, or the family rate when one is configured and the membership
    covers at least one family member.
    """
    if not is_membership_active(user, today):
        return 0.0
    if policy.FAMILY_PERCENT is not None and (user.family_members or 0) > 0:
        return float(policy.FAMILY_PERCENT)
    return float(policy.BASE_PERCENT)


def format_percent(value: float) -> str:
    return f"{value:g}%"


def verify_membership(session: Session, membership_id: str, policy: DiscountPolicy, today: Optional[date] = None) -> MemberCard:
    """Raises NotFoundError for unknown IDs"""
    user = get_member_by_membership_id(session, membership_id)
    rate = compute_discount(user, policy, today)

    logger.info(f"Membership {user.membership_id} verified, discount {format_percent(rate)}")
    return MemberCard(
        name=user.name,
        membership_id=user.membership_id,
        plan=user.plan,
        family_members=user.family_members or 0,
        family_details=user.family_details or [],
        discount=format_percent(rate),
        discount_rate=rate,
        valid_until=user.valid_until,
        status=user.status,
    )
