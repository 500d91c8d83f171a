"""Admin dashboard aggregates and admin listings"""
import logging
from typing import List, Optional, Tuple

from sqlmodel import Session, select, func, or_

from exceptions import NotFoundError
from models import Partner, PartnerStatus, User, UserRole, Visit
from schemas import AdminStats, RecentMember, RecentPartner
from utils.pagination import page_offset

logger = logging.getLogger(__name__)


def dashboard_stats(session: Session) -> AdminStats:
    approved = session.exec(select(func.count(Partner.id)).where(Partner.status == PartnerStatus.ACTIVE)).one()
    pending = session.exec(select(func.count(Partner.id)).where(Partner.status == PartnerStatus.PENDING)).one()
    members = session.exec(select(func.count(User.id)).where(User.role == UserRole.MEMBER)).one()
    visits = session.exec(select(func.count(Visit.id))).one()

    return AdminStats(
        approved_partners=approved,
        total_users=members,
        pending_applications=pending,
        total_visits=visits,
    )


def recent_members(session: Session, limit: int = 5) -> List[RecentMember]:
    users = session.exec(
        select(User)
        .where(User.role == UserRole.MEMBER)
        .order_by(User.created_at.desc(), User.id.desc())
        .limit(limit)
    ).all()

    members = []
    for user in users:
        plan = user.plan or "No plan"
        if user.family_members:
            plan += f" ({user.family_members} family)"
        members.append(RecentMember(
            name=user.name,
            plan=plan,
            date=user.created_at.date().isoformat(),
            status=user.status.value,
        ))
    return members


def recent_partners(session: Session, limit: int = 5) -> List[RecentPartner]:
    partners = session.exec(
        select(Partner)
        .where(Partner.status == PartnerStatus.ACTIVE)
        .order_by(Partner.created_at.desc(), Partner.id.desc())
        .limit(limit)
    ).all()

    return [
        RecentPartner(
            name=partner.name,
            type=partner.type,
            members=partner.members_served or 0,
            status=partner.status.value,
        )
        for partner in partners
    ]


def list_users(session: Session, search: Optional[str] = None, page: int = 1, limit: int = 10) -> Tuple[List[User], int]:
    conditions = []
    if search and search.strip():
        term = search.strip().lower()
        conditions.append(or_(
            func.lower(User.name).contains(term, autoescape=True),
            func.lower(User.email).contains(term, autoescape=True),
            func.lower(User.membership_id).contains(term, autoescape=True),
        ))

    total = session.exec(select(func.count(User.id)).where(*conditions)).one()
    users = session.exec(
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
    ).all()
    return users, total


def list_all_partners(session: Session, search: Optional[str] = None, page: int = 1, limit: int = 10) -> Tuple[List[Partner], int]:
    """Active partners for the admin table"""
    conditions = [Partner.status == PartnerStatus.ACTIVE]
    if search and search.strip():
        term = search.strip().lower()
        conditions.append(or_(
            func.lower(Partner.name).contains(term, autoescape=True),
            func.lower(Partner.email).contains(term, autoescape=True),
            func.lower(Partner.clinic_name).contains(term, autoescape=True),
            func.lower(Partner.type).contains(term, autoescape=True),
        ))

    total = session.exec(select(func.count(Partner.id)).where(*conditions)).one()
    partners = session.exec(
        select(Partner)
        .where(*conditions)
        .order_by(Partner.created_at.desc(), Partner.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
    ).all()
    return partners, total


def delete_user(session: Session, user_id: int) -> str:
    """Hard delete a member account; returns its e-mail for the audit trail"""
    user = session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    email = user.email
    session.delete(user)
    session.commit()
    logger.info(f"User {user_id} ({email}) deleted")
    return email
