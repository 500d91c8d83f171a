"""
Visit Ledger
Append-only record of member visits at partner facilities.

Recording a visit is two writes: the ledger row, then the partner's
members_served counter. They are not one transaction. If the second write
fails the visit stands and the counter stays one short; that gap is logged
and accepted rather than rolled back.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select, func

from exceptions import StorageError
from models import Partner, User, Visit
from schemas import MemberVisitItem, PartnerVisitItem, PartnerStatsResponse
from services.membership import get_member_by_membership_id, format_percent
from services.partner_registry import get_active_partner
from utils.pagination import page_offset

logger = logging.getLogger(__name__)


def record_visit(
    session: Session,
    membership_id: str,
    partner_id: int,
    service: Optional[str] = None,
    discount_applied: float = 0,
    saved_amount: float = 0
) -> Visit:
    user = get_member_by_membership_id(session, membership_id)
    partner = get_active_partner(session, partner_id)

    visit = Visit(
        user_id=user.id,
        partner_id=partner.id,
        service=(service or "").strip() or None,
        discount_applied=discount_applied,
        saved_amount=saved_amount,
    )
    session.add(visit)
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise StorageError(f"Could not record visit for partner {partner_id}: {e}")
    session.refresh(visit)

    try:
        increment_members_served(session, partner.id)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Visit {visit.id} recorded but members_served not incremented for partner {partner.id}: {e}")

    logger.info(f"Visit {visit.id} recorded: member {user.membership_id} at partner {partner.id}")
    return visit


def increment_members_served(session: Session, partner_id: int) -> None:
    """Single-row atomic increment, safe under concurrent requests"""
    session.exec(
        update(Partner)
        .where(Partner.id == partner_id)
        .values(members_served=Partner.members_served + 1)
    )
    session.commit()


def _format_visited_time(moment: datetime) -> str:
    return moment.strftime("%d %b %Y, %I:%M %p")


def list_visits_for_member(session: Session, user_id: int, limit: int = 10) -> List[MemberVisitItem]:
    """Most recent visits for a member, with partner display fields"""
    visits = session.exec(
        select(Visit)
        .where(Visit.user_id == user_id)
        .order_by(Visit.created_at.desc(), Visit.id.desc())
        .limit(limit)
    ).all()

    partner_ids = {visit.partner_id for visit in visits}
    partners = {}
    if partner_ids:
        partners = {p.id: p for p in session.exec(select(Partner).where(Partner.id.in_(list(partner_ids)))).all()}

    items = []
    for visit in visits:
        partner = partners.get(visit.partner_id)
        responsible = (partner.responsible or {}) if partner else {}
        items.append(MemberVisitItem(
            id=visit.id,
            hospital_name=partner.name if partner else "Unknown Hospital",
            doctor_name=responsible.get("name") or "Not specified",
            address=(partner.address if partner else None) or "Address not available",
            visited_time=_format_visited_time(visit.created_at),
            service=visit.service or "General Consultation",
        ))
    return items


def list_visits_for_partner(
    session: Session,
    partner_id: int,
    page: int = 1,
    limit: int = 10
) -> Tuple[List[PartnerVisitItem], int]:
    """Paginated visit history for a partner, newest first, with member display fields"""
    total = session.exec(select(func.count(Visit.id)).where(Visit.partner_id == partner_id)).one()

    visits = session.exec(
        select(Visit)
        .where(Visit.partner_id == partner_id)
        .order_by(Visit.created_at.desc(), Visit.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
    ).all()

    user_ids = {visit.user_id for visit in visits}
    users = {}
    if user_ids:
        users = {u.id: u for u in session.exec(select(User).where(User.id.in_(list(user_ids)))).all()}

    items = []
    for visit in visits:
        user = users.get(visit.user_id)
        items.append(PartnerVisitItem(
            id=visit.id,
            member_name=user.name if user else "Unknown Member",
            membership_id=(user.membership_id if user else None) or "N/A",
            email=(user.email if user else None) or "N/A",
            phone=(user.phone if user else None) or "N/A",
            service=visit.service or "General Service",
            discount=format_percent(visit.discount_applied),
            saved_amount=visit.saved_amount or 0,
            date=visit.created_at.strftime("%d/%m/%Y"),
            time=visit.created_at.strftime("%I:%M %p"),
        ))
    return items, total


def start_of_month(now: Optional[datetime] = None) -> datetime:
    """Midnight on the first of the current month, server-local time"""
    now = now or datetime.now()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def partner_monthly_stats(session: Session, partner: Partner, now: Optional[datetime] = None) -> PartnerStatsResponse:
    monthly_visits = session.exec(
        select(func.count(Visit.id))
        .where(Visit.partner_id == partner.id)
        .where(Visit.created_at >= start_of_month(now))
    ).one()

    average_discount, total_saved = session.exec(
        select(func.avg(Visit.discount_applied), func.sum(Visit.saved_amount))
        .where(Visit.partner_id == partner.id)
    ).one()

    return PartnerStatsResponse(
        members_served=partner.members_served or 0,
        monthly_visits=monthly_visits,
        # Visits record savings, not what the member paid
        total_revenue=0.0,
        total_saved=float(total_saved or 0),
        average_discount=format_percent(round(float(average_discount or 0), 1)),
    )
