from typing import Optional, List
from datetime import datetime, date
from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON
from enum import Enum


class UserRole(str, Enum):
    MEMBER = "member"
    ADMIN = "admin"


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    SUSPENDED = "suspended"


class PartnerStatus(str, Enum):
    PENDING = "Pending"
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    REJECTED = "Rejected"


class User(SQLModel, table=True):
    """Member account (or an admin account, which has no membership)"""
    id: Optional[int] = Field(default=None, primary_key=True)
    membership_id: Optional[str] = Field(default=None, unique=True, index=True)
    email: str = Field(unique=True, index=True)
    password_hash: str
    role: UserRole = Field(default=UserRole.MEMBER)
    name: str
    phone: Optional[str] = None
    plan: Optional[str] = None
    family_members: int = Field(default=0, ge=0)
    family_details: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    valid_until: Optional[date] = None
    status: MembershipStatus = Field(default=MembershipStatus.ACTIVE)
    created_at: datetime = Field(default_factory=datetime.now, index=True)


class Partner(SQLModel, table=True):
    """Partner facility. Only ACTIVE partners are visible to members."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    type: Optional[str] = None
    clinic_name: Optional[str] = None
    specialization: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None

    # Login credentials
    email: str = Field(unique=True, index=True)
    password_hash: str

    state: Optional[str] = None
    district: Optional[str] = None
    pincode: Optional[str] = None

    # {"name", "age", "sex", "dob"} and {"name", "number"}; None when not supplied
    responsible: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    council: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    timings: Optional[str] = None
    time_from: Optional[str] = None
    time_to: Optional[str] = None
    day_from: Optional[str] = None
    day_to: Optional[str] = None

    discount_amount: Optional[str] = None
    discount_items: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # Paths relative to the static root, e.g. "uploads/partners/7/passport_<ts>_a.jpg"
    passport_photo: Optional[str] = None
    certificate_file: Optional[str] = None
    clinic_photos: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    members_served: int = Field(default=0, ge=0)
    status: PartnerStatus = Field(default=PartnerStatus.PENDING, index=True)
    created_at: datetime = Field(default_factory=datetime.now, index=True)


class Visit(SQLModel, table=True):
    """Append-only ledger entry. References are plain ids so partner/member deletion leaves history intact."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    partner_id: int = Field(index=True)
    service: Optional[str] = None
    discount_applied: float = Field(default=0, ge=0)
    saved_amount: float = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=datetime.now, index=True)


class AdminActivityLog(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    admin_id: int = Field(index=True)
    action_type: str  # approve_partner, reject_partner, delete_partner, delete_user
    target_type: str
    target_id: int
    description: str
    reason: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
