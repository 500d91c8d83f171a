from typing import Optional, List
from datetime import datetime, date
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel
from models import UserRole, PartnerStatus, MembershipStatus


class CamelModel(BaseModel):
    """JSON projections use camelCase on the wire; snake_case is accepted on input too"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class MessageResponse(BaseModel):
    message: str


# ==================== Auth ====================

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class PartnerSummary(CamelModel):
    id: int
    email: str
    name: str
    type: Optional[str] = None


class PartnerLoginResponse(CamelModel):
    token: str
    partner: PartnerSummary


class UserResponse(CamelModel):
    id: int
    name: str
    email: str
    role: UserRole
    membership_id: Optional[str] = None
    phone: Optional[str] = None
    plan: Optional[str] = None
    family_members: int = 0
    valid_until: Optional[date] = None
    status: MembershipStatus
    created_at: datetime


class UserLoginResponse(CamelModel):
    token: str
    user: UserResponse


# ==================== Partners ====================

class ResponsibleInfo(CamelModel):
    name: Optional[str] = None
    age: Optional[int] = None
    sex: Optional[str] = None
    dob: Optional[str] = None


class CouncilInfo(CamelModel):
    name: Optional[str] = None
    number: Optional[str] = None


class PartnerApplication(BaseModel):
    """Registration form fields as received, before validation"""
    role: Optional[str] = None
    responsible_name: Optional[str] = None
    responsible_age: Optional[str] = None
    responsible_sex: Optional[str] = None
    responsible_dob: Optional[str] = None
    address: Optional[str] = None
    timings: Optional[str] = None
    website: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    council_name: Optional[str] = None
    council_number: Optional[str] = None
    state: Optional[str] = None
    district: Optional[str] = None
    pincode: Optional[str] = None
    clinic_name: Optional[str] = None
    specialization: Optional[str] = None
    time_from: Optional[str] = None
    time_to: Optional[str] = None
    day_from: Optional[str] = None
    day_to: Optional[str] = None
    discount_amount: Optional[str] = None
    discount_items: Optional[str] = None  # JSON array string


class PartnerPublic(CamelModel):
    """Fields members see when browsing partners"""
    id: int
    name: str
    type: Optional[str] = None
    clinic_name: Optional[str] = None
    specialization: Optional[str] = None
    address: Optional[str] = None
    state: Optional[str] = None
    district: Optional[str] = None
    pincode: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    discount_amount: Optional[str] = None
    discount_items: List[str] = []
    timings: Optional[str] = None
    time_from: Optional[str] = None
    time_to: Optional[str] = None
    day_from: Optional[str] = None
    day_to: Optional[str] = None


class PartnerDetail(PartnerPublic):
    email: str
    website: Optional[str] = None
    responsible: Optional[ResponsibleInfo] = None
    council: Optional[CouncilInfo] = None
    passport_photo: Optional[str] = None
    certificate_file: Optional[str] = None
    clinic_photos: List[Optional[str]] = []
    members_served: int = 0
    status: PartnerStatus
    created_at: datetime


class PartnerRegisterResponse(BaseModel):
    message: str
    partner: PartnerDetail


class RejectRequest(BaseModel):
    reason: Optional[str] = None


class AdminPartnerItem(CamelModel):
    id: int
    name: str
    email: str
    clinic_name: Optional[str] = None
    type: Optional[str] = None
    address: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    members_served: int = 0
    status: PartnerStatus
    created_at: datetime


# ==================== Pagination ====================

class Pagination(CamelModel):
    current_page: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool
    limit: int


class PartnerPagination(Pagination):
    total_partners: int


class VisitPagination(Pagination):
    total_visits: int


class UserPagination(Pagination):
    total_users: int


class PartnerPage(BaseModel):
    partners: List[PartnerPublic]
    pagination: PartnerPagination


class AdminPartnerPage(BaseModel):
    partners: List[AdminPartnerItem]
    pagination: PartnerPagination


class UserPage(BaseModel):
    users: List[UserResponse]
    pagination: UserPagination


# ==================== Membership & visits ====================

class VerifyRequest(CamelModel):
    membership_id: str


class MemberCard(CamelModel):
    name: str
    membership_id: str
    plan: Optional[str] = None
    family_members: int = 0
    family_details: List[dict] = []
    discount: str
    discount_rate: float
    valid_until: Optional[date] = None
    status: MembershipStatus


class VerifyResponse(CamelModel):
    """Successful lookup; an unknown ID is answered with {valid: false, message} and 404"""
    valid: bool
    member: MemberCard


class VisitCreate(CamelModel):
    membership_id: str
    partner_id: Optional[int] = None  # defaults to the calling partner
    service: Optional[str] = None
    discount_applied: float = Field(default=0, ge=0, le=100)
    saved_amount: float = Field(default=0, ge=0)


class VisitResponse(CamelModel):
    id: int
    user_id: int
    partner_id: int
    service: Optional[str] = None
    discount_applied: float
    saved_amount: float
    created_at: datetime


class MemberVisitItem(CamelModel):
    id: int
    hospital_name: str
    doctor_name: str
    address: str
    visited_time: str
    service: str


class PartnerVisitItem(CamelModel):
    id: int
    member_name: str
    membership_id: str
    email: str
    phone: str
    service: str
    discount: str
    saved_amount: float
    date: str
    time: str


class PartnerVisitPage(BaseModel):
    visits: List[PartnerVisitItem]
    pagination: VisitPagination


class PartnerStatsResponse(CamelModel):
    members_served: int
    monthly_visits: int
    total_revenue: float
    total_saved: float
    average_discount: str


# ==================== Admin dashboard ====================

class AdminStats(CamelModel):
    approved_partners: int
    total_users: int
    pending_applications: int
    total_visits: int


class RecentMember(CamelModel):
    name: str
    plan: str
    date: str
    status: str


class RecentPartner(CamelModel):
    name: str
    type: Optional[str] = None
    members: int
    status: str
