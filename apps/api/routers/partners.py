from fastapi import APIRouter, Depends, Request, Query, Form, File, UploadFile, status
from fastapi.responses import JSONResponse
from sqlmodel import Session
from typing import List, Optional
import logging

from config import Settings, get_settings
from database import get_session
from models import Partner, User
from schemas import (
    PartnerApplication, PartnerRegisterResponse, PartnerDetail, PartnerPublic, PartnerPage,
    PartnerPagination, LoginRequest, PartnerLoginResponse, PartnerSummary, MessageResponse,
    RejectRequest, VerifyRequest, VerifyResponse, VisitCreate, VisitResponse, MemberVisitItem,
    PartnerVisitPage, VisitPagination, PartnerStatsResponse, AdminStats, RecentMember, RecentPartner,
)
from auth import create_access_token, ROLE_PARTNER
from dependencies import require_partner, require_member, require_admin, get_upload_store
from exceptions import NotFoundError, ValidationError
from middleware.activity_logger import log_admin_activity
from rate_limit import limiter
from services import partner_registry, visit_ledger, reporting
from services.credentials import authenticate_partner
from services.membership import verify_membership
from services.upload_store import UploadStore, UploadedFile
from utils.pagination import page_metadata

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/partners", tags=["Partners"])


def _read_uploads(files: Optional[List[UploadFile]], max_bytes: int) -> List[UploadedFile]:
    uploads = []
    for upload in files or []:
        if upload is None or not upload.filename:
            continue
        # Size is known from the spooled upload, so oversized files are never read into memory
        if upload.size is not None and upload.size > max_bytes:
            raise ValidationError(f"File {upload.filename} exceeds the {max_bytes // (1024 * 1024)}MB limit")
        content = upload.file.read()
        uploads.append(UploadedFile(filename=upload.filename, content=content, content_type=upload.content_type))
    return uploads


# ==================== Self-service ====================

@router.post("/register", response_model=PartnerRegisterResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def register_partner(
    request: Request,
    role: Optional[str] = Form(None),
    responsible_name: Optional[str] = Form(None, alias="responsibleName"),
    responsible_age: Optional[str] = Form(None, alias="responsibleAge"),
    responsible_sex: Optional[str] = Form(None, alias="responsibleSex"),
    responsible_dob: Optional[str] = Form(None, alias="responsibleDOB"),
    address: Optional[str] = Form(None),
    timings: Optional[str] = Form(None),
    website: Optional[str] = Form(None),
    contact_email: Optional[str] = Form(None, alias="contactEmail"),
    contact_phone: Optional[str] = Form(None, alias="contactPhone"),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    council_name: Optional[str] = Form(None, alias="councilName"),
    council_number: Optional[str] = Form(None, alias="councilNumber"),
    state: Optional[str] = Form(None),
    district: Optional[str] = Form(None),
    pincode: Optional[str] = Form(None),
    clinic_name: Optional[str] = Form(None, alias="clinicName"),
    specialization: Optional[str] = Form(None),
    time_from: Optional[str] = Form(None, alias="timeFrom"),
    time_to: Optional[str] = Form(None, alias="timeTo"),
    day_from: Optional[str] = Form(None, alias="dayFrom"),
    day_to: Optional[str] = Form(None, alias="dayTo"),
    discount_amount: Optional[str] = Form(None, alias="discountAmount"),
    discount_items: Optional[str] = Form(None, alias="discountItems"),
    passport_photo: Optional[List[UploadFile]] = File(None, alias="passportPhoto"),
    certificate_file: Optional[List[UploadFile]] = File(None, alias="certificateFile"),
    clinic_photos: Optional[List[UploadFile]] = File(None, alias="clinicPhotos"),
    session: Session = Depends(get_session),
    store: UploadStore = Depends(get_upload_store),
    settings: Settings = Depends(get_settings)
):
    """Submit a partner application (multipart form). The partner starts as Pending.

    A plain def so bcrypt, commits and file writes run in the threadpool.
    """
    application = PartnerApplication(
        role=role,
        responsible_name=responsible_name,
        responsible_age=responsible_age,
        responsible_sex=responsible_sex,
        responsible_dob=responsible_dob,
        address=address,
        timings=timings,
        website=website,
        contact_email=contact_email,
        contact_phone=contact_phone,
        email=email,
        password=password,
        council_name=council_name,
        council_number=council_number,
        state=state,
        district=district,
        pincode=pincode,
        clinic_name=clinic_name,
        specialization=specialization,
        time_from=time_from,
        time_to=time_to,
        day_from=day_from,
        day_to=day_to,
        discount_amount=discount_amount,
        discount_items=discount_items,
    )

    partner = partner_registry.register_partner(
        session,
        store,
        settings,
        application,
        passport_photos=_read_uploads(passport_photo, settings.MAX_UPLOAD_BYTES),
        certificate_files=_read_uploads(certificate_file, settings.MAX_UPLOAD_BYTES),
        clinic_photos=_read_uploads(clinic_photos, settings.MAX_UPLOAD_BYTES),
    )

    return PartnerRegisterResponse(message="Partner registered", partner=PartnerDetail.model_validate(partner))


@router.post("/login", response_model=PartnerLoginResponse)
@limiter.limit("10/minute")
def login_partner(
    request: Request,
    credentials: LoginRequest,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings)
):
    """Exchange partner credentials for a bearer token (Active partners only)"""
    partner = authenticate_partner(session, credentials.email, credentials.password)
    token = create_access_token(settings, partner.id, partner.email, ROLE_PARTNER)

    logger.info(f"Partner {partner.id} logged in")
    return PartnerLoginResponse(token=token, partner=PartnerSummary.model_validate(partner))


@router.get("", response_model=PartnerPage)
def list_partners(
    q: Optional[str] = None,
    type: Optional[str] = None,
    state: Optional[str] = None,
    district: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: Session = Depends(get_session)
):
    """Browse Active partners (public endpoint)"""
    partners, total = partner_registry.list_active_partners(
        session, q=q, facility_type=type, state=state, district=district, page=page, limit=limit
    )
    return PartnerPage(
        partners=[PartnerPublic.model_validate(p) for p in partners],
        pagination=PartnerPagination(total_partners=total, **page_metadata(page, limit, total)),
    )


# ==================== Partner-only ====================

@router.post("/verify", response_model=VerifyResponse)
def verify_member(
    payload: VerifyRequest,
    partner: Partner = Depends(require_partner),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings)
):
    """Look up a membership and the discount it earns"""
    try:
        card = verify_membership(session, payload.membership_id, settings.DISCOUNT)
    except NotFoundError as e:
        logger.info(f"Partner {partner.id} checked unknown membership {payload.membership_id}")
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"valid": False, "message": e.message},
        )
    return VerifyResponse(valid=True, member=card)


@router.post("/visit", response_model=VisitResponse, status_code=status.HTTP_201_CREATED)
def record_visit(
    payload: VisitCreate,
    partner: Partner = Depends(require_partner),
    session: Session = Depends(get_session)
):
    """Record a member visit at a partner (the caller's facility unless partnerId is given).

    Any Active partner may record a visit against another Active partner via
    partnerId; the caller is trusted to name the facility that served the member.
    """
    visit = visit_ledger.record_visit(
        session,
        membership_id=payload.membership_id,
        partner_id=payload.partner_id or partner.id,
        service=payload.service,
        discount_applied=payload.discount_applied,
        saved_amount=payload.saved_amount,
    )
    return visit


@router.get("/partner-stats", response_model=PartnerStatsResponse)
def get_partner_stats(
    partner: Partner = Depends(require_partner),
    session: Session = Depends(get_session)
):
    return visit_ledger.partner_monthly_stats(session, partner)


@router.get("/partner-visits", response_model=PartnerVisitPage)
def get_partner_visits(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    partner: Partner = Depends(require_partner),
    session: Session = Depends(get_session)
):
    visits, total = visit_ledger.list_visits_for_partner(session, partner.id, page=page, limit=limit)
    return PartnerVisitPage(
        visits=visits,
        pagination=VisitPagination(total_visits=total, **page_metadata(page, limit, total)),
    )


# ==================== Member-only ====================

@router.get("/my-visits", response_model=List[MemberVisitItem])
def get_my_visits(
    limit: int = Query(10, ge=1, le=50),
    current_user: User = Depends(require_member),
    session: Session = Depends(get_session)
):
    """Recent partner visits for the calling member"""
    return visit_ledger.list_visits_for_member(session, current_user.id, limit=limit)


# ==================== Admin ====================

@router.get("/applications", response_model=List[PartnerDetail])
def list_applications(
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session),
    store: UploadStore = Depends(get_upload_store),
    settings: Settings = Depends(get_settings)
):
    """Pending applications with documents inlined as data URLs"""
    return partner_registry.list_applications(session, store, limit=settings.PENDING_APPLICATIONS_LIMIT)


@router.post("/applications/{partner_id}/approve", response_model=MessageResponse)
def approve_application(
    partner_id: int,
    request: Request,
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session)
):
    partner = partner_registry.approve_application(session, partner_id)
    log_admin_activity(
        session,
        admin_id=current_user.id,
        action_type="approve_partner",
        target_type="partner",
        target_id=partner_id,
        description=f"Approved partner {partner.email}",
        request=request,
    )
    return MessageResponse(message="Application approved successfully")


@router.post("/applications/{partner_id}/reject", response_model=MessageResponse)
def reject_application(
    partner_id: int,
    request: Request,
    payload: Optional[RejectRequest] = None,
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session),
    store: UploadStore = Depends(get_upload_store)
):
    reason = payload.reason if payload else None
    summary = partner_registry.reject_application(session, store, partner_id, reason=reason)
    log_admin_activity(
        session,
        admin_id=current_user.id,
        action_type="reject_partner",
        target_type="partner",
        target_id=partner_id,
        description=f"Rejected and removed application from {summary.email}",
        reason=reason,
        request=request,
    )
    return MessageResponse(message="Application rejected and removed")


@router.get("/stats", response_model=AdminStats)
def get_dashboard_stats(
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session)
):
    return reporting.dashboard_stats(session)


@router.get("/recent-members", response_model=List[RecentMember])
def get_recent_members(
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings)
):
    return reporting.recent_members(session, limit=settings.RECENT_ITEMS_LIMIT)


@router.get("/recent-partners", response_model=List[RecentPartner])
def get_recent_partners(
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings)
):
    return reporting.recent_partners(session, limit=settings.RECENT_ITEMS_LIMIT)


# Keep last so the fixed paths above win
@router.get("/{partner_id}", response_model=PartnerPublic)
def get_partner(partner_id: int, session: Session = Depends(get_session)):
    """Single Active partner (public endpoint)"""
    return partner_registry.get_active_partner(session, partner_id)
