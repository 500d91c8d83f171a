"""
Partner Registry
Lifecycle of partner records: Pending -> Active, or removed on rejection.

Only Active partners are discoverable by members. Uploaded documents live in
the UploadStore under the partner's id; the record keeps relative paths.
"""

import time
import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, func, or_

from config import Settings
from auth import get_password_hash
from exceptions import ValidationError, NotFoundError, StorageError
from models import Partner, PartnerStatus
from schemas import PartnerApplication, PartnerDetail, PartnerSummary
from services.upload_store import UploadStore, UploadedFile
from utils.pagination import page_offset
from validators.partner_validator import (
    validate_application,
    validate_uploads,
    parse_age,
    parse_discount_items,
)

logger = logging.getLogger(__name__)


def get_partner(session: Session, partner_id: int) -> Partner:
    partner = session.get(Partner, partner_id)
    if not partner:
        raise NotFoundError("Partner not found")
    return partner


def get_active_partner(session: Session, partner_id: int) -> Partner:
    partner = session.get(Partner, partner_id)
    if not partner or partner.status != PartnerStatus.ACTIVE:
        raise NotFoundError("Partner not found")
    return partner


def _build_partner(application: PartnerApplication, settings: Settings) -> Partner:
    responsible = {
        "name": application.responsible_name,
        "age": parse_age(application.responsible_age),
        "sex": application.responsible_sex,
        "dob": application.responsible_dob,
    }
    council = None
    if application.council_name or application.council_number:
        council = {"name": application.council_name, "number": application.council_number}

    return Partner(
        name=application.clinic_name or application.responsible_name,
        type=application.role or "partner",
        clinic_name=application.clinic_name,
        specialization=application.specialization,
        address=application.address,
        website=application.website,
        contact_email=application.contact_email,
        contact_phone=application.contact_phone,
        email=application.email,
        password_hash=get_password_hash(application.password, rounds=settings.BCRYPT_ROUNDS),
        state=application.state,
        district=application.district,
        pincode=application.pincode,
        responsible=responsible,
        council=council,
        timings=application.timings,
        time_from=application.time_from,
        time_to=application.time_to,
        day_from=application.day_from,
        day_to=application.day_to,
        discount_amount=application.discount_amount,
        discount_items=parse_discount_items(application.discount_items),
        status=PartnerStatus.PENDING,
    )


def register_partner(
    session: Session,
    store: UploadStore,
    settings: Settings,
    application: PartnerApplication,
    passport_photos: Optional[List[UploadedFile]] = None,
    certificate_files: Optional[List[UploadedFile]] = None,
    clinic_photos: Optional[List[UploadedFile]] = None
) -> Partner:
    """Create a Pending partner and persist its documents"""
    passport_photos = passport_photos or []
    certificate_files = certificate_files or []
    clinic_photos = clinic_photos or []

    application = validate_application(application)
    validate_uploads(
        passport_photos,
        certificate_files,
        clinic_photos,
        max_bytes=settings.MAX_UPLOAD_BYTES,
        max_clinic_photos=settings.MAX_CLINIC_PHOTOS,
    )

    existing = session.exec(select(Partner).where(Partner.email == application.email)).first()
    if existing:
        raise ValidationError("Email already registered")

    partner = _build_partner(application, settings)
    session.add(partner)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ValidationError("Email already registered")
    session.refresh(partner)

    # One timestamp for every file in this request
    stamp = int(time.time() * 1000)
    try:
        if passport_photos:
            partner.passport_photo = store.save_partner_file(partner.id, "passport", passport_photos[0], stamp)
        if certificate_files:
            partner.certificate_file = store.save_partner_file(partner.id, "certificate", certificate_files[0], stamp)
        if clinic_photos:
            partner.clinic_photos = [
                store.save_partner_file(partner.id, "clinic", upload, stamp, index=index)
                for index, upload in enumerate(clinic_photos)
            ]
    except StorageError:
        # Do not leave a half-registered application behind
        store.remove_partner_files(partner.id)
        session.delete(partner)
        session.commit()
        raise

    session.add(partner)
    session.commit()
    session.refresh(partner)

    logger.info(f"Registered partner application {partner.id} ({partner.email}) with status {partner.status.value}")
    return partner


def list_applications(session: Session, store: UploadStore, limit: int = 200) -> List[PartnerDetail]:
    """Newest pending applications with their documents inlined as data URLs"""
    partners = session.exec(
        select(Partner)
        .where(Partner.status == PartnerStatus.PENDING)
        .order_by(Partner.created_at.desc(), Partner.id.desc())
        .limit(limit)
    ).all()

    applications = []
    for partner in partners:
        detail = PartnerDetail.model_validate(partner)
        detail.passport_photo = store.read_data_url(partner.passport_photo)
        detail.certificate_file = store.read_data_url(partner.certificate_file)
        detail.clinic_photos = [store.read_data_url(path) for path in partner.clinic_photos or []]
        applications.append(detail)
    return applications


def approve_application(session: Session, partner_id: int) -> Partner:
    """Pending -> Active. Approving an Active partner changes nothing."""
    partner = get_partner(session, partner_id)
    if partner.status != PartnerStatus.ACTIVE:
        previous = partner.status
        partner.status = PartnerStatus.ACTIVE
        session.add(partner)
        session.commit()
        session.refresh(partner)
        logger.info(f"Partner {partner_id} approved ({previous.value} -> {partner.status.value})")
    return partner


def reject_application(session: Session, store: UploadStore, partner_id: int, reason: Optional[str] = None) -> PartnerSummary:
    """Delete the application and its documents.

    File cleanup is best-effort; the record is removed even if it fails.
    """
    partner = get_partner(session, partner_id)
    summary = PartnerSummary.model_validate(partner)

    if not store.remove_partner_files(partner.id):
        logger.warning(f"Uploads for rejected partner {partner_id} were left on disk")

    session.delete(partner)
    session.commit()

    logger.info(f"Partner application {partner_id} rejected and removed. Reason: {reason or 'not given'}")
    return summary


def delete_partner(session: Session, store: UploadStore, partner_id: int) -> PartnerSummary:
    """Hard delete (admin). Visits referencing the partner are kept."""
    partner = get_partner(session, partner_id)
    summary = PartnerSummary.model_validate(partner)
    session.delete(partner)
    session.commit()

    store.remove_partner_files(partner_id)
    logger.info(f"Partner {partner_id} deleted")
    return summary


def list_active_partners(
    session: Session,
    q: Optional[str] = None,
    facility_type: Optional[str] = None,
    state: Optional[str] = None,
    district: Optional[str] = None,
    page: int = 1,
    limit: int = 10
) -> Tuple[List[Partner], int]:
    """Active partners, newest first, with the total match count"""
    conditions = [Partner.status == PartnerStatus.ACTIVE]

    if q and q.strip():
        term = q.strip().lower()
        conditions.append(or_(
            func.lower(Partner.name).contains(term, autoescape=True),
            func.lower(Partner.clinic_name).contains(term, autoescape=True),
            func.lower(Partner.specialization).contains(term, autoescape=True),
            func.lower(Partner.address).contains(term, autoescape=True),
        ))

    if facility_type and facility_type != "all":
        conditions.append(Partner.type == facility_type)

    if state and state.strip():
        conditions.append(func.lower(Partner.state) == state.strip().lower())

    if district and district.strip():
        conditions.append(func.lower(Partner.district) == district.strip().lower())

    total = session.exec(select(func.count(Partner.id)).where(*conditions)).one()

    partners = session.exec(
        select(Partner)
        .where(*conditions)
        .order_by(Partner.created_at.desc(), Partner.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
    ).all()

    return partners, total
