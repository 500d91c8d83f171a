from fastapi import APIRouter, Depends, Request, Query
from sqlmodel import Session
from typing import Optional

from database import get_session
from models import User
from schemas import (
    AdminPartnerItem, AdminPartnerPage, MessageResponse, PartnerPagination,
    UserPage, UserPagination, UserResponse,
)
from dependencies import require_admin, get_upload_store
from middleware.activity_logger import log_admin_activity
from services import partner_registry, reporting
from services.upload_store import UploadStore
from utils.pagination import page_metadata

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/users", response_model=UserPage)
def list_all_users(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session)
):
    """List accounts, searchable by name, e-mail or membership ID (admin only)"""
    users, total = reporting.list_users(session, search=search, page=page, limit=limit)
    return UserPage(
        users=[UserResponse.model_validate(u) for u in users],
        pagination=UserPagination(total_users=total, **page_metadata(page, limit, total)),
    )


@router.get("/partners", response_model=AdminPartnerPage)
def list_all_partners(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session)
):
    """List Active partners (admin only)"""
    partners, total = reporting.list_all_partners(session, search=search, page=page, limit=limit)
    return AdminPartnerPage(
        partners=[AdminPartnerItem.model_validate(p) for p in partners],
        pagination=PartnerPagination(total_partners=total, **page_metadata(page, limit, total)),
    )


@router.delete("/partners/{partner_id}", response_model=MessageResponse)
def delete_partner(
    partner_id: int,
    request: Request,
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session),
    store: UploadStore = Depends(get_upload_store)
):
    summary = partner_registry.delete_partner(session, store, partner_id)
    log_admin_activity(
        session,
        admin_id=current_user.id,
        action_type="delete_partner",
        target_type="partner",
        target_id=partner_id,
        description=f"Deleted partner {summary.email}",
        request=request,
    )
    return MessageResponse(message="Partner deleted successfully")


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    request: Request,
    current_user: User = Depends(require_admin),
    session: Session = Depends(get_session)
):
    admin_id = current_user.id
    email = reporting.delete_user(session, user_id)
    log_admin_activity(
        session,
        admin_id=admin_id,
        action_type="delete_user",
        target_type="user",
        target_id=user_id,
        description=f"Deleted user {email}",
        request=request,
    )
    return MessageResponse(message="User deleted successfully")
