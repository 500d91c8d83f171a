"""Activity logging middleware and admin audit trail"""
from typing import Optional
import logging
import time

from fastapi import Request
from sqlmodel import Session
from starlette.middleware.base import BaseHTTPMiddleware

from models import AdminActivityLog

logger = logging.getLogger("medico.activity")


def log_admin_activity(
    session: Session,
    admin_id: int,
    action_type: str,
    target_type: str,
    target_id: int,
    description: str,
    reason: Optional[str] = None,
    request: Optional[Request] = None
) -> AdminActivityLog:
    """Persist an admin decision (approve/reject/delete) with who, what and why"""
    ip_address = None
    user_agent = None
    if request is not None:
        ip_address = _client_ip(request)
        user_agent = request.headers.get("user-agent")

    entry = AdminActivityLog(
        admin_id=admin_id,
        action_type=action_type,
        target_type=target_type,
        target_id=target_id,
        description=description,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    session.add(entry)
    session.commit()
    return entry


def _client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class ActivityLoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per API request with caller role, status and duration"""

    skip_paths = ("/health", "/docs", "/openapi.json", "/redoc", "/favicon.ico", "/uploads")

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith(self.skip_paths):
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        # Set by the auth dependency when a bearer token was accepted
        identity = getattr(request.state, "identity", None)
        caller = f"{identity.role}:{identity.id}" if identity else "anonymous"

        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({elapsed_ms:.1f}ms) by {caller} from {_client_ip(request)}"
        )
        return response
