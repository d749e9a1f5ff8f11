"""
Shared dependencies for API endpoints.

Includes:
- Anonymous identity (device fingerprint + server-side IP hash)
- Rate limiter and content policy wired at application startup
- Admin token check for moderation endpoints
"""

import hmac
from dataclasses import dataclass
from typing import Annotated, Optional

import structlog
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import UnauthorizedError, ValidationError
from db.session import get_db
from services.admission import AdmissionService
from services.content_filter import ContentPolicy
from services.ip_hash import TrustedProxyPolicy, extract_client_address, hash_address
from services.moderation import ModerationService
from services.rate_limiter import RateLimiter

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ClientIdentity:
    """Anonymous identity pair attached to every write."""

    device_fingerprint: str
    ip_hash: str


# =============================================================================
# Identity
# =============================================================================


def get_ip_hash(request: Request) -> str:
    """
    Salted hash of the client address.

    Computed here from the transport peer (and forwarding headers from trusted
    proxies only); clients can never supply their own hash.
    """
    policy: TrustedProxyPolicy = request.app.state.trusted_proxy_policy
    peer = request.client.host if request.client else None
    address = extract_client_address(request.headers, peer, policy)
    return hash_address(address, settings.IP_HASH_SALT)


async def get_header_fingerprint(
    x_device_fingerprint: Annotated[Optional[str], Header(max_length=64)] = None,
) -> Optional[str]:
    return x_device_fingerprint


def resolve_identity(
    body_fingerprint: Optional[str],
    header_fingerprint: Optional[str],
    ip_hash: str,
) -> ClientIdentity:
    """Pick the fingerprint from the body, falling back to the header."""
    fingerprint = (body_fingerprint or header_fingerprint or "").strip()
    if not fingerprint:
        raise ValidationError("Device fingerprint is required")
    return ClientIdentity(device_fingerprint=fingerprint, ip_hash=ip_hash)


# =============================================================================
# Services
# =============================================================================


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_content_policy(request: Request) -> ContentPolicy:
    return request.app.state.content_policy


async def get_admission_service(
    db: AsyncSession = Depends(get_db),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    content_policy: ContentPolicy = Depends(get_content_policy),
) -> AdmissionService:
    return AdmissionService(
        db,
        rate_limiter,
        content_policy=content_policy,
        auto_hide_threshold=settings.AUTO_HIDE_REPORT_THRESHOLD,
        controversy_min_votes=settings.CONTROVERSY_MIN_VOTES,
        trending_candidate_limit=settings.TRENDING_CANDIDATE_LIMIT,
    )


async def get_moderation_service(db: AsyncSession = Depends(get_db)) -> ModerationService:
    return ModerationService(db)


# =============================================================================
# Admin
# =============================================================================


async def require_admin(
    request: Request,
    x_admin_token: Annotated[Optional[str], Header()] = None,
) -> None:
    """
    Gate moderation endpoints behind ADMIN_PASSWORD.

    With no ADMIN_PASSWORD configured, moderation endpoints are closed.
    """
    expected = settings.ADMIN_PASSWORD
    if not expected or not x_admin_token or not hmac.compare_digest(
        x_admin_token.encode("utf-8"), expected.encode("utf-8")
    ):
        logger.warning("admin_access_denied", path=request.url.path)
        raise UnauthorizedError()
