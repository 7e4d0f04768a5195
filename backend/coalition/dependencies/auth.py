"""Authentication dependencies for FastAPI routes.

Bearer tokens are JWTs issued by the external identity provider; the
``sub`` claim identifies the organization account.
"""

import logging

import jwt
from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coalition.config import get_settings
from coalition.errors import AuthenticationRequired, AuthorizationDenied
from coalition.models.base import get_db
from coalition.models.organization import Organization

logger = logging.getLogger(__name__)

INACTIVE_STATUSES = ("INACTIVE", "REJECTED")


def extract_bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def decode_token(token: str) -> dict:
    """Verify signature, expiry and (when configured) issuer/audience."""
    settings = get_settings()
    options = {"require": ["sub", "exp"]}
    kwargs = {}
    if settings.auth_jwt_audience:
        kwargs["audience"] = settings.auth_jwt_audience
    else:
        options["verify_aud"] = False
    if settings.auth_jwt_issuer:
        kwargs["issuer"] = settings.auth_jwt_issuer
    return jwt.decode(
        token,
        settings.auth_jwt_secret,
        algorithms=settings.auth_jwt_algorithms,
        leeway=settings.auth_clock_skew_seconds,
        options=options,
        **kwargs,
    )


async def get_token_claims(request: Request) -> dict:
    """Return verified token claims or raise 401."""
    token = extract_bearer_token(request)
    if not token:
        raise AuthenticationRequired("No authorization token provided")
    try:
        return decode_token(token)
    except jwt.InvalidTokenError as e:
        logger.info("Rejected bearer token: %s", e)
        raise AuthenticationRequired("Invalid or expired token")


async def _load_organization(db: AsyncSession, subject: str) -> Organization | None:
    result = await db.execute(
        select(Organization).where(Organization.auth_user_id == subject)
    )
    return result.scalar_one_or_none()


async def get_current_organization(
    claims: dict = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db),
) -> Organization:
    """Return the authenticated organization or raise 401/403."""
    organization = await _load_organization(db, claims["sub"])
    if not organization:
        raise AuthenticationRequired()
    if organization.status in INACTIVE_STATUSES:
        raise AuthorizationDenied("Organization account is not active")
    return organization


async def get_optional_organization(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Organization | None:
    """Return the organization for a valid token, or None for anonymous callers.

    An invalid token on a public route is treated as anonymous.
    """
    token = extract_bearer_token(request)
    if not token:
        return None
    try:
        claims = decode_token(token)
    except jwt.InvalidTokenError:
        logger.info("Invalid token on public route; treating request as anonymous")
        return None
    organization = await _load_organization(db, claims["sub"])
    if organization and organization.status in INACTIVE_STATUSES:
        return None
    return organization


async def require_admin(
    organization: Organization = Depends(get_current_organization),
) -> Organization:
    if not organization.is_admin:
        raise AuthorizationDenied("Admin access required")
    return organization
