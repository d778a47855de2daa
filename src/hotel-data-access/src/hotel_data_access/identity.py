"""
hotel_data_access.identity — Build a CallerIdentity from verified claims.

Claims come from the authentication layer after signature verification.
Tenant claim: `propertyId`, falling back to the legacy `hotelId`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from aws_lambda_powertools import Logger

from hotel_data_access.models import CallerIdentity, Role

logger = Logger(service="hotel-data-access")


def _str_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def identity_from_claims(claims: Mapping[str, Any]) -> CallerIdentity:
    """Map token claims onto a CallerIdentity.

    An unrecognised role is downgraded to STAFF, which is always bound to
    its home tenant.
    """
    raw_role = claims.get("role")
    try:
        role = Role.parse(raw_role)
    except ValueError:
        logger.warning("Unknown role claim, treating caller as STAFF", role=raw_role)
        role = Role.STAFF

    return CallerIdentity(
        role=role,
        home_tenant_id=_str_or_none(claims.get("propertyId") or claims.get("hotelId")),
        sub=_str_or_none(claims.get("sub") or claims.get("uid")),
    )
