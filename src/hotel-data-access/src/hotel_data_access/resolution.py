"""
hotel_data_access.resolution — Decide which tenant a request acts on.

Single gate before any restricted client exists. Once it returns, every
downstream operation may assume a non-empty target tenant.
"""

from __future__ import annotations

from typing import Any

from aws_lambda_powertools import Logger

from hotel_data_access.exceptions import TenancyError
from hotel_data_access.metrics import TENANCY_RESOLUTION_FAILURE, emit_security_metric
from hotel_data_access.models import CallerIdentity

logger = Logger(service="hotel-data-access")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def resolve_tenant(
    identity: CallerIdentity,
    selection: str | None = None,
    *,
    cloudwatch_client: Any = None,
) -> str:
    """Return the tenant id the caller's restricted client is bound to.

    Elevated roles act on `selection` and only on it; they are never
    defaulted to a home tenant. Every other role is locked to its home
    tenant and `selection` is ignored, so a forged request parameter
    cannot move a staff member into another property.

    Raises TenancyError when no tenant can be determined.
    """
    if identity.role.is_elevated:
        target = _clean(selection)
    else:
        target = _clean(identity.home_tenant_id)
        if selection is not None and _clean(selection) not in (None, target):
            logger.warning(
                "Ignoring tenant selection from non-elevated caller",
                role=identity.role.value,
                home_tenant_id=target,
                selection=selection,
                sub=identity.sub,
            )

    if target is None:
        logger.error(
            "TenancyError: no tenant context for caller",
            role=identity.role.value,
            has_selection=selection is not None,
            sub=identity.sub,
        )
        emit_security_metric(
            TENANCY_RESOLUTION_FAILURE,
            {"role": identity.role.value},
            cloudwatch_client=cloudwatch_client,
        )
        raise TenancyError(role=identity.role.value, has_selection=selection is not None)

    return target
