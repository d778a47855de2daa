"""
hotel_data_access — Tenant-scoped data access for the hotel operations platform.

The ONLY permitted way for request handlers to touch property-owned
records (rooms, bookings, maintenance, staff, guests). Build a fresh
RestrictedClient per request with create_restricted_client().
"""

from hotel_data_access.client import (
    EntityDataClient,
    RestrictedClient,
    bind_restricted_client,
    create_restricted_client,
)
from hotel_data_access.exceptions import TenancyError, UnregisteredEntityError
from hotel_data_access.identity import identity_from_claims
from hotel_data_access.models import CallerIdentity, Operation, Role, ScopingStrategy
from hotel_data_access.policy import HOTEL_POLICY, EntityPolicy, EntityPolicyTable
from hotel_data_access.resolution import resolve_tenant
from hotel_data_access.store import DynamoEntityClient, RecordNotFoundError

__all__ = [
    "CallerIdentity",
    "DynamoEntityClient",
    "EntityDataClient",
    "EntityPolicy",
    "EntityPolicyTable",
    "HOTEL_POLICY",
    "Operation",
    "RecordNotFoundError",
    "RestrictedClient",
    "Role",
    "ScopingStrategy",
    "TenancyError",
    "UnregisteredEntityError",
    "bind_restricted_client",
    "create_restricted_client",
    "identity_from_claims",
    "resolve_tenant",
]
