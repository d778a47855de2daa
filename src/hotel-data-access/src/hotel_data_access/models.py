"""
hotel_data_access.models — Identity, operation and entity vocabulary.

Everything the isolation layer reasons about is a closed enumeration:
roles, operations, scoping strategies and entity names. Free-form
strings from tokens or callers are parsed into these once, at the edge.

Single-table layout used by DynamoEntityClient:
    PK: ENTITY#{entity}   SK: {record id}
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

# Field carrying the owning property on directly-scoped records.
DEFAULT_TENANT_FIELD = "property_id"


# ---------------------------------------------------------------------------
# Roles and caller identity
# ---------------------------------------------------------------------------


class Role(StrEnum):
    SUPER_ADMIN = "SUPER_ADMIN"
    SYSTEM_ADMIN = "SYSTEM_ADMIN"
    ADMIN = "ADMIN"
    PROPERTY_MANAGER = "PROPERTY_MANAGER"
    MANAGER = "MANAGER"
    STAFF = "STAFF"

    @classmethod
    def parse(cls, value: str | None) -> Role:
        """Parse a role claim case-insensitively.

        A missing claim means STAFF. Unknown values raise ValueError.
        """
        if value is None or not str(value).strip():
            return cls.STAFF
        return cls(str(value).strip().upper())

    @property
    def is_elevated(self) -> bool:
        """True for roles that act across tenants given an explicit selection."""
        return self in ELEVATED_ROLES


ELEVATED_ROLES: frozenset[Role] = frozenset({Role.SUPER_ADMIN, Role.SYSTEM_ADMIN, Role.ADMIN})


@dataclass(frozen=True)
class CallerIdentity:
    """
    Verified caller identity, built once per request by authentication.

    home_tenant_id is None for platform administrators who are not tied
    to a single property.
    """

    role: Role
    home_tenant_id: str | None = None
    sub: str | None = None  # token subject, for log correlation only


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


class Operation(StrEnum):
    """Entity operations a data client exposes. Values are method names."""

    FIND_ONE = "find_one"
    FIND_MANY = "find_many"
    COUNT = "count"
    UPDATE_ONE = "update_one"
    UPDATE_MANY = "update_many"
    DELETE_ONE = "delete_one"
    DELETE_MANY = "delete_many"
    CREATE_ONE = "create_one"
    CREATE_MANY = "create_many"


class OperationKind(StrEnum):
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    CREATE = "create"

    @property
    def takes_filter(self) -> bool:
        return self is not OperationKind.CREATE

    @property
    def takes_payload(self) -> bool:
        return self in (OperationKind.UPDATE, OperationKind.CREATE)


OPERATION_KINDS: dict[Operation, OperationKind] = {
    Operation.FIND_ONE: OperationKind.READ,
    Operation.FIND_MANY: OperationKind.READ,
    Operation.COUNT: OperationKind.READ,
    Operation.UPDATE_ONE: OperationKind.UPDATE,
    Operation.UPDATE_MANY: OperationKind.UPDATE,
    Operation.DELETE_ONE: OperationKind.DELETE,
    Operation.DELETE_MANY: OperationKind.DELETE,
    Operation.CREATE_ONE: OperationKind.CREATE,
    Operation.CREATE_MANY: OperationKind.CREATE,
}

_unclassified = set(Operation) - OPERATION_KINDS.keys()
if _unclassified:
    raise RuntimeError(f"Operations without a kind: {sorted(_unclassified)}")


# ---------------------------------------------------------------------------
# Entities and scoping strategies
# ---------------------------------------------------------------------------


class ScopingStrategy(StrEnum):
    DIRECT = "direct"
    ASSOCIATIVE = "associative"
    UNSCOPED = "unscoped"


class Entity(StrEnum):
    ROOM = "Room"
    BOOKING = "Booking"
    MAINTENANCE_REQUEST = "MaintenanceRequest"
    USER = "User"
    GUEST = "Guest"
    PROPERTY = "Property"
    FEATURE_REQUEST = "FeatureRequest"


class RoomStatus(StrEnum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    DIRTY = "DIRTY"
    MAINTENANCE = "MAINTENANCE"


@dataclass(frozen=True)
class Relation:
    """One-to-many relation: records of `target` whose `foreign_key` equals the owner's id."""

    target: str
    foreign_key: str


# entity -> relation name -> Relation
HOTEL_RELATIONS: dict[str, dict[str, Relation]] = {
    Entity.GUEST: {"bookings": Relation(target=Entity.BOOKING, foreign_key="guest_id")},
    Entity.ROOM: {"bookings": Relation(target=Entity.BOOKING, foreign_key="room_id")},
    Entity.PROPERTY: {
        "rooms": Relation(target=Entity.ROOM, foreign_key="property_id"),
        "bookings": Relation(target=Entity.BOOKING, foreign_key="property_id"),
    },
}
