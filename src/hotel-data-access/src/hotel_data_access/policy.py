"""
hotel_data_access.policy — Entity policy table.

The single source of truth for which entities are tenant-bearing and how
they are scoped. Adding a tenant-bearing entity means adding an entry
here; an entity missing from the table is passed through unfiltered
unless the table is built with fail_closed=True.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from hotel_data_access.exceptions import UnregisteredEntityError
from hotel_data_access.models import DEFAULT_TENANT_FIELD, Entity, ScopingStrategy


@dataclass(frozen=True)
class EntityPolicy:
    """
    How one entity is tied to a tenant.

    DIRECT:      the record carries tenant_field itself.
    ASSOCIATIVE: the record is reached through `relation`, whose target
                 records carry tenant_field.
    UNSCOPED:    global entity; no injection.

    `shared` only applies to ASSOCIATIVE entities. When True, one related
    record at the tenant is enough for visibility, so an entity related to
    several tenants is visible to all of them. When False, every related
    record must belong to the tenant.
    """

    entity: str
    strategy: ScopingStrategy
    tenant_field: str = DEFAULT_TENANT_FIELD
    relation: str | None = None
    shared: bool = True

    def __post_init__(self) -> None:
        if self.strategy is ScopingStrategy.ASSOCIATIVE and not self.relation:
            raise ValueError(f"Associative policy for {self.entity!r} needs a relation")
        if self.strategy is not ScopingStrategy.ASSOCIATIVE and self.relation is not None:
            raise ValueError(f"Only associative policies take a relation ({self.entity!r})")

    @classmethod
    def direct(cls, entity: str, tenant_field: str = DEFAULT_TENANT_FIELD) -> EntityPolicy:
        return cls(entity=entity, strategy=ScopingStrategy.DIRECT, tenant_field=tenant_field)

    @classmethod
    def associative(
        cls,
        entity: str,
        relation: str,
        *,
        tenant_field: str = DEFAULT_TENANT_FIELD,
        shared: bool = True,
    ) -> EntityPolicy:
        return cls(
            entity=entity,
            strategy=ScopingStrategy.ASSOCIATIVE,
            tenant_field=tenant_field,
            relation=relation,
            shared=shared,
        )

    @classmethod
    def unscoped(cls, entity: str) -> EntityPolicy:
        return cls(entity=entity, strategy=ScopingStrategy.UNSCOPED)


class EntityPolicyTable:
    """Immutable lookup of EntityPolicy by entity name."""

    def __init__(self, policies: Iterable[EntityPolicy], *, fail_closed: bool = False) -> None:
        entries: dict[str, EntityPolicy] = {}
        for policy in policies:
            if policy.entity in entries:
                raise ValueError(f"Duplicate policy for entity {policy.entity!r}")
            entries[policy.entity] = policy
        self._entries = entries
        self.fail_closed = fail_closed

    def lookup(self, entity: str) -> EntityPolicy | None:
        """Return the entity's policy.

        None means "not listed, pass through". A fail-closed table raises
        UnregisteredEntityError instead.
        """
        policy = self._entries.get(entity)
        if policy is None and self.fail_closed:
            raise UnregisteredEntityError(entity=entity)
        return policy

    def __contains__(self, entity: object) -> bool:
        return entity in self._entries

    def __iter__(self) -> Iterator[EntityPolicy]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


HOTEL_POLICY = EntityPolicyTable(
    [
        EntityPolicy.direct(Entity.ROOM),
        EntityPolicy.direct(Entity.BOOKING),
        EntityPolicy.direct(Entity.MAINTENANCE_REQUEST),
        EntityPolicy.direct(Entity.USER),
        # Guests form a chain-wide directory: a guest who stayed at two
        # properties is visible to both.
        EntityPolicy.associative(Entity.GUEST, "bookings", shared=True),
        EntityPolicy.unscoped(Entity.PROPERTY),
        EntityPolicy.unscoped(Entity.FEATURE_REQUEST),
    ]
)
