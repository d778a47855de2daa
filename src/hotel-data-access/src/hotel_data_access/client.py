"""
hotel_data_access.client — RestrictedClient, the tenant-scoped data handle.

Wraps any EntityDataClient so that every operation issued by request
code is bound to one property (tenant).

Security guarantees:
  - Direct entities: the tenant field in every filter is forced to the
    bound tenant; a caller-supplied value is overwritten, never trusted.
  - Direct entities: every created record is stamped with the bound
    tenant, per record for bulk creates.
  - Associative entities: filters gain a relational existence predicate
    on the related, directly-scoped records.
  - A caller's attempt to name another tenant is logged and counted
    (TenantOverrideAttempt metric); the operation still runs, scoped.

Construction is the only place tenancy can fail (TenancyError). Errors
from the base client propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from aws_lambda_powertools import Logger

from hotel_data_access.metrics import TENANT_OVERRIDE_ATTEMPT, emit_security_metric
from hotel_data_access.models import (
    OPERATION_KINDS,
    CallerIdentity,
    Operation,
    OperationKind,
    ScopingStrategy,
)
from hotel_data_access.policy import HOTEL_POLICY, EntityPolicy, EntityPolicyTable
from hotel_data_access.resolution import resolve_tenant

logger = Logger(service="hotel-data-access")

Filter = dict[str, Any]
Record = dict[str, Any]


class EntityDataClient(Protocol):
    """Entity-oriented CRUD capability the restricted client decorates."""

    def find_one(
        self, entity: str, *, where: Filter | None = None, **options: Any
    ) -> Record | None: ...

    def find_many(
        self, entity: str, *, where: Filter | None = None, **options: Any
    ) -> list[Record]: ...

    def count(self, entity: str, *, where: Filter | None = None, **options: Any) -> int: ...

    def update_one(self, entity: str, *, where: Filter, data: Record, **options: Any) -> Record: ...

    def update_many(self, entity: str, *, where: Filter, data: Record, **options: Any) -> int: ...

    def delete_one(self, entity: str, *, where: Filter, **options: Any) -> Record: ...

    def delete_many(self, entity: str, *, where: Filter | None = None, **options: Any) -> int: ...

    def create_one(self, entity: str, *, data: Record, **options: Any) -> Record: ...

    def create_many(self, entity: str, *, data: Sequence[Record], **options: Any) -> int: ...


class RestrictedClient:
    """
    Data client bound to a single tenant for the duration of one request.

    Exposes the EntityDataClient surface. The wrapped client is never
    reachable through this object. Build one per request with
    create_restricted_client(); never cache or share instances.
    """

    def __init__(
        self,
        base_client: EntityDataClient,
        tenant_id: str,
        *,
        policy: EntityPolicyTable = HOTEL_POLICY,
        cloudwatch_client: Any = None,
    ) -> None:
        if not tenant_id or not str(tenant_id).strip():
            raise ValueError("RestrictedClient requires a non-empty tenant_id")
        self._base = base_client
        self._tenant_id = str(tenant_id).strip()
        self._policy = policy
        self._cloudwatch = cloudwatch_client

    @property
    def tenant_id(self) -> str:
        return self._tenant_id

    def __repr__(self) -> str:
        return f"RestrictedClient(tenant_id={self._tenant_id!r})"

    # ------------------------------------------------------------------
    # Entity operations
    # ------------------------------------------------------------------

    def find_one(
        self, entity: str, *, where: Filter | None = None, **options: Any
    ) -> Record | None:
        return self._execute(entity, Operation.FIND_ONE, where=where, **options)

    def find_many(
        self, entity: str, *, where: Filter | None = None, **options: Any
    ) -> list[Record]:
        return self._execute(entity, Operation.FIND_MANY, where=where, **options)

    def count(self, entity: str, *, where: Filter | None = None, **options: Any) -> int:
        return self._execute(entity, Operation.COUNT, where=where, **options)

    def update_one(self, entity: str, *, where: Filter, data: Record, **options: Any) -> Record:
        return self._execute(entity, Operation.UPDATE_ONE, where=where, data=data, **options)

    def update_many(self, entity: str, *, where: Filter, data: Record, **options: Any) -> int:
        return self._execute(entity, Operation.UPDATE_MANY, where=where, data=data, **options)

    def delete_one(self, entity: str, *, where: Filter, **options: Any) -> Record:
        return self._execute(entity, Operation.DELETE_ONE, where=where, **options)

    def delete_many(self, entity: str, *, where: Filter | None = None, **options: Any) -> int:
        return self._execute(entity, Operation.DELETE_MANY, where=where, **options)

    def create_one(self, entity: str, *, data: Record, **options: Any) -> Record:
        return self._execute(entity, Operation.CREATE_ONE, data=data, **options)

    def create_many(self, entity: str, *, data: Sequence[Record], **options: Any) -> int:
        return self._execute(entity, Operation.CREATE_MANY, data=data, **options)

    # ------------------------------------------------------------------
    # Interception
    # ------------------------------------------------------------------

    def scope_arguments(
        self, entity: str, operation: Operation, **arguments: Any
    ) -> dict[str, Any]:
        """Return the keyword arguments that would be forwarded to the base client.

        Caller objects are never mutated; scoped values are new dicts.
        Unscoped and unlisted entities get the caller's arguments back as-is.
        """
        kind = OPERATION_KINDS[operation]
        policy = self._policy.lookup(entity)
        if policy is None:
            logger.warning(
                "Entity has no tenant policy, passing through",
                entity=entity,
                operation=operation.value,
                tenant_id=self._tenant_id,
            )
            return arguments

        logger.debug(
            "Scoping operation",
            entity=entity,
            operation=operation.value,
            strategy=policy.strategy.value,
            tenant_id=self._tenant_id,
        )
        if policy.strategy is ScopingStrategy.UNSCOPED:
            return arguments

        scoped = dict(arguments)
        if kind.takes_filter:
            scoped["where"] = self._scope_filter(policy, arguments.get("where"))
        if policy.strategy is ScopingStrategy.DIRECT:
            if kind is OperationKind.CREATE:
                scoped["data"] = self._stamp_payload(policy, arguments["data"])
            elif kind is OperationKind.UPDATE:
                scoped["data"] = self._pin_update(policy, arguments["data"])
        return scoped

    def _execute(self, entity: str, operation: Operation, **arguments: Any) -> Any:
        scoped = self.scope_arguments(entity, operation, **arguments)
        method = getattr(self._base, operation.value)
        return method(entity, **scoped)

    def _scope_filter(self, policy: EntityPolicy, where: Filter | None) -> Filter:
        if policy.strategy is ScopingStrategy.DIRECT:
            if where and policy.tenant_field in where:
                self._check_override(policy, where[policy.tenant_field], source="filter")
            return {**(where or {}), policy.tenant_field: self._tenant_id}

        # ASSOCIATIVE: at least one related record belongs to the tenant.
        predicate: Filter = {"some": {policy.tenant_field: self._tenant_id}}
        if not policy.shared:
            predicate["every"] = {policy.tenant_field: self._tenant_id}
        scope = {policy.relation: predicate}
        if not where:
            return scope
        if policy.relation in where:
            return {"AND": [where, scope]}
        return {**where, **scope}

    def _stamp_payload(self, policy: EntityPolicy, data: Any) -> Any:
        if isinstance(data, Mapping):
            return self._stamp_record(policy, data)
        return [self._stamp_record(policy, record) for record in data]

    def _stamp_record(self, policy: EntityPolicy, record: Mapping[str, Any]) -> Record:
        if policy.tenant_field in record:
            self._check_override(policy, record[policy.tenant_field], source="payload")
        return {**record, policy.tenant_field: self._tenant_id}

    def _pin_update(self, policy: EntityPolicy, data: Record) -> Record:
        """Stop an update from moving a record into another tenant."""
        if policy.tenant_field not in data:
            return data
        return self._stamp_record(policy, data)

    def _check_override(self, policy: EntityPolicy, attempted: Any, *, source: str) -> None:
        if attempted is None or attempted == self._tenant_id:
            return
        logger.warning(
            "Overriding caller-supplied tenant",
            entity=policy.entity,
            source=source,
            tenant_id=self._tenant_id,
            attempted_tenant_id=repr(attempted),
        )
        emit_security_metric(
            TENANT_OVERRIDE_ATTEMPT,
            # The attempted value is caller-controlled; it stays in the log only.
            {"entity": policy.entity, "target_tenant_id": self._tenant_id},
            cloudwatch_client=self._cloudwatch,
        )


# ---------------------------------------------------------------------------
# Factories — one fresh handle per request
# ---------------------------------------------------------------------------


def bind_restricted_client(
    base_client: EntityDataClient,
    tenant_id: str,
    *,
    policy: EntityPolicyTable = HOTEL_POLICY,
    cloudwatch_client: Any = None,
) -> RestrictedClient:
    """Bind base_client to an already-resolved tenant."""
    return RestrictedClient(
        base_client, tenant_id, policy=policy, cloudwatch_client=cloudwatch_client
    )


def create_restricted_client(
    base_client: EntityDataClient,
    identity: CallerIdentity,
    selection: str | None = None,
    *,
    policy: EntityPolicyTable = HOTEL_POLICY,
    cloudwatch_client: Any = None,
) -> RestrictedClient:
    """Resolve the caller's tenant and return a handle bound to it.

    Raises TenancyError when no tenant can be resolved; no handle exists
    in that case.
    """
    tenant_id = resolve_tenant(identity, selection, cloudwatch_client=cloudwatch_client)
    logger.info(
        "Restricted client bound",
        tenant_id=tenant_id,
        role=identity.role.value,
        sub=identity.sub,
    )
    return bind_restricted_client(
        base_client, tenant_id, policy=policy, cloudwatch_client=cloudwatch_client
    )
