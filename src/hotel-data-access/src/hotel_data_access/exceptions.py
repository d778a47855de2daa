"""
hotel_data_access.exceptions — Errors raised by the isolation layer itself.

Errors raised by the underlying data client (not-found, conditional check
failures, validation) are NOT defined or translated here; they propagate
through the restricted client untouched.
"""

from __future__ import annotations


class TenancyError(Exception):
    """
    Raised when no tenant context can be resolved for the caller.

    Raised only while a restricted client is being constructed, never
    mid-operation. Route handlers are expected to turn it into an
    access-denied response.

    Attributes:
        role:          Canonical role of the rejected caller.
        has_selection: Whether the caller supplied a tenant selection at all.
    """

    def __init__(self, *, role: str, has_selection: bool = False) -> None:
        self.role = role
        self.has_selection = has_selection
        super().__init__(f"no tenant context could be resolved for role {role!r}")


class UnregisteredEntityError(Exception):
    """Raised by a fail-closed policy table for an entity it does not list."""

    def __init__(self, *, entity: str) -> None:
        self.entity = entity
        super().__init__(f"Entity {entity!r} has no tenant policy; refusing to pass it through")
