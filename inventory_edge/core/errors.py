# inventory_edge/core/errors.py
from typing import Optional


class InventoryEdgeError(Exception):
    """Base class for every error raised by the ledger, scan and sync layers."""


class NotFoundError(InventoryEdgeError):
    pass


class DuplicateNaturalKey(InventoryEdgeError):
    def __init__(self, kind: str, field: str, value: str):
        self.kind = kind
        self.field = field
        self.value = value
        super().__init__(f"{kind} with {field} {value!r} already exists")


class ReferentialConflict(InventoryEdgeError):
    """Delete blocked because other active rows still point at the target."""

    def __init__(self, kind: str, entity_id: int, dependents: int, dependent_kind: str):
        self.kind = kind
        self.entity_id = entity_id
        self.dependents = dependents
        self.dependent_kind = dependent_kind
        super().__init__(
            f"Cannot delete {kind} {entity_id} with {dependents} {dependent_kind}"
        )


class InvalidHierarchy(InventoryEdgeError):
    pass


class PolicyViolation(InventoryEdgeError):
    pass


class InsufficientStock(PolicyViolation):
    def __init__(self, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(f"Insufficient stock: {available} available, {requested} requested")


class MissingReason(PolicyViolation):
    pass


class DatabaseIOFailure(InventoryEdgeError):
    pass


class RemoteError(InventoryEdgeError):
    retryable = True


class RemoteUnavailable(RemoteError):
    pass


class RemoteRejected(RemoteError):
    def __init__(self, status: int, detail: Optional[str] = None):
        self.status = status
        self.detail = detail
        super().__init__(f"Remote rejected request ({status}): {detail or 'no detail'}")
