from __future__ import annotations

from enum import Enum


class TransferState(str, Enum):
    PENDING_ADMIN_CONFIRMATION = "PendingAdminConfirmation"
    PENDING_DESTINATION_CONFIRMATION = "PendingDestinationConfirmation"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class UnitStatus(str, Enum):
    NEW = "New"
    UNDER_REPAIR = "UnderRepair"
    REPAIRED = "Repaired"
    FOR_SALE = "ForSale"
    SOLD = "Sold"
    LOST = "Lost"
    CLEARANCE = "Clearance"


class ConfirmationRole(str, Enum):
    ADMIN = "admin"
    DESTINATION = "destination"


TERMINAL_TRANSFER_STATES = frozenset({TransferState.COMPLETED, TransferState.CANCELLED})

# Every legal transition; anything absent is rejected.
TRANSFER_TRANSITIONS: dict[TransferState, frozenset[TransferState]] = {
    TransferState.PENDING_ADMIN_CONFIRMATION: frozenset(
        {TransferState.PENDING_DESTINATION_CONFIRMATION, TransferState.CANCELLED}
    ),
    TransferState.PENDING_DESTINATION_CONFIRMATION: frozenset(
        {TransferState.COMPLETED, TransferState.CANCELLED}
    ),
    TransferState.COMPLETED: frozenset(),
    TransferState.CANCELLED: frozenset(),
}

# Statuses whose bulk application requires an administrator to re-authenticate.
REAUTH_REQUIRED_STATUSES = frozenset({UnitStatus.LOST})


def can_transition(current: TransferState | str, target: TransferState | str) -> bool:
    return TransferState(target) in TRANSFER_TRANSITIONS[TransferState(current)]


def is_terminal(state: TransferState | str) -> bool:
    return TransferState(state) in TERMINAL_TRANSFER_STATES
