import pytest

from app.celltrack.core.states import TransferState, can_transition, is_terminal


@pytest.mark.parametrize(
    ("current", "target", "allowed"),
    [
        (TransferState.PENDING_ADMIN_CONFIRMATION, TransferState.PENDING_DESTINATION_CONFIRMATION, True),
        (TransferState.PENDING_ADMIN_CONFIRMATION, TransferState.CANCELLED, True),
        (TransferState.PENDING_ADMIN_CONFIRMATION, TransferState.COMPLETED, False),
        (TransferState.PENDING_DESTINATION_CONFIRMATION, TransferState.COMPLETED, True),
        (TransferState.PENDING_DESTINATION_CONFIRMATION, TransferState.CANCELLED, True),
        (TransferState.COMPLETED, TransferState.CANCELLED, False),
        (TransferState.CANCELLED, TransferState.PENDING_ADMIN_CONFIRMATION, False),
    ],
)
def test_transition_table(current, target, allowed):
    assert can_transition(current, target) is allowed


def test_terminal_states():
    assert is_terminal("Completed")
    assert is_terminal(TransferState.CANCELLED)
    assert not is_terminal(TransferState.PENDING_DESTINATION_CONFIRMATION)
