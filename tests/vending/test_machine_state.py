import pytest

from domain.common.exceptions import InvalidVendRequestException
from domain.vending import MachineState, VendPhase, validate_items


def test_validate_items_accepts_lists_and_tuples():
    assert validate_items([1, 2, 3]) == [1, 2, 3]
    assert validate_items((4,)) == [4]


@pytest.mark.parametrize(
    "items",
    [[], (), None, "123", 5, {"items": [1]}, [1, "2"], [True], [1.5]],
)
def test_validate_items_rejects_invalid(items):
    with pytest.raises(InvalidVendRequestException) as ei:
        validate_items(items)
    assert ei.value.error_type == "InvalidRequest"


def test_new_state_is_idle():
    state = MachineState()
    assert state.phase is VendPhase.IDLE
    assert state.items == []
    assert state.started_at is None
    assert state.pending_completion is None
    assert state.elapsed_ms() == 0


def test_start_and_finish_keep_invariants():
    state = MachineState()
    handle = object()
    state.start([1, 2], handle)
    assert state.is_vending
    assert state.items == [1, 2]
    assert state.started_at is not None
    assert state.pending_completion is handle

    vended = state.finish()
    assert vended == [1, 2]
    assert state.phase is VendPhase.IDLE
    assert state.items == []
    assert state.started_at is None
    assert state.started_monotonic is None
    assert state.pending_completion is None


def test_start_while_vending_is_rejected():
    state = MachineState()
    state.start([1], object())
    with pytest.raises(ValueError):
        state.start([2], object())
    assert state.items == [1]


def test_items_are_copied_on_start():
    source = [1, 2]
    state = MachineState()
    state.start(source, object())
    source.append(3)
    assert state.items == [1, 2]
