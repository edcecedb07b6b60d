import asyncio

import pytest

from application.services.vending_service import VendingService
from domain.common.exceptions import InvalidVendRequestException, VendingBusyException
from domain.vending import VendPhase


@pytest.mark.asyncio
async def test_request_vend_starts_cycle(notifier):
    svc = VendingService(notifier=notifier, delay_ms=1000)
    accepted = await svc.request_vend([1, 2, 3])

    assert accepted.items == [1, 2, 3]
    assert accepted.estimated_time == 1000
    assert accepted.model_dump(by_alias=True) == {
        "success": True,
        "message": "Vending started",
        "items": [1, 2, 3],
        "estimatedTime": 1000,
    }

    status = svc.get_status()
    assert status.status == "vending"
    assert status.items == [1, 2, 3]
    assert 0 <= status.elapsed_time < 200
    assert status.message == "Vending in progress"

    assert notifier.frames == [
        {"type": "status", "status": "vending", "items": [1, 2, 3], "message": "Vending started"}
    ]
    await svc.shutdown()


@pytest.mark.asyncio
@pytest.mark.parametrize("items", [[], None, "abc", 7, {"a": 1}, [1, "x"]])
async def test_invalid_request_leaves_state_unchanged(notifier, items):
    svc = VendingService(notifier=notifier, delay_ms=1000)
    with pytest.raises(InvalidVendRequestException):
        await svc.request_vend(items)
    assert svc.phase is VendPhase.IDLE
    assert svc.pending_completion is None
    assert notifier.frames == []


@pytest.mark.asyncio
async def test_busy_rejection_reports_current_items(notifier):
    svc = VendingService(notifier=notifier, delay_ms=1000)
    await svc.request_vend([1])

    with pytest.raises(VendingBusyException) as ei:
        await svc.request_vend([2, 3])
    assert ei.value.current_items == [1]
    assert ei.value.details == {"currentItems": [1]}

    assert svc.phase is VendPhase.VENDING
    assert svc.items == [1]
    assert len(notifier.frames) == 1
    await svc.shutdown()


@pytest.mark.asyncio
async def test_completion_returns_to_idle_and_notifies_once(notifier):
    svc = VendingService(notifier=notifier, delay_ms=30)
    await svc.request_vend([4, 5])
    await asyncio.sleep(0.15)

    assert svc.phase is VendPhase.IDLE
    assert svc.items == []
    assert svc.pending_completion is None
    assert notifier.types() == ["status", "vend-complete"]

    done = notifier.frames[-1]
    assert done["status"] == "idle"
    assert done["vendedItems"] == [4, 5]
    assert done["message"] == "Vending completed successfully"
    assert done["timestamp"].endswith("Z")

    status = svc.get_status()
    assert status.status == "idle"
    assert status.items is None
    assert status.message == "Machine is idle"


@pytest.mark.asyncio
async def test_machine_accepts_new_cycle_after_completion(notifier):
    svc = VendingService(notifier=notifier, delay_ms=20)
    await svc.request_vend([1])
    await asyncio.sleep(0.1)
    await svc.request_vend([2])
    assert svc.items == [2]
    await svc.shutdown()
    assert notifier.types() == ["status", "vend-complete", "status"]


@pytest.mark.asyncio
async def test_zero_delay_still_orders_status_before_completion(notifier):
    svc = VendingService(notifier=notifier, delay_ms=0)
    await svc.request_vend([9])
    await asyncio.sleep(0.05)
    assert notifier.types() == ["status", "vend-complete"]


@pytest.mark.asyncio
async def test_shutdown_cancels_without_vend_complete(notifier):
    svc = VendingService(notifier=notifier, delay_ms=50)
    await svc.request_vend([1, 2])
    task = svc.pending_completion

    await svc.shutdown()
    assert task.cancelled()
    assert svc.phase is VendPhase.IDLE
    assert svc.pending_completion is None

    await asyncio.sleep(0.1)
    assert "vend-complete" not in notifier.types()

    # idempotent
    await svc.shutdown()


@pytest.mark.asyncio
async def test_stale_or_repeated_completion_is_noop(notifier):
    svc = VendingService(notifier=notifier, delay_ms=1000)
    await svc.request_vend([3])
    task = svc.pending_completion

    assert await svc.complete(None) is False
    assert svc.phase is VendPhase.VENDING

    assert await svc.complete(task) is True
    assert svc.phase is VendPhase.IDLE
    assert await svc.complete(task) is False
    assert notifier.types().count("vend-complete") == 1
    task.cancel()


@pytest.mark.asyncio
async def test_elapsed_time_is_non_decreasing(notifier):
    svc = VendingService(notifier=notifier, delay_ms=1000)
    await svc.request_vend([1])
    first = svc.get_status().elapsed_time
    await asyncio.sleep(0.03)
    second = svc.get_status().elapsed_time
    assert second >= first
    assert second >= 20
    await svc.shutdown()


@pytest.mark.asyncio
async def test_vend_scenario_timeline(notifier):
    svc = VendingService(notifier=notifier, delay_ms=200)
    accepted = await svc.request_vend([1, 2, 3])
    assert accepted.estimated_time == 200

    await asyncio.sleep(0.05)
    mid = svc.get_status()
    assert mid.status == "vending"
    assert mid.items == [1, 2, 3]
    assert 40 <= mid.elapsed_time < 200

    await asyncio.sleep(0.3)
    assert svc.get_status().status == "idle"
    assert notifier.frames[-1]["vendedItems"] == [1, 2, 3]


def test_negative_delay_is_rejected(notifier):
    with pytest.raises(ValueError):
        VendingService(notifier=notifier, delay_ms=-1)
