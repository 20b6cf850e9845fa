import asyncio

from conftest import failed_login, failed_network

from pyadtpulse_sync.config import Intervals
from pyadtpulse_sync.controller import SessionController
from pyadtpulse_sync.detect import ChangeDetector
from pyadtpulse_sync.scheduler import SyncScheduler
from pyadtpulse_sync.state import SyncState


class StubReconciler:
    def __init__(self):
        self.refreshes = 0

    async def refresh(self):
        self.refreshes += 1
        return []


def make_scheduler(portal, clock, intervals=None):
    intervals = intervals or Intervals()
    state = SyncState()
    detector = ChangeDetector(state.reported_hashes)
    controller = SessionController(portal, state, detector, intervals, clock=clock)
    reconciler = StubReconciler()
    scheduler = SyncScheduler(portal, state, controller, reconciler, intervals, clock=clock)
    return scheduler, state, reconciler


def test_concurrent_ticks_never_double_enter(portal, clock):
    scheduler, state, _ = make_scheduler(portal, clock)

    async def scenario():
        portal.login_gate = asyncio.Event()
        first = asyncio.create_task(scheduler.synchronize())
        await asyncio.sleep(0)
        assert state.activity.is_syncing is True

        # Second tick is skipped while the first is still logging in
        await scheduler.synchronize()
        portal.login_gate.set()
        await first

    asyncio.run(scenario())
    assert portal.calls["authenticate"] == 1
    assert state.activity.is_syncing is False
    assert state.activity.is_logging_in is False


def test_sub_tasks_follow_their_own_pace(portal, clock):
    scheduler, state, _ = make_scheduler(portal, clock)

    async def tick():
        await scheduler.synchronize()
        await scheduler.wait_for_tasks()

    async def scenario():
        # Login stamps both timestamps, nothing is due yet
        await tick()
        assert portal.calls["perform_change_check"] == 0
        assert portal.calls["perform_heartbeat"] == 0

        clock.advance(3)
        await tick()
        assert portal.calls["perform_change_check"] == 1
        assert portal.calls["perform_heartbeat"] == 0

        clock.advance(1)
        await tick()
        assert portal.calls["perform_change_check"] == 1

        clock.advance(538)
        await tick()
        assert portal.calls["perform_change_check"] == 2
        assert portal.calls["perform_heartbeat"] == 1

    asyncio.run(scenario())
    assert portal.calls["authenticate"] == 1


def test_changed_sync_code_triggers_one_refresh(portal, clock):
    portal.authenticated = True
    portal.sync_codes = ["2-1-0", "2-1-0"]
    scheduler, state, reconciler = make_scheduler(portal, clock)

    async def scenario():
        await scheduler.synchronize_sync_check()
        assert reconciler.refreshes == 1
        assert state.data.sync_code == "2-1-0"

        await scheduler.synchronize_sync_check()
        assert reconciler.refreshes == 1

    asyncio.run(scenario())
    assert state.last_run_on.sync_check == clock.now
    assert state.activity.is_sync_checking is False


def test_failed_sync_check_keeps_cached_code(portal, clock):
    portal.authenticated = True
    scheduler, state, reconciler = make_scheduler(portal, clock)

    async def failing_check():
        return failed_network("sync-check")

    portal.perform_change_check = failing_check

    async def scenario():
        await scheduler.synchronize_sync_check()

    asyncio.run(scenario())
    assert reconciler.refreshes == 0
    assert state.data.sync_code == "1-0-0"
    assert state.last_run_on.sync_check == clock.now


def test_failed_heartbeat_still_updates_timestamp(portal, clock):
    portal.authenticated = True
    portal.heartbeat_results = [failed_network("keep-alive")]
    scheduler, state, _ = make_scheduler(portal, clock)

    async def scenario():
        await scheduler.synchronize_keep_alive()

    asyncio.run(scenario())

    assert portal.calls["perform_heartbeat"] == 1
    assert state.last_run_on.keep_alive == clock.now
    assert state.activity.is_keeping_alive is False


def test_busy_sub_task_is_skipped(portal, clock):
    portal.authenticated = True
    scheduler, state, _ = make_scheduler(portal, clock)
    state.activity.is_sync_checking = True
    state.activity.is_keeping_alive = True

    async def scenario():
        await scheduler.synchronize_sync_check()
        await scheduler.synchronize_keep_alive()

    asyncio.run(scenario())
    assert portal.calls["perform_change_check"] == 0
    assert portal.calls["perform_heartbeat"] == 0


def test_error_inside_tick_does_not_wedge_scheduler(portal, clock):
    scheduler, state, _ = make_scheduler(portal, clock)
    original = portal.authenticate

    async def exploding_login():
        raise RuntimeError("boom")

    async def scenario():
        portal.authenticate = exploding_login
        await scheduler.synchronize()
        assert state.activity.is_syncing is False
        assert state.activity.is_logging_in is False

        portal.authenticate = original
        await scheduler.synchronize()

    asyncio.run(scenario())
    assert portal.is_authenticated() is True


def test_cooldown_wait_ends_on_stop(portal, clock):
    portal.login_results = [failed_login()]
    scheduler, state, _ = make_scheduler(portal, clock, Intervals(max_login_retries=1))

    async def scenario():
        tick = asyncio.create_task(scheduler.synchronize())
        await asyncio.sleep(0)
        await scheduler.stop()
        await asyncio.wait_for(tick, timeout=1)

    asyncio.run(scenario())
    assert portal.calls["authenticate"] == 1
    # Interrupted cooldown is not counted as served
    assert state.event_counters.failed_logins == 1
    assert state.activity.is_syncing is False


def test_start_and_stop(portal, clock):
    scheduler, state, _ = make_scheduler(portal, clock, Intervals(synchronize=0.01))

    async def scenario():
        scheduler.start()
        assert scheduler.is_running
        await asyncio.sleep(0.05)
        await scheduler.stop()
        assert not scheduler.is_running

    asyncio.run(scenario())
    assert portal.calls["authenticate"] == 1
    assert state.activity.is_syncing is False
