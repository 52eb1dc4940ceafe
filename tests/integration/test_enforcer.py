"""Integration tests for the retention evaluation cycle against in-memory stores"""

import asyncio
import pytest
from unittest.mock import AsyncMock

from subsgrow_core.engine.cooldown import cooldown_key
from subsgrow_core.engine.orchestrator import CycleOutcome, EvaluationContext, RetentionEnforcer
from subsgrow_core.infrastructure.documents import paths

HOUR_MS = 60 * 60 * 1000
TENANT = "merchant-1"


@pytest.fixture
def alerts() -> AsyncMock:
    sink = AsyncMock()
    sink.notify.return_value = None
    return sink


@pytest.fixture
def enforcer(store, kv, clock, alerts) -> RetentionEnforcer:
    return RetentionEnforcer(
        store,
        kv,
        alerts=alerts,
        clock=clock,
        required_feature="export",
        cooldown_hours=24,
        warning_ttl_hours=72,
    )


@pytest.fixture
def context(make_sale, months_ago):
    """Eligible context: 3-month window, one sale 4 months old"""

    def _context(months: int = 3, export: bool = True, loading: bool = False, snapshot=None):
        if snapshot is None:
            snapshot = (make_sale("recent", months_ago(0, days=2)), make_sale("old", months_ago(4)))
        return EvaluationContext(
            tenant_id=TENANT,
            snapshot=tuple(snapshot),
            loading=loading,
            entitlement_flags={"export": export},
            effective_months=months,
        )

    return _context


async def _warnings(store):
    return await store.query(paths.NOTIFICATIONS, [("userId", "==", TENANT)])


async def test_issues_exactly_one_warning(enforcer, store, kv, clock, alerts, context):
    """Test 3-month window, 4-month-old sale, no cooldown, no prior warning"""
    outcome = await enforcer.evaluate(context())

    assert outcome == CycleOutcome.ISSUED
    docs = await _warnings(store)
    assert len(docs) == 1
    warning = docs[0].data
    assert warning["type"] == "warning"
    assert warning["target"] == "user"
    assert warning["behavior"] == "fixed"
    assert warning["createdAt"] == clock.now_ms
    assert warning["expiresAt"] == clock.now_ms + 72 * HOUR_MS
    assert kv.get(cooldown_key(TENANT, 3)) == str(clock.now_ms)
    alerts.notify.assert_awaited_once()


async def test_zero_months_never_issues(enforcer, store, kv, context):
    """Test disabled window regardless of age and cooldown state"""
    outcome = await enforcer.evaluate(context(months=0))

    assert outcome == CycleOutcome.DISABLED
    assert store.query_count == 0
    assert store.insert_count == 0
    assert kv.values == {}


async def test_requires_export_entitlement(enforcer, store, context):
    outcome = await enforcer.evaluate(context(export=False))

    assert outcome == CycleOutcome.NOT_ENTITLED
    assert store.insert_count == 0


async def test_waits_for_loading(enforcer, store, context):
    outcome = await enforcer.evaluate(context(loading=True))

    assert outcome == CycleOutcome.NOT_READY
    assert store.query_count == 0


async def test_nothing_old_enough(enforcer, store, kv, make_sale, months_ago, context):
    """Test a sale just inside the window does not trigger"""
    outcome = await enforcer.evaluate(context(snapshot=[make_sale("young", months_ago(3) + 1)]))

    assert outcome == CycleOutcome.NOTHING_EXPIRED
    assert store.query_count == 0
    assert kv.values == {}


async def test_cooldown_skips_query_and_insert(enforcer, store, kv, clock, context):
    """Test cooldown entry 1 hour old skips dedup and creation entirely"""
    kv.set(cooldown_key(TENANT, 3), str(clock.now_ms - HOUR_MS))

    outcome = await enforcer.evaluate(context())

    assert outcome == CycleOutcome.COOLDOWN
    assert store.query_count == 0
    assert store.insert_count == 0


async def test_second_cycle_same_day_is_throttled(enforcer, store, clock, context):
    """Test a second trigger an hour later does nothing"""
    assert await enforcer.evaluate(context()) == CycleOutcome.ISSUED
    queries = store.query_count

    clock.advance(hours=1)

    assert await enforcer.evaluate(context()) == CycleOutcome.COOLDOWN
    assert store.query_count == queries
    assert store.insert_count == 1


async def test_existing_warning_suppresses_but_refreshes_cooldown(enforcer, store, kv, clock, alerts, context):
    """Test dedup hit: no new notification, cooldown still written"""
    await store.insert(
        paths.NOTIFICATIONS,
        {
            "message": "Data Retention limit: please upgrade",
            "type": "warning",
            "target": "user",
            "userId": TENANT,
            "behavior": "fixed",
            "createdAt": 1,
        },
    )
    kv.set(cooldown_key(TENANT, 3), str(clock.now_ms - 25 * HOUR_MS))

    outcome = await enforcer.evaluate(context())

    assert outcome == CycleOutcome.SUPPRESSED
    assert len(await _warnings(store)) == 1
    assert kv.get(cooldown_key(TENANT, 3)) == str(clock.now_ms)
    alerts.notify.assert_awaited_once()


async def test_other_tenants_warning_does_not_suppress(enforcer, store, context):
    await store.insert(
        paths.NOTIFICATIONS,
        {"message": "Retention", "type": "warning", "target": "user", "userId": "merchant-2", "createdAt": 1},
    )

    assert await enforcer.evaluate(context()) == CycleOutcome.ISSUED


async def test_query_failure_leaves_cooldown_untouched(enforcer, store, kv, alerts, context):
    """Test failed dedup query aborts and retries on the next tick"""
    store.fail_queries = ConnectionError("unavailable")

    outcome = await enforcer.evaluate(context())

    assert outcome == CycleOutcome.QUERY_FAILED
    assert kv.values == {}
    assert store.insert_count == 0
    alerts.notify.assert_not_awaited()

    store.fail_queries = None
    assert await enforcer.evaluate(context()) == CycleOutcome.ISSUED


async def test_insert_failure_leaves_cooldown_untouched(enforcer, store, kv, context):
    """Test failed insert persists nothing and keeps the gate open"""
    store.fail_inserts = PermissionError("denied")

    outcome = await enforcer.evaluate(context())

    assert outcome == CycleOutcome.WRITE_FAILED
    assert kv.values == {}
    assert await _warnings(store) == []


async def test_warning_with_odd_unrelated_fields_still_suppresses(enforcer, store, kv, clock, context):
    """Test dedup only depends on type and message of the stored warning"""
    await store.insert(
        paths.NOTIFICATIONS,
        {
            "message": "Your data retention window is reached.",
            "type": "warning",
            "target": "user",
            "userId": TENANT,
            "read": None,
            "createdAt": 1_700_000_000_000.5,
            "expiresAt": "never",
        },
    )

    outcome = await enforcer.evaluate(context())

    assert outcome == CycleOutcome.SUPPRESSED
    assert store.insert_count == 1
    assert len(await _warnings(store)) == 1
    assert kv.get(cooldown_key(TENANT, 3)) == str(clock.now_ms)


async def test_snooze_blocks_cycle_and_closes_gate(enforcer, store, kv, clock, context):
    """Test an owner snooze stops prompts and throttles settings reads"""
    await store.set(paths.general_settings(TENANT), {"retentionSnoozeUntil": clock.now_ms + HOUR_MS})

    assert await enforcer.evaluate(context()) == CycleOutcome.SNOOZED
    assert store.insert_count == 0
    assert store.query_count == 0
    assert kv.get(cooldown_key(TENANT, 3)) == str(clock.now_ms)

    clock.advance(hours=2)
    assert await enforcer.evaluate(context()) == CycleOutcome.COOLDOWN

    clock.advance(hours=24)
    assert await enforcer.evaluate(context()) == CycleOutcome.ISSUED


async def test_unreadable_settings_mean_no_snooze(enforcer, store, kv, clock, context):
    """Test a failed settings read does not abort the cycle"""
    store.get = AsyncMock(side_effect=ConnectionError("unavailable"))

    assert await enforcer.evaluate(context()) == CycleOutcome.ISSUED
    assert kv.get(cooldown_key(TENANT, 3)) == str(clock.now_ms)


async def test_overlapping_cycles_issue_once(enforcer, store, context):
    """Test concurrent triggers are serialized per tenant"""
    store.query_gate = asyncio.Event()

    first = asyncio.create_task(enforcer.evaluate(context()))
    second = asyncio.create_task(enforcer.evaluate(context()))
    await asyncio.sleep(0)
    store.query_gate.set()

    outcomes = await asyncio.gather(first, second)

    assert sorted(o.value for o in outcomes) == ["cooldown", "issued"]
    assert store.insert_count == 1


async def test_alert_failure_is_ignored(store, kv, clock, context):
    """Test a broken alert sink does not fail the cycle"""
    sink = AsyncMock()
    sink.notify.side_effect = RuntimeError("toast service down")
    enforcer = RetentionEnforcer(store, kv, alerts=sink, clock=clock, required_feature="export")

    assert await enforcer.evaluate(context()) == CycleOutcome.ISSUED
